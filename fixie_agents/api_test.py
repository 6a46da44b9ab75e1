import json

import pytest

from fixie_agents import api
from fixie_agents import embed
from fixie_agents import exceptions

QUERY_JSON = {
    "message": {
        "text": "Replace the background in #image1 with #image2, not ##notanembed",
        "embeds": {
            "image1": {"content_type": "image/png", "base64_data": "iVBORw0KGgo="},
            "image2": {"content_type": "image/jpeg", "base64_data": "/9j/4AAQ"},
        },
    },
    "access_token": "fake-access-token",
}


def test_query_from_dict():
    query = api.AgentQuery.from_dict(QUERY_JSON)

    assert query.access_token == "fake-access-token"
    assert query.message.embeds["image1"] == embed.Embed("image/png", "iVBORw0KGgo=")
    assert isinstance(query.message.embeds["image2"], embed.Embed)
    assert query.message.embed_refs() == ["image1", "image2"]
    assert query.to_dict() == QUERY_JSON


def test_message_defaults():
    message = api.Message("Howdy")
    assert message.embeds == {}
    assert message.embed_refs() == []
    assert json.loads(message.to_json()) == {"text": "Howdy", "embeds": {}}


def test_message_from_dict_rejects_uri_embed():
    with pytest.raises(exceptions.InvalidPayload):
        api.Message.from_dict(
            {
                "text": "#cat",
                "embeds": {
                    "cat": {
                        "content_type": "image/png",
                        "base64_data": "https://example.com/cat.png",
                    }
                },
            }
        )


def test_response_with_error_to_dict():
    response = api.AgentResponse(
        api.Message("Oops"),
        error=api.AgentError(code="ERR", message="Failed", details={"detail": 1}),
    )
    assert response.to_dict() == {
        "message": {"text": "Oops", "embeds": {}},
        "error": {"code": "ERR", "message": "Failed", "details": {"detail": 1}},
    }
    assert api.AgentResponse.from_dict(response.to_dict()) == response
