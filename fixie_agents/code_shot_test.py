import pytest
import yaml

import fixie_agents
from fixie_agents import code_shot
from fixie_agents import metadata

BASE_PROMPT = "I am a simple dummy agent."
FEW_SHOTS = """
Q: Sample query 1
Ask Func[simple1]: Simple argument
Func[simple1] says: Simple response
A: Simple final response

Q: Show me #image1 upside down
Ask Func[flip]: #image1
Func[flip] says: #image2
A: Here it is: #image2
"""


@pytest.fixture
def dummy_code_shot_agent():
    agent = code_shot.CodeShotAgent(
        BASE_PROMPT,
        FEW_SHOTS,
        conversational=False,
        agent_id="fake-agent",
        llm_settings=fixie_agents.LlmSettings(
            model="test-model", temperature=0.42, maximum_tokens=42
        ),
    )

    @agent.register_func
    def simple1(query: str) -> str:
        return "Simple response"

    @agent.register_func
    def flip(query: fixie_agents.Message) -> fixie_agents.Message:
        return fixie_agents.Message("#image2", embeds={"image2": query.embeds["image1"]})

    return agent


def test_few_shots_are_split_and_stripped(dummy_code_shot_agent):
    assert dummy_code_shot_agent.few_shots == [
        """Q: Sample query 1
Ask Func[simple1]: Simple argument
Func[simple1] says: Simple response
A: Simple final response""",
        """Q: Show me #image1 upside down
Ask Func[flip]: #image1
Func[flip] says: #image2
A: Here it is: #image2""",
    ]


def test_few_shots_as_list():
    agent = code_shot.CodeShotAgent(
        "  I am an agent.  ", ["  Q: hi\n  A: hello  "], agent_id="fake-agent"
    )
    assert agent.base_prompt == "I am an agent."
    assert agent.few_shots == ["Q: hi\nA: hello"]
    agent.validate()


def test_validate(dummy_code_shot_agent):
    dummy_code_shot_agent.validate()


def test_validate_unregistered_func():
    agent = code_shot.CodeShotAgent(BASE_PROMPT, FEW_SHOTS, agent_id="fake-agent")
    with pytest.raises(ValueError, match="simple1"):
        agent.validate()


def test_metadata(dummy_code_shot_agent):
    assert dummy_code_shot_agent.metadata() == metadata.CodeShotAgentMetadata(
        base_prompt=BASE_PROMPT,
        few_shots=dummy_code_shot_agent.few_shots,
        conversational=False,
        response_model=fixie_agents.LlmSettings(
            model="test-model", temperature=0.42, maximum_tokens=42
        ),
    )
    assert yaml.safe_load(dummy_code_shot_agent.metadata_yaml()) == {
        "base_prompt": BASE_PROMPT,
        "few_shots": dummy_code_shot_agent.few_shots,
        "conversational": False,
        "response_model": {
            "model": "test-model",
            "temperature": 0.42,
            "maximum_tokens": 42,
        },
        "type": "code_shot",
    }


def test_func_returns_embed(dummy_code_shot_agent):
    image = fixie_agents.Embed.from_bytes("image/png", b"\x89PNG")
    query = fixie_agents.AgentQuery(
        fixie_agents.Message("#image1", embeds={"image1": image})
    )

    response = dummy_code_shot_agent.handle_func("flip", query)

    assert response.error is None
    assert response.message.embed_refs() == ["image2"]
    assert response.message.embeds["image2"].content == b"\x89PNG"
