"""This module holds objects that represent the API interface by which Agents talk to
the Fixie ecosystem."""

import dataclasses
import re
from typing import Any, Dict, Generator, List, Optional

import dataclasses_json

from fixie_agents.embed import Embed

# An embed reference is a "#" followed by the embed key. "##" escapes a literal "#".
ODD_NUM_POUNDS = re.compile(r"(?<!#)(##)*#(?!#)")
EMBED_REF = re.compile(ODD_NUM_POUNDS.pattern + r"(?P<embed_key>\w+)(?!\w)")


@dataclasses.dataclass
class Message(dataclasses_json.DataClassJsonMixin):
    """A Message represents a single message sent to or from a Fixie agent."""

    # The text of the message.
    text: str

    # A mapping of embed keys to Embed objects.
    embeds: Dict[str, Embed] = dataclasses.field(default_factory=dict)

    def embed_refs(self) -> List[str]:
        """Returns the embed keys referenced in the text (e.g. "#image1"), in order."""
        return [match.group("embed_key") for match in EMBED_REF.finditer(self.text)]


@dataclasses.dataclass
class AgentQuery(dataclasses_json.DataClassJsonMixin):
    """A standalone query sent to a Fixie agent."""

    # The contents of the query.
    message: Message

    # This is an access token associated with the user for whom this query was
    # created. Agents wishing to make queries to other agents, or to other
    # Fixie services, should carry this token in the query so that it
    # can be tied back to the original user.
    access_token: Optional[str] = None


@dataclasses.dataclass
class AgentError(dataclasses_json.DataClassJsonMixin):
    """An error that occurred while an Agent was processing a query."""

    code: str
    message: str
    details: Dict[str, Any] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass
class AgentResponse(dataclasses_json.DataClassJsonMixin):
    """A response message from an Agent."""

    # The text of the response message.
    message: Message

    # Set when the response is reporting a failure.
    error: Optional[AgentError] = None


AgentResponseGenerator = Generator[AgentResponse, None, None]
