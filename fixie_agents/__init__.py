import importlib.metadata

from fixie_agents.agent_base import AgentBase
from fixie_agents.api import AgentError
from fixie_agents.api import AgentQuery
from fixie_agents.api import AgentResponse
from fixie_agents.api import Message
from fixie_agents.code_shot import CodeShotAgent
from fixie_agents.embed import Embed
from fixie_agents.exceptions import AgentException
from fixie_agents.exceptions import DecodeError
from fixie_agents.exceptions import EmbedError
from fixie_agents.exceptions import InvalidPayload
from fixie_agents.exceptions import NetworkFailure
from fixie_agents.exceptions import UnexpectedResponseStatus
from fixie_agents.llm_settings import LlmSettings
from fixie_agents.oauth import OAuthHandler
from fixie_agents.oauth import OAuthParams
from fixie_agents.standalone import StandaloneAgent
from fixie_agents.user_storage import UserStorage

__all__ = [
    "AgentBase",
    "AgentError",
    "AgentException",
    "AgentQuery",
    "AgentResponse",
    "CodeShotAgent",
    "DecodeError",
    "Embed",
    "EmbedError",
    "InvalidPayload",
    "LlmSettings",
    "Message",
    "NetworkFailure",
    "OAuthHandler",
    "OAuthParams",
    "StandaloneAgent",
    "UnexpectedResponseStatus",
    "UserStorage",
]

__version__ = importlib.metadata.version(__name__)
