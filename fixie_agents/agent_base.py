from __future__ import annotations

import abc
import dataclasses
import functools
import json
import logging
import re
import warnings
from typing import Callable, Dict, List, Optional

import yaml

from fixie_agents import agent_func
from fixie_agents import api
from fixie_agents import constants
from fixie_agents import exceptions
from fixie_agents import metadata as agent_metadata
from fixie_agents import oauth

# Regex that controls what Func names are allowed.
ACCEPTED_FUNC_NAMES = re.compile(r"^\w+$")

# Funcs with this prefix are provided by the platform and need no registration.
BUILTIN_FUNC_PREFIX = "fixie_"

logger = logging.getLogger(__name__)


class AgentBase(abc.ABC):
    """Base class for Fixie agents.

    An agent holds a registry of named `Func`s that the platform may call while
    answering a query. Serving the agent over HTTP is left to the caller;
    `handle_func` is the in-process entry point.
    """

    def __init__(
        self,
        agent_id: Optional[str] = None,
        oauth_params: Optional[oauth.OAuthParams] = None,
    ):
        self.agent_id = agent_id or constants.agent_id_from_env()
        self.oauth_params = oauth_params
        self._funcs: Dict[str, agent_func.AgentFunc] = {}
        if self.agent_id is None:
            warnings.warn(
                "No agent ID was specified, so funcs that use user storage or OAuth "
                "can't be registered. Pass agent_id or set FIXIE_AGENT_ID to correct this."
            )

        if oauth_params is not None:
            if self.agent_id is None:
                raise ValueError(
                    "oauth_params requires an agent ID. Pass agent_id or set "
                    "FIXIE_AGENT_ID."
                )
            # Register default Funcs.
            self.register_func(_oauth)

    @abc.abstractmethod
    def metadata(self) -> agent_metadata.Metadata:
        """Returns metadata about how the agent should be interacted with."""

    @abc.abstractmethod
    def validate(self):
        """Performs any validation after all funcs are registered."""

    def metadata_yaml(self) -> str:
        """Returns the agent's metadata in YAML format, as sent to the platform."""
        return yaml.safe_dump(dataclasses.asdict(self.metadata()), sort_keys=False)

    @property
    def func_names(self) -> List[str]:
        return list(self._funcs)

    def is_valid_func_name(self, func_name: str) -> bool:
        """Indicates if the given func name is valid (either registered or built-in).

        Args:
            func_name: The func name to check
        """
        return func_name in self._funcs or func_name.startswith(BUILTIN_FUNC_PREFIX)

    def register_func(
        self, func: Optional[Callable] = None, *, func_name: Optional[str] = None
    ) -> Callable:
        """A function decorator to register `Func`s with this agent.

        This decorator will not change the callable itself.

        Usage:

            agent = CodeShotAgent(base_prompt, few_shots)

            @agent.register_func
            def func(query):
                ...

        Optional Decorator Args:
            func_name: Optional function name to register this function by. If unset,
                the function name will be used.
        """
        if func is None:
            # Called with arguments: return the actual decorator.
            return functools.partial(self.register_func, func_name=func_name)

        func_name = func_name if func_name is not None else func.__name__
        if not ACCEPTED_FUNC_NAMES.fullmatch(func_name):
            raise ValueError(
                f"Function names may only be alphanumerics, got {func_name!r}."
            )
        if func_name in self._funcs:
            raise ValueError(f"Func[{func_name}] is already registered with agent.")

        self._funcs[func_name] = agent_func.AgentFunc.create(
            func,
            self.oauth_params,
            self.agent_id,
            default_message_type=api.Message,
            allow_generator=False,
        )
        logger.debug(f"Registered Func[{func_name}]")
        return func

    def handle_func(self, func_name: str, query: api.AgentQuery) -> api.AgentResponse:
        """Invokes Func[func_name] with `query` and returns its response.

        Errors raised by the func are reported in the response.

        Raises:
            AgentException: No func is registered under `func_name`.
        """
        try:
            func = self._funcs[func_name]
        except KeyError:
            raise exceptions.AgentException(
                response_message=f"I'm sorry, Func[{func_name}] is not defined.",
                error_code="ERR_FUNC_NOT_DEFINED",
                error_message="The function was not defined.",
                func_name=func_name,
                available_funcs=self.func_names,
            ) from None

        # Funcs don't stream; only the first response is used.
        response = next(iter(func(query)), None)
        if response is None:
            return agent_func.exception_to_response(
                exceptions.AgentException(
                    response_message=exceptions.UNHANDLED_EXCEPTION_RESPONSE_TEXT,
                    error_code="ERR_FUNC_NO_RESPONSE",
                    error_message="The function returned no response.",
                    func_name=func_name,
                )
            )
        return response


def _oauth(query: api.Message, oauth_handler: oauth.OAuthHandler) -> str:
    """Serves Func[_oauth] which is used upon auth redirect callback."""
    auth_request = json.loads(query.text)
    oauth_handler.authorize(auth_request["state"], auth_request["code"])
    return "Authorization successful!"
