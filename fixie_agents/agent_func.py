from __future__ import annotations

import collections.abc
import inspect
import traceback
import typing
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    Optional,
    Sequence,
    Tuple,
    Type,
    Union,
    get_type_hints,
)

from fixie_agents import api
from fixie_agents import exceptions
from fixie_agents import oauth
from fixie_agents import user_storage

# An ArgumentMapper produces the value of one func argument from the incoming query.
ArgumentMapper = Callable[[api.AgentQuery], Any]

# A BoundArgumentMapper is an ArgumentMapper bound to a parameter name.
BoundArgumentMapper = Tuple[str, ArgumentMapper]

FuncResult = Union[
    api.AgentResponse,
    api.Message,
    str,
    Iterable[Union[api.AgentResponse, api.Message, str]],
]

MessageType = Union[Type[str], Type[api.Message], Type[api.AgentQuery]]

_MESSAGE_MAPPERS: Dict[type, ArgumentMapper] = {
    api.AgentQuery: lambda query: query,
    api.Message: lambda query: query.message,
    str: lambda query: query.message.text,
}
_MESSAGE_PARAM_NAMES = ("query", "message")
_VALID_RETURN_TYPES = (api.AgentResponse, api.Message, str)

# Argument roles other than the message, by type annotation and by name.
_USER_STORAGE = "user_storage"
_OAUTH_HANDLER = "oauth_handler"
_ROLE_TYPES = {user_storage.UserStorage: _USER_STORAGE, oauth.OAuthHandler: _OAUTH_HANDLER}


def exception_to_response(e: exceptions.AgentException) -> api.AgentResponse:
    """Converts an AgentException into an AgentResponse that reports the error."""
    error = api.AgentError(
        code=e.error_code,
        message=e.error_message,
        details={
            "traceback": traceback.format_exception(type(e), e, e.__traceback__),
            **e.details,
        },
    )
    return api.AgentResponse(api.Message(e.response_message), error=error)


class AgentFunc:
    """A Python function that can be invoked by Fixie in the context of a user query.

    Wrapped functions can take up to three arguments:

    1. A message or query of type: `str`, `api.Message`, or `api.AgentQuery`;
       name: "query", or "message"; or the first parameter if no other rules apply.
    2. A user storage object of type `user_storage.UserStorage` or name "user_storage".
    3. An OAuth handler of type `oauth.OAuthHandler` or name "oauth_handler".

    Type annotations take precedence over names.

    The function may return an `api.AgentResponse`, an `api.Message`, a `str` or an
    iterable of one of the same. If an iterable is returned and multiple responses
    aren't allowed, all values after the first are dropped.
    """

    def __init__(
        self,
        impl: Callable[..., FuncResult],
        argument_mappers: Iterable[BoundArgumentMapper],
        allow_multiple_responses: bool,
    ):
        self._impl = impl
        self._argument_mappers = tuple(argument_mappers)
        self._allow_multiple_responses = allow_multiple_responses

    @property
    def name(self) -> str:
        return self._impl.__name__

    def __call__(self, query: api.AgentQuery) -> Iterator[api.AgentResponse]:
        """Invokes the function with `query` and yields its responses.

        Exceptions raised by the function are reported as error responses.
        """
        try:
            with exceptions.AgentException.exception_remapper():
                kwargs = {name: mapper(query) for name, mapper in self._argument_mappers}
                result = self._impl(**kwargs)
        except exceptions.AgentException as e:
            return iter([exception_to_response(e)])

        def _gen() -> Iterator[api.AgentResponse]:
            # Exceptions may also surface while iterating a generator result.
            try:
                with exceptions.AgentException.exception_remapper():
                    yield from self.adapt_result(result)
            except exceptions.AgentException as e:
                yield exception_to_response(e)

        return _gen()

    def adapt_result(self, result: FuncResult) -> Iterator[api.AgentResponse]:
        """Adapts any allowed func return type into AgentResponses."""
        if isinstance(result, api.AgentResponse):
            yield result
        elif isinstance(result, api.Message):
            yield api.AgentResponse(message=result)
        elif isinstance(result, str):
            yield api.AgentResponse(message=api.Message(result))
        elif isinstance(result, Iterable):
            for value in result:
                yield from self.adapt_result(value)
                if not self._allow_multiple_responses:
                    break
        else:
            raise TypeError(
                f"The func result was type {type(result)}, but must be a str, "
                "Message, AgentResponse, or iterable."
            )

    @classmethod
    def create(
        cls,
        func: Callable,
        oauth_params: Optional[oauth.OAuthParams],
        agent_id: Optional[str],
        default_message_type: MessageType = api.Message,
        allow_generator: bool = False,
    ) -> AgentFunc:
        """Constructs an AgentFunc from a Python function.

        Args:
            func: the Python function to wrap
            oauth_params: optional OAuthParams, required if the func takes an
                OAuthHandler
            agent_id: the agent's ID, required if the func takes a UserStorage or
                an OAuthHandler
            default_message_type: the message type to pass if the message parameter
                has no type annotation
            allow_generator: whether the function may return multiple responses

        Raises:
            TypeError: the function's signature can't be served.
        """
        if not inspect.isfunction(func):
            raise TypeError(
                f"Registered function {func!r} is not a function, but a {type(func)!r}."
            )
        func_name = func.__name__
        params = inspect.signature(func).parameters
        if any(
            param.kind in (param.VAR_KEYWORD, param.VAR_POSITIONAL)
            for param in params.values()
        ):
            raise TypeError(
                f"Registered function {func_name} cannot accept variable args: {params!r}."
            )

        type_hints = get_type_hints(func)
        roles = _bind_roles(func_name, list(params), type_hints, default_message_type)

        mappers = []
        for name, role in roles.items():
            if role == _USER_STORAGE:
                _require(agent_id, func_name, "agent_id", role)
                mappers.append(
                    (name, lambda query: user_storage.UserStorage(query, agent_id))
                )
            elif role == _OAUTH_HANDLER:
                _require(oauth_params, func_name, "oauth_params", role)
                _require(agent_id, func_name, "agent_id", role)
                mappers.append(
                    (
                        name,
                        lambda query: oauth.OAuthHandler(oauth_params, query, agent_id),
                    )
                )
            else:
                mappers.append((name, _MESSAGE_MAPPERS[role]))

        _validate_return_type(func_name, type_hints.get("return"), allow_generator)
        return cls(func, mappers, allow_generator)


def _bind_roles(
    func_name: str,
    param_names: Sequence[str],
    type_hints: Dict[str, Any],
    default_message_type: MessageType,
) -> Dict[str, Any]:
    """Maps each parameter name to its role: a message type, or a role name."""
    roles: Dict[str, Any] = {}
    for name in param_names:
        hint = type_hints.get(name)
        if hint in _MESSAGE_MAPPERS:
            roles[name] = hint
        elif hint in _ROLE_TYPES:
            roles[name] = _ROLE_TYPES[hint]
        elif hint is None and name in _MESSAGE_PARAM_NAMES:
            roles[name] = default_message_type
        elif hint is None and name in (_USER_STORAGE, _OAUTH_HANDLER):
            roles[name] = name

    # def f(x): x is the message
    # def f(x, user_storage): x is the message
    # def f(user_storage, x), def f(x, y), def f(x: int): not allowed
    unbound = [name for name in param_names if name not in roles]
    has_message = any(role in _MESSAGE_MAPPERS for role in roles.values())
    if (
        not has_message
        and len(unbound) == 1
        and unbound[0] == param_names[0]
        and unbound[0] not in type_hints
    ):
        roles[unbound[0]] = default_message_type
        unbound = []

    if unbound:
        raise TypeError(
            f"Registered function {func_name} had unknown parameters: {unbound}"
        )

    bound_roles = [
        "message" if role in _MESSAGE_MAPPERS else role for role in roles.values()
    ]
    duplicates = {role for role in bound_roles if bound_roles.count(role) > 1}
    if duplicates:
        raise TypeError(
            f"Registered function {func_name} takes more than one {sorted(duplicates)} "
            "argument."
        )
    return roles


def _require(value: Any, func_name: str, setting: str, role: str):
    if value is None:
        raise TypeError(
            f"Function {func_name} that accepts {role!r} as an argument cannot be "
            f"registered with an agent that hasn't set {setting!r}."
        )


def _validate_return_type(func_name: str, return_type: Any, allow_generator: bool):
    if return_type is None or return_type in _VALID_RETURN_TYPES:
        return

    if allow_generator:
        origin_type = typing.get_origin(return_type)
        if isinstance(origin_type, type) and issubclass(
            origin_type, collections.abc.Iterable
        ):
            args = typing.get_args(return_type)
            if not args or args[0] in _VALID_RETURN_TYPES:
                return

    raise TypeError(
        f"Expected registered function {func_name} to return an AgentResponse, a "
        f"Message, or str but it returns {return_type}."
    )
