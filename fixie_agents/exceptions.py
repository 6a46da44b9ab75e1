from __future__ import annotations

import contextlib
from typing import Optional

UNHANDLED_EXCEPTION_RESPONSE_TEXT = (
    "I'm sorry, an error occurred while processing your request."
)


class EmbedError(Exception):
    """Base class for errors raised while building or reading an Embed."""


class InvalidPayload(EmbedError):
    """Raised when an Embed is constructed with data that is not a base64 payload."""


class UnexpectedResponseStatus(EmbedError):
    """Raised when fetching an Embed's content returns a non-200 status."""

    def __init__(self, status_code: int, uri: str):
        super().__init__(f"Got status code {status_code} when fetching {uri}")
        self.status_code = status_code
        self.uri = uri


class NetworkFailure(EmbedError):
    """Raised when fetching an Embed's content fails below the HTTP layer."""

    def __init__(self, uri: str, reason: Optional[str] = None):
        message = f"Failed to fetch {uri}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.uri = uri


class DecodeError(EmbedError):
    """Raised when an Embed's stored data cannot be decoded as base64."""


class AgentException(Exception):
    """An exception raised by an Agent.

    Raise this from a Func to control the message and error code the user sees.
    Any extra keyword arguments are reported as error details.
    """

    def __init__(
        self,
        response_message: str,
        error_code: str,
        error_message: str,
        **details,
    ):
        super().__init__(error_message)
        self.response_message = response_message
        self.error_code = error_code
        self.error_message = error_message
        self.details = details

    @staticmethod
    @contextlib.contextmanager
    def exception_remapper():
        """Remaps unhandled exceptions into AgentExceptions."""
        try:
            yield
        except AgentException:
            raise
        except Exception as exc:
            raise AgentException(
                response_message=UNHANDLED_EXCEPTION_RESPONSE_TEXT,
                error_code="ERR_AGENT_UNHANDLED_EXCEPTION",
                error_message="An unhandled exception occurred while processing the request.",
                exception_type=type(exc).__name__,
            ) from exc
