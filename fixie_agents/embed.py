"""Embeds: binary objects attached to a Message."""

from __future__ import annotations

import base64
import binascii
import dataclasses
import logging
from typing import Optional, Tuple, Union
from urllib import parse

import dataclasses_json
import requests

from fixie_agents import exceptions

logger = logging.getLogger(__name__)

# Passed through to requests: a single timeout, or a (connect, read) tuple.
Timeout = Union[None, float, Tuple[float, float]]


def _looks_like_uri(value: str) -> bool:
    """Returns True if `value` parses as a URI with a scheme and an authority or path."""
    try:
        parts = parse.urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc or parts.path)


@dataclasses.dataclass(frozen=True)
class Embed(dataclasses_json.DataClassJsonMixin):
    """An Embed represents a binary object attached to a Message.

    Embeds are immutable. Build one from base64 data you already hold:

        embed = Embed("text/plain", "SGVsbG8sIFdvcmxkIQ==")

    or fetch the content from a URL up front:

        embed = Embed.from_uri("image/png", "https://example.com/cat.png")
    """

    # The MIME content type of the object, e.g., "image/png" or "application/json".
    content_type: str

    # The base64-encoded data for this embed.
    base64_data: str

    def __post_init__(self):
        if not self.content_type:
            raise exceptions.InvalidPayload("Embed content_type must be non-empty.")
        # This won't catch every type of non-base64 string, but it will catch a
        # common mistake.
        if _looks_like_uri(self.base64_data):
            raise exceptions.InvalidPayload(
                f"Invalid base64 data: {self.base64_data!r}. If you're trying to "
                "pass a URI, use Embed.from_uri() instead."
            )

    @classmethod
    def from_uri(
        cls,
        content_type: str,
        uri: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: Timeout = None,
    ) -> Embed:
        """Fetches the object at `uri` and returns an Embed holding its content.

        Exactly one GET request is made. There is no retry and no default timeout;
        pass `timeout`, or a configured `session`, to bound the request.

        Raises:
            UnexpectedResponseStatus: The server answered with a status other than 200.
            NetworkFailure: The request failed before a response was received.
        """
        logger.debug(f"Fetching {content_type} embed from {uri}")
        get = session.get if session is not None else requests.get
        try:
            response = get(uri, timeout=timeout)
        except requests.exceptions.RequestException as e:
            raise exceptions.NetworkFailure(uri, str(e)) from e

        if response.status_code != 200:
            raise exceptions.UnexpectedResponseStatus(response.status_code, uri)

        return cls.from_bytes(content_type, response.content)

    @classmethod
    def from_bytes(cls, content_type: str, content: bytes) -> Embed:
        """Returns an Embed holding raw `content`."""
        return cls(content_type, base64.b64encode(content).decode("ascii"))

    @classmethod
    def from_text(cls, content_type: str, text: str, encoding: str = "utf-8") -> Embed:
        """Returns an Embed holding `text`, encoded with `encoding`."""
        return cls.from_bytes(content_type, text.encode(encoding))

    @property
    def content(self) -> bytes:
        """The decoded content of this Embed.

        Raises:
            DecodeError: The stored data is not valid base64.
        """
        try:
            return base64.b64decode(self.base64_data, validate=True)
        except binascii.Error as e:
            raise exceptions.DecodeError(
                f"Embed data is not valid base64: {self.base64_data!r}"
            ) from e

    @property
    def text(self) -> str:
        """The content of this Embed decoded as UTF-8."""
        return self.content.decode("utf-8")
