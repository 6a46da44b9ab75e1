import base64
import json
from typing import TYPE_CHECKING, Dict, Iterator, List, MutableMapping, Optional, Union

import requests

from fixie_agents import constants

if TYPE_CHECKING:
    from fixie_agents.api import AgentQuery

UserStoragePrimitives = Union[bool, int, float, str, bytes, None]
UserStorageType = Union[
    UserStoragePrimitives,
    List["UserStorageType"],
    Dict[str, "UserStorageType"],
]
JsonType = Union[None, int, float, str, bool, List["JsonType"], Dict[str, "JsonType"]]

# Marks a JSON object that carries base64-encoded bytes.
_BYTES_TYPE_TAG = "_bytes_ascii"


class UserStorage(MutableMapping[str, UserStorageType]):
    """UserStorage provides a dict-like interface to a user-specific storage.

    Each agent sees its own key space for each user. Requests are authorized with
    the access token carried by the incoming query.

    Usage:
    >>> from fixie_agents import AgentQuery, Message
    >>> query = AgentQuery(
    ...   Message("incoming query"),
    ...   access_token="fake-access-token"
    ... )
    >>> storage = UserStorage(query, "fake-agent")
    >>> storage["key"] = "value"
    >>> storage["complex-key"] = {"key1": {"key2": [12, False, None, b"binary"]}}
    >>> assert len(storage) == 2
    >>> assert storage["complex-key"]["key1"]["key2"][-1] == b"binary"
    """

    def __init__(
        self,
        query: "AgentQuery",
        agent_id: str,
        userstorage_url: Optional[str] = None,
    ):
        self._agent_id = agent_id
        self._base_url = (
            userstorage_url or constants.FIXIE_USER_STORAGE_URL
        ).rstrip("/")
        self._session = requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {query.access_token}"})

    @property
    def agent_id(self) -> str:
        return self._agent_id

    def _url(self, key: Optional[str] = None) -> str:
        url = f"{self._base_url}/{self._agent_id}"
        return url if key is None else f"{url}/{key}"

    def __setitem__(self, key: str, value: UserStorageType):
        response = self._session.post(self._url(key), json={"data": to_json(value)})
        response.raise_for_status()

    def __getitem__(self, key: str) -> UserStorageType:
        try:
            response = self._session.get(self._url(key))
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise KeyError(f"Key {key} not found") from e
        return from_json(response.json()["data"])

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        response = self._session.head(self._url(key))
        return response.ok

    def __delitem__(self, key: str):
        try:
            response = self._session.delete(self._url(key))
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise KeyError(f"Key {key} not found") from e

    def _keys(self) -> List[str]:
        response = self._session.get(self._url())
        response.raise_for_status()
        return [item["key"] for item in response.json()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys())

    def __len__(self) -> int:
        return len(self._keys())


def to_json(obj: UserStorageType) -> str:
    """Serializes a UserStorageType to a JSON string."""
    return json.dumps(to_json_type(obj))


def from_json(json_dump: str) -> UserStorageType:
    """Deserializes a UserStorageType from a JSON string."""
    return from_json_type(json.loads(json_dump))


def to_json_type(obj: UserStorageType) -> JsonType:
    """Encodes a UserStorageType to JsonType, tagging bytes as base64 objects."""
    if isinstance(obj, bytes):
        return {"type": _BYTES_TYPE_TAG, "data": base64.b64encode(obj).decode("ascii")}
    if isinstance(obj, list):
        return [to_json_type(item) for item in obj]
    if isinstance(obj, dict):
        return {key: to_json_type(value) for key, value in obj.items()}
    return obj


def from_json_type(obj: JsonType) -> UserStorageType:
    """Decodes a JsonType to UserStorageType."""
    if _is_encoded_bytes(obj):
        return base64.b64decode(obj["data"])  # type: ignore
    if isinstance(obj, list):
        return [from_json_type(item) for item in obj]
    if isinstance(obj, dict):
        return {key: from_json_type(value) for key, value in obj.items()}
    return obj


def _is_encoded_bytes(obj: JsonType) -> bool:
    """Returns True if obj is {"type": "_bytes_ascii", "data": <str>}."""
    return (
        isinstance(obj, dict)
        and set(obj.keys()) == {"type", "data"}
        and obj["type"] == _BYTES_TYPE_TAG
        and isinstance(obj["data"], str)
    )
