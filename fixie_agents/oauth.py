import dataclasses
import datetime
import json
import logging
import secrets
from typing import Dict, List, Optional
from urllib import parse

import dataclasses_json
import requests

from fixie_agents import api
from fixie_agents import constants
from fixie_agents import user_storage

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class OAuthParams:
    """Encapsulates OAuth parameters, including secret, auth uri, and the scope.

    Agents who want to use OAuth flow, should declare their secrets via this object.
    """

    client_id: str
    client_secret: str
    auth_uri: str
    token_uri: str
    scopes: List[str]

    @classmethod
    def from_client_secrets_file(
        cls, secrets_path: str, scopes: List[str]
    ) -> "OAuthParams":
        """Initializes OAuth from a secrets file, e.g., as obtained from the Google
        Cloud Console.

        Args:
            secrets_path: Path to a json file holding secret values.
            scopes: A list of scopes that access needs to be requested for.
        """
        with open(secrets_path, "r") as file:
            data = json.load(file)
        client_secrets = data.get("web") or data.get("installed")
        if client_secrets is None:
            raise ValueError(
                f"{secrets_path} has neither a 'web' nor an 'installed' section."
            )
        return cls(
            client_secrets["client_id"],
            client_secrets["client_secret"],
            client_secrets["auth_uri"],
            client_secrets["token_uri"],
            scopes,
        )


class OAuthHandler:
    """Runs the OAuth authorization-code flow for the user behind a query.

    Credentials are kept in the user's UserStorage, so they survive between
    queries. Main methods:
        * user_token: Returns the user's OAuth access token, or None if they are
            not authorized.
        * get_authorization_url: Returns a url that the users can click to
            authorize the agent.
        * authorize: Exchanges an access code (from the auth redirect callback)
            for an access token and saves it.
    """

    # OAuth keys reserved in UserStorage
    OAUTH_STATE_KEY = "_oauth_state"
    OAUTH_TOKEN_KEY = "_oauth_token"

    def __init__(
        self,
        oauth_params: OAuthParams,
        query: api.AgentQuery,
        agent_id: str,
    ):
        self._storage = user_storage.UserStorage(query, agent_id)
        self._oauth_params = oauth_params
        self._agent_id = agent_id

    def get_authorization_url(self) -> str:
        """Returns a URL to launch the authorization flow."""
        auth_state = f"{self._agent_id}:{secrets.token_urlsafe()}"
        data = {
            "response_type": "code",
            "access_type": "offline",
            "client_id": self._oauth_params.client_id,
            "scope": " ".join(self._oauth_params.scopes),
            "state": auth_state,
            "redirect_uri": constants.FIXIE_OAUTH_REDIRECT_URL,
        }
        # Saved so the redirect can be checked in authorize().
        self._storage[self.OAUTH_STATE_KEY] = auth_state
        return self._oauth_params.auth_uri + "?" + parse.urlencode(data)

    def user_token(self) -> Optional[str]:
        """Returns current user's OAuth access token, or None if not authorized."""
        try:
            creds_json = self._storage[self.OAUTH_TOKEN_KEY]
        except KeyError:
            return None

        creds = None
        if isinstance(creds_json, str):
            try:
                creds = _OAuthCredentials.from_json(creds_json)
            except (AttributeError, TypeError, LookupError, ValueError):
                pass
        if creds is None:
            logger.warning(
                f"Value at user_storage[{self.OAUTH_TOKEN_KEY!r}] is not valid "
                f"OAuth credentials, discarding it: {creds_json!r}"
            )
            del self._storage[self.OAUTH_TOKEN_KEY]
            return None

        if creds.expired:
            logger.debug(f"Credentials expired at {creds.expiry}")
            if not creds.refresh_token:
                logger.warning("No refresh token available")
                return None
            creds.refresh(self._oauth_params)
            self._save_credentials(creds)
        return creds.access_token

    def authorize(self, state: str, code: str):
        """Exchanges the received access `code` for credentials.

        If successful, the credentials will be saved in user storage.

        Raises:
            ValueError: `state` doesn't match the one issued by
                get_authorization_url, or the token server reported an error.
        """
        try:
            expected_state = self._storage[self.OAUTH_STATE_KEY]
        except KeyError:
            expected_state = None
        if state != expected_state:
            logger.warning(
                f"Unknown state token, expected: {expected_state!r} actual: {state!r}"
            )
            raise ValueError("Unknown state token")

        data = {
            "grant_type": "authorization_code",
            "client_id": self._oauth_params.client_id,
            "client_secret": self._oauth_params.client_secret,
            "code": code,
            "redirect_uri": constants.FIXIE_OAUTH_REDIRECT_URL,
        }
        response = _send_token_request(self._oauth_params.token_uri, data)
        logger.debug(
            f"OAuth auth request succeeded, lifetime={response.expires_in} "
            f"refreshable={response.refresh_token is not None}"
        )
        self._save_credentials(
            _OAuthCredentials(
                response.access_token,
                _get_expiry(response.expires_in),
                response.refresh_token,
            )
        )

    def _save_credentials(self, credentials: "_OAuthCredentials"):
        self._storage[self.OAUTH_TOKEN_KEY] = credentials.to_json()


def _encode_iso_format(value: Optional[datetime.datetime]) -> Optional[str]:
    return None if value is None else value.isoformat()


def _decode_iso_format(value: Optional[str]) -> Optional[datetime.datetime]:
    return None if value is None else datetime.datetime.fromisoformat(value)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclasses.dataclass
class _OAuthCredentials(dataclasses_json.DataClassJsonMixin):
    """Holds OAuth credentials, their expiration, and refresh token for a user."""

    access_token: str
    expiry: Optional[datetime.datetime] = dataclasses.field(
        default=None,
        metadata=dataclasses_json.config(
            encoder=_encode_iso_format, decoder=_decode_iso_format
        ),
    )
    refresh_token: Optional[str] = None

    @property
    def expired(self) -> bool:
        return self.expiry is not None and _utcnow() > self.expiry

    def refresh(self, oauth_params: OAuthParams):
        """Refreshes the access token."""
        if not self.refresh_token:
            raise ValueError("Cannot refresh without a refresh token")

        data = {
            "grant_type": "refresh_token",
            "client_id": oauth_params.client_id,
            "client_secret": oauth_params.client_secret,
            "refresh_token": self.refresh_token,
        }
        response = _send_token_request(oauth_params.token_uri, data)
        logger.debug(f"OAuth refresh request succeeded, lifetime={response.expires_in}")
        self.access_token = response.access_token
        self.expiry = _get_expiry(response.expires_in)
        if response.refresh_token:
            self.refresh_token = response.refresh_token


@dataclasses.dataclass
class _OAuthTokenResponse(dataclasses_json.DataClassJsonMixin):
    """Holds a token response from the OAuth server."""

    access_token: str
    token_type: str
    scope: Optional[str] = None
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None


def _send_token_request(uri: str, data: Dict[str, str]) -> _OAuthTokenResponse:
    """POSTs `data` to `uri` and parses the output as an _OAuthTokenResponse."""
    response = requests.post(uri, data=data)
    response.raise_for_status()
    content_type = response.headers.get("Content-Type", "").split(";")[0].strip()
    # Servers that omit the header are assumed to answer in JSON.
    if content_type in ("application/json", ""):
        response_dict = response.json()
    elif content_type == "application/x-www-form-urlencoded":
        # parse_qs returns a list for each key, even if there's only one value.
        response_dict = {k: v[0] for k, v in parse.parse_qs(response.text).items()}
        if "expires_in" in response_dict:
            response_dict["expires_in"] = int(response_dict["expires_in"])
    else:
        raise ValueError(f"Unexpected response content type: {content_type}")
    if "error" in response_dict:
        raise ValueError(f"OAuth token request failed: {response_dict['error']}")
    return _OAuthTokenResponse.from_dict(response_dict)


def _get_expiry(expires_in_seconds: Optional[int]) -> Optional[datetime.datetime]:
    """Returns the absolute expiration datetime from a relative expires_in_seconds."""
    if expires_in_seconds is None:
        return None
    return _utcnow() + datetime.timedelta(seconds=expires_in_seconds)
