"""Configuration constants, including URLs to Fixie services. Each may be
overridden with an environment variable of the same name."""

import os

# Base Fixie platform URL.
FIXIE_API_URL = os.getenv("FIXIE_API_URL", "https://app.fixie.ai")

# Fixie's UserStorage service URL.
FIXIE_USER_STORAGE_URL = os.getenv(
    "FIXIE_USER_STORAGE_URL", f"{FIXIE_API_URL}/api/userstorage"
)
# Fixie's OAuth redirect endpoint. Tokens sent to this endpoint will be redirected
# back to your agent.
FIXIE_OAUTH_REDIRECT_URL = os.getenv(
    "FIXIE_OAUTH_REDIRECT_URL", f"{FIXIE_API_URL}/oauth"
)


def agent_id_from_env():
    """Returns the agent ID configured via FIXIE_AGENT_ID, or None."""
    return os.getenv("FIXIE_AGENT_ID")
