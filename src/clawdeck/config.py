"""Environment-driven settings for the gateway connection."""

import os

DEFAULT_GATEWAY_URL = "http://127.0.0.1:18789"


def get_gateway_url() -> str:
    """Return the base URL of the agent gateway."""
    env = os.environ.get("CLAWDECK_GATEWAY_URL")
    if env:
        return env.rstrip("/")
    return DEFAULT_GATEWAY_URL


def get_gateway_token() -> str | None:
    """Return the bearer token for /tools/invoke, or None when unauthenticated."""
    return os.environ.get("CLAWDECK_GATEWAY_TOKEN") or None


def get_gateway_timeout() -> float:
    """Return the per-request timeout in seconds."""
    env = os.environ.get("CLAWDECK_GATEWAY_TIMEOUT")
    if env:
        try:
            return float(env)
        except ValueError:
            pass
    return 10.0


def get_session_key() -> str:
    """Return the session key of the conversation shown in the chat view."""
    return os.environ.get("CLAWDECK_SESSION_KEY") or "main"
