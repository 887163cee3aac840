"""Identity resolution for Travel Atlas.

Sign-up and login happen in the browser against Supabase; the backend only
resolves the bearer token sent with each request to a user.
"""

import os
import time
from typing import Optional, Dict

import requests

# How long a resolved token is trusted before asking Supabase again
TOKEN_CACHE_DURATION = 5 * 60  # 5 minutes in seconds

# User that owns every record when authentication is disabled
DEFAULT_USER_ID = "local-user"
DEFAULT_USER = {"id": DEFAULT_USER_ID, "email": None, "name": "Local Traveler"}

# In-memory token cache (entries persist while server is running)
_sessions = {}  # type: Dict[str, dict]


def get_supabase_url():
    # type: () -> Optional[str]
    url = os.environ.get("SUPABASE_URL")
    return url.rstrip("/") if url else None


def get_supabase_key():
    # type: () -> Optional[str]
    """Key sent as the ``apikey`` header on Supabase REST calls."""
    return os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or os.environ.get("SUPABASE_ANON_KEY")


def is_auth_enabled():
    # type: () -> bool
    """Check if authentication is enabled.

    Requires a Supabase project to validate tokens against.
    """
    if os.environ.get("AUTH_DISABLED", "").lower() == "true":
        return False
    return get_supabase_url() is not None


def parse_bearer_token(header):
    # type: (Optional[str]) -> Optional[str]
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header:
        return None
    parts = header.strip().split(None, 1)
    if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1].strip():
        return parts[1].strip()
    return None


def get_display_name(user):
    # type: (Dict) -> str
    """Name shown as an atlas file's author."""
    metadata = user.get("user_metadata") or {}
    if metadata.get("full_name"):
        return metadata["full_name"]
    if user.get("name") and user.get("id") == DEFAULT_USER_ID:
        return user["name"]
    email = user.get("email")
    if email:
        return email.split("@")[0]
    return "Anonymous"


def fetch_supabase_user(token):
    # type: (str) -> Optional[Dict]
    """Ask Supabase which user a token belongs to."""
    headers = {"Authorization": "Bearer " + token}
    key = get_supabase_key()
    if key:
        headers["apikey"] = key

    try:
        response = requests.get(get_supabase_url() + "/auth/v1/user", headers=headers, timeout=10)
    except requests.RequestException as e:
        print(f"[AUTH] Could not reach Supabase: {e}")
        return None

    if response.status_code != 200:
        print(f"[AUTH] Token rejected by Supabase (status {response.status_code})")
        return None
    return response.json()


def validate_token(token):
    # type: (Optional[str]) -> Optional[dict]
    """Validate a bearer token and return the user if valid."""
    if not token:
        return None

    session = _sessions.get(token)
    if session:
        # Check if cached entry has expired
        if time.time() <= session["expires"]:
            return session["user"]
        del _sessions[token]

    data = fetch_supabase_user(token)
    if not data or not data.get("id"):
        return None

    user = {
        "id": data["id"],
        "email": data.get("email"),
        "user_metadata": data.get("user_metadata") or {},
    }
    user["name"] = get_display_name(user)

    _sessions[token] = {
        "user": user,
        "created": time.time(),
        "expires": time.time() + TOKEN_CACHE_DURATION,
    }
    return user


def get_request_user(authorization_header):
    # type: (Optional[str]) -> Optional[dict]
    """Resolve the user making a request. Returns None if unauthenticated."""
    if not is_auth_enabled():
        return DEFAULT_USER
    return validate_token(parse_bearer_token(authorization_header))


def clear_sessions():
    """Forget all cached tokens."""
    _sessions.clear()
