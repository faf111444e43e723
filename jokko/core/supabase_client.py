# jokko/core/supabase_client.py
import logging
from functools import lru_cache

from supabase import AuthApiError, create_client, Client

from jokko.core.config import get_settings

settings = get_settings()

logger = logging.getLogger(__name__)


class AuthUserNotFound(Exception):
    """The Supabase auth user does not exist (already deleted)."""


@lru_cache
def supabase_public() -> Client:
    """
    Create a Supabase client with the anon/public key.

    Use cases:
      - password sign-in for the admin dashboard

    Note: This client still respects RLS.
    """
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


@lru_cache
def supabase_admin() -> Client:
    """
    Create a Supabase client with the service role key.

    Use cases:
      - admin Auth operations (deleting auth users)

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


def sign_in_with_password(email: str, password: str) -> str | None:
    """
    Password sign-in through Supabase Auth.

    Returns:
        The session access token, or None if credentials are rejected.

    Raises:
        Exception: transport or configuration errors from Supabase, unchanged.
    """
    try:
        response = supabase_public().auth.sign_in_with_password(
            {"email": email, "password": password}
        )
    except AuthApiError as e:
        logger.info("Supabase sign-in rejected for %s: %s", email, e)
        return None

    if response.user is None or response.session is None:
        return None
    return response.session.access_token


def delete_auth_user(user_id: str) -> None:
    """
    Delete a user from auth.users.

    Raises:
        AuthUserNotFound: if Supabase reports the user does not exist.
        Exception: any other Supabase error, unchanged.
    """
    try:
        supabase_admin().auth.admin.delete_user(user_id)
    except Exception as e:
        code = getattr(e, "code", None)
        if code == "user_not_found" or "not found" in str(e).lower():
            raise AuthUserNotFound(user_id) from e
        raise
