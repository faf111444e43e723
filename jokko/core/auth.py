# jokko/core/auth.py
import uuid
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session, select

from jokko.core.config import get_settings
from jokko.core.monitoring import MonitoringService, get_monitoring
from jokko.database import get_session
from jokko.models.user import User

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so we can support "guest" mode (unauthenticated).
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AdminIdentity:
    """Claims of an allow-listed admin token."""

    user_id: str
    email: str


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def _default_name(email: str | None, phone: str | None) -> str | None:
    """
    Derive a default display name if the user has not completed their
    profile yet.
    """
    if email:
        return email.split("@", 1)[0]
    return phone


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
    monitoring: MonitoringService = Depends(get_monitoring),
) -> User | None:
    """
    Resolve the current user from a Supabase JWT.

    Flow:
      1. If no Authorization header => guest => return None.
      2. Decode JWT => extract 'sub' (auth user id), 'email', 'phone'.
      3. Convert 'sub' to UUID to match User.id type.
      4. Find user profile in public.users.
      5. If missing, auto-provision minimal profile.

    Raises:
        HTTPException(401): if token is malformed or missing required claims.
    """
    if credentials is None:
        return None  # guest mode

    try:
        payload = decode_access_token(credentials.credentials)
    except HTTPException:
        monitoring.log_auth_failure("invalid_token", _client_ip(request))
        raise

    sub = payload.get("sub")
    if not sub:
        monitoring.log_auth_failure("missing_sub", _client_ip(request))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )

    # Supabase provides sub as a string; enforce UUID
    try:
        sub_uuid = uuid.UUID(sub)
    except ValueError:
        monitoring.log_auth_failure("invalid_sub", _client_ip(request))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    user = session.get(User, sub_uuid)

    if user is None:
        email = payload.get("email") or None
        phone = payload.get("phone") or None
        user = User(
            id=sub_uuid,
            email=email,
            phone_e164=f"+{phone.lstrip('+')}" if phone else None,
            name=_default_name(email, phone),
        )
        session.add(user)
        session.commit()
        session.refresh(user)

    return user


def get_current_user_id(user: User | None = Depends(get_current_user)) -> uuid.UUID | None:
    """Caller id for network-aware reads; None for guests."""
    return user.id if user else None


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): if user is None.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user


def is_admin_email(email: str | None) -> bool:
    return bool(email) and email.strip().lower() in settings.admin_emails


def require_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    monitoring: MonitoringService = Depends(get_monitoring),
) -> AdminIdentity:
    """
    Enforce admin access.

    Admins are identified by the token's email claim being listed in
    ADMIN_EMAILS. No profile row is needed.

    Raises:
        HTTPException(401): missing/invalid token.
        HTTPException(403): email not in the allow-list.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
        )

    try:
        payload = decode_access_token(credentials.credentials)
    except HTTPException:
        monitoring.log_auth_failure("invalid_admin_token", _client_ip(request))
        raise

    email = payload.get("email")
    if not is_admin_email(email):
        monitoring.log_security(
            "Admin access denied",
            context="auth",
            user_id=payload.get("sub"),
            metadata={"email": email, "ip": _client_ip(request)},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized: Admin access required",
        )

    return AdminIdentity(user_id=str(payload.get("sub") or ""), email=email)
