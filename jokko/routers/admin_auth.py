# jokko/routers/admin_auth.py
from fastapi import APIRouter, Depends, HTTPException, Request, status

from jokko.core.auth import AdminIdentity, is_admin_email, require_admin
from jokko.core.monitoring import MonitoringService, get_monitoring
from jokko.core.supabase_client import sign_in_with_password
from jokko.schemas.auth import (
    AdminLoginRequest,
    AdminLoginResponse,
    AdminTokenCheck,
    AdminUserInfo,
)

router = APIRouter(prefix="/admin/auth", tags=["Admin Auth"])


@router.post("", response_model=AdminLoginResponse)
def admin_login(
    payload: AdminLoginRequest,
    request: Request,
    monitoring: MonitoringService = Depends(get_monitoring),
):
    """
    Password sign-in for the admin dashboard.

    - 403 if the email is not an admin.
    - 401 if Supabase rejects the credentials.
    """
    ip = request.client.host if request.client else None

    if not is_admin_email(payload.email):
        monitoring.log_security(
            "Non-admin login attempt",
            context="auth",
            metadata={"email": payload.email, "ip": ip},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized: Admin access required",
        )

    token = sign_in_with_password(payload.email, payload.password)
    if token is None:
        monitoring.log_auth_failure("invalid_credentials", ip)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    monitoring.log_info("Admin login", context="auth", metadata={"email": payload.email})
    return AdminLoginResponse(
        success=True,
        token=token,
        user=AdminUserInfo(email=payload.email, role="admin"),
    )


@router.get("", response_model=AdminTokenCheck)
def check_admin_token(admin: AdminIdentity = Depends(require_admin)):
    """
    Validate the bearer token of the admin dashboard.
    """
    return AdminTokenCheck(valid=True, user=AdminUserInfo(email=admin.email, role="admin"))
