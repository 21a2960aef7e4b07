"""Users API router: current-user profile, password, sessions and 2FA."""

from fastapi import APIRouter, Depends, Query, Request

from authcore.api.deps import client_info, get_container
from authcore.core.security import get_current_user_id
from authcore.schemas.schemas import (
    ChangePasswordRequest,
    MessageResponse,
    ProfileUpdateRequest,
    SessionListResponse,
    SessionOut,
    TwoFactorCodeRequest,
    TwoFactorDisableRequest,
    TwoFactorSetupResponse,
    UserOut,
)
from authcore.services.container import AuthContainer

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserOut)
def get_me(user_id: int = Depends(get_current_user_id), c: AuthContainer = Depends(get_container)):
    """Get current user profile."""
    return c.accounts.get_user(user_id, include_deleted=False)


@router.put("/me", response_model=UserOut)
def update_me(
    body: ProfileUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    c: AuthContainer = Depends(get_container),
):
    return c.accounts.update_profile(user_id, **body.model_dump(exclude_none=True))


@router.put("/me/password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    request: Request,
    user_id: int = Depends(get_current_user_id),
    c: AuthContainer = Depends(get_container),
):
    """Change password; every session is signed out."""
    ip, ua = client_info(request)
    c.accounts.change_password(
        user_id, body.current_password, body.new_password, ip_address=ip, user_agent=ua
    )
    return MessageResponse(message="Password changed")


@router.post("/me/deactivate", response_model=MessageResponse)
def deactivate_me(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    c: AuthContainer = Depends(get_container),
):
    ip, ua = client_info(request)
    c.accounts.deactivate_account(user_id, ip_address=ip, user_agent=ua)
    return MessageResponse(message="Account deactivated")


@router.delete("/me", response_model=MessageResponse)
def delete_me(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    c: AuthContainer = Depends(get_container),
):
    ip, ua = client_info(request)
    c.accounts.delete_account(user_id, ip_address=ip, user_agent=ua)
    return MessageResponse(message="Account deleted")


@router.get("/me/sessions", response_model=SessionListResponse)
def list_my_sessions(
    active_only: bool = Query(True),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    c: AuthContainer = Depends(get_container),
):
    """List the current user's sessions, most recently used first."""
    result = c.auth.list_sessions(user_id, active_only=active_only, page=page, page_size=page_size)
    return {
        "sessions": [SessionOut.model_validate(s) for s in result.items],
        "pagination": result.pagination(),
    }


@router.delete("/me/sessions/{session_id}", response_model=MessageResponse)
def revoke_my_session(
    session_id: int,
    user_id: int = Depends(get_current_user_id),
    c: AuthContainer = Depends(get_container),
):
    revoked = c.auth.revoke_session(user_id, session_id)
    return MessageResponse(message="Session revoked", success=revoked)


# ---- Two-factor ----

@router.post("/me/2fa/setup", response_model=TwoFactorSetupResponse)
def begin_two_factor_setup(
    user_id: int = Depends(get_current_user_id),
    c: AuthContainer = Depends(get_container),
):
    return c.two_factor.begin_setup(user_id)


@router.post("/me/2fa/confirm", response_model=MessageResponse)
def confirm_two_factor_setup(
    body: TwoFactorCodeRequest,
    user_id: int = Depends(get_current_user_id),
    c: AuthContainer = Depends(get_container),
):
    c.two_factor.confirm_setup(user_id, body.code)
    return MessageResponse(message="Two-factor authentication enabled")


@router.post("/me/2fa/disable", response_model=MessageResponse)
def disable_two_factor(
    body: TwoFactorDisableRequest,
    user_id: int = Depends(get_current_user_id),
    c: AuthContainer = Depends(get_container),
):
    c.two_factor.disable(user_id, body.password)
    return MessageResponse(message="Two-factor authentication disabled")
