"""Admin API router: user listing, roles, suspension and audit trail."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from authcore.api.deps import get_container
from authcore.core.security import require_admin, require_moderator
from authcore.models.enums import SecurityEventType, UserRole, UserStatus
from authcore.schemas.schemas import (
    RoleUpdateRequest,
    SecurityEventListResponse,
    SecurityEventOut,
    SuspendRequest,
    UserListResponse,
    UserOut,
)
from authcore.services.container import AuthContainer

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=UserListResponse)
def admin_list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[UserStatus] = Query(None),
    role: Optional[UserRole] = Query(None),
    claims: dict = Depends(require_admin),
    c: AuthContainer = Depends(get_container),
):
    """List all users (admin only)."""
    result = c.accounts.list_users(page=page, page_size=page_size, status=status, role=role)
    return {
        "users": [UserOut.model_validate(u) for u in result.items],
        "pagination": result.pagination(),
    }


@router.put("/users/{user_id}/role", response_model=UserOut)
def admin_update_role(
    user_id: int,
    body: RoleUpdateRequest,
    claims: dict = Depends(require_admin),
    c: AuthContainer = Depends(get_container),
):
    return c.accounts.update_role(user_id, body.role, actor_id=int(claims["sub"]))


@router.post("/users/{user_id}/suspend", response_model=UserOut)
def admin_suspend_user(
    user_id: int,
    body: SuspendRequest,
    claims: dict = Depends(require_moderator),
    c: AuthContainer = Depends(get_container),
):
    """Suspend a user; all of their sessions are signed out."""
    return c.accounts.suspend_user(
        user_id, body.reason, until=body.until, actor_id=int(claims["sub"])
    )


@router.post("/users/{user_id}/unsuspend", response_model=UserOut)
def admin_unsuspend_user(
    user_id: int,
    claims: dict = Depends(require_moderator),
    c: AuthContainer = Depends(get_container),
):
    return c.accounts.unsuspend_user(user_id, actor_id=int(claims["sub"]))


@router.get("/users/{user_id}/security-events", response_model=SecurityEventListResponse)
def admin_list_security_events(
    user_id: int,
    event_type: Optional[SecurityEventType] = Query(None),
    since: Optional[datetime] = Query(None),
    until: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    claims: dict = Depends(require_admin),
    c: AuthContainer = Depends(get_container),
):
    """Audit trail of one user, newest first (admin only)."""
    c.accounts.get_user(user_id)
    result = c.recorder.list_for_user(
        user_id, event_type=event_type, since=since, until=until, page=page, page_size=page_size
    )
    return {
        "events": [SecurityEventOut.model_validate(e) for e in result.items],
        "pagination": result.pagination(),
    }
