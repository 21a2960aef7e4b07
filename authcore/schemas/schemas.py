"""Pydantic schemas for API request/response serialization."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field

from authcore.models.enums import UserRole


# ---- Auth ----
class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    username: Optional[str] = Field(None, min_length=3, max_length=30, pattern=r"^[a-zA-Z0-9_]+$")
    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)

class SigninRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    remember_me: bool = False
    two_factor_code: Optional[str] = Field(None, min_length=6, max_length=8)

class RefreshRequest(BaseModel):
    refresh_token: str

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: Dict[str, Any]

class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)

class PasswordResetRequest(BaseModel):
    email: EmailStr

class PasswordResetConfirm(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


# ---- User ----
class UserOut(BaseModel):
    id: int
    email: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str
    status: str
    email_verified: bool = False
    two_factor_enabled: bool = False
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ProfileUpdateRequest(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=30, pattern=r"^[a-zA-Z0-9_]+$")
    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    avatar_url: Optional[str] = Field(None, max_length=500)

class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


# ---- Sessions ----
class SessionOut(BaseModel):
    id: int
    device_info: Optional[str] = None
    ip_address: Optional[str] = None
    is_active: bool
    expires_at: datetime
    last_access_at: datetime
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class Pagination(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool

class SessionListResponse(BaseModel):
    sessions: List[SessionOut]
    pagination: Pagination

class SignoutAllResponse(BaseModel):
    message: str
    sessions_revoked: int


# ---- Two-factor ----
class TwoFactorSetupResponse(BaseModel):
    secret: str
    provisioning_uri: str

class TwoFactorCodeRequest(BaseModel):
    code: str = Field(..., min_length=6, max_length=8)

class TwoFactorDisableRequest(BaseModel):
    password: str = Field(..., min_length=1)


# ---- Admin ----
class UserListResponse(BaseModel):
    users: List[UserOut]
    pagination: Pagination

class RoleUpdateRequest(BaseModel):
    role: UserRole

class SuspendRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=255)
    until: Optional[datetime] = None

class SecurityEventOut(BaseModel):
    id: int
    event_type: str
    severity: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True

class SecurityEventListResponse(BaseModel):
    events: List[SecurityEventOut]
    pagination: Pagination


# ---- Generic ----
class MessageResponse(BaseModel):
    message: str
    success: bool = True
