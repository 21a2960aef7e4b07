"""Auth API router: signup, signin, refresh, signout, reset and verification."""

from fastapi import APIRouter, Depends, Request

from authcore.api.deps import client_info, get_container
from authcore.core.security import get_current_user_id
from authcore.schemas.schemas import (
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    RefreshRequest,
    SigninRequest,
    SignoutAllResponse,
    SignupRequest,
    TokenResponse,
    VerifyEmailRequest,
)
from authcore.services.container import AuthContainer

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=TokenResponse, status_code=201)
def signup(body: SignupRequest, request: Request, c: AuthContainer = Depends(get_container)):
    """Register a new user and return a token pair."""
    ip, ua = client_info(request)
    return c.auth.signup(
        body.email,
        body.password,
        username=body.username,
        ip_address=ip,
        user_agent=ua,
        first_name=body.first_name,
        last_name=body.last_name,
    )


@router.post("/signin", response_model=TokenResponse)
def signin(body: SigninRequest, request: Request, c: AuthContainer = Depends(get_container)):
    """Authenticate and return a token pair."""
    ip, ua = client_info(request)
    return c.auth.signin(
        body.email,
        body.password,
        ip_address=ip,
        user_agent=ua,
        remember_me=body.remember_me,
        two_factor_code=body.two_factor_code,
    )


@router.post("/refresh", response_model=TokenResponse)
def refresh(body: RefreshRequest, request: Request, c: AuthContainer = Depends(get_container)):
    """Rotate a refresh token."""
    ip, ua = client_info(request)
    return c.auth.refresh(body.refresh_token, ip_address=ip, user_agent=ua)


@router.post("/signout", response_model=MessageResponse)
def signout(body: RefreshRequest, request: Request, c: AuthContainer = Depends(get_container)):
    """End the session behind a refresh token."""
    ip, ua = client_info(request)
    success = c.auth.signout(body.refresh_token, ip_address=ip, user_agent=ua)
    return MessageResponse(message="Signed out", success=success)


@router.post("/signout-all", response_model=SignoutAllResponse)
def signout_all(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    c: AuthContainer = Depends(get_container),
):
    """End every session of the current user."""
    ip, ua = client_info(request)
    count = c.auth.signout_all(user_id, ip_address=ip, user_agent=ua)
    return SignoutAllResponse(message="Signed out from all devices", sessions_revoked=count)


@router.post("/verify-email", response_model=MessageResponse)
def verify_email(body: VerifyEmailRequest, c: AuthContainer = Depends(get_container)):
    c.auth.verify_email(body.token)
    return MessageResponse(message="Email verified")


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(
    user_id: int = Depends(get_current_user_id),
    c: AuthContainer = Depends(get_container),
):
    sent = c.auth.resend_email_verification(user_id)
    message = "Verification email sent" if sent else "Email already verified"
    return MessageResponse(message=message, success=sent)


@router.post("/password-reset", response_model=MessageResponse)
def request_password_reset(body: PasswordResetRequest, c: AuthContainer = Depends(get_container)):
    """Always succeeds, whether or not the email is registered."""
    c.auth.request_password_reset(body.email)
    return MessageResponse(message="If the email is registered, a reset link has been sent")


@router.post("/password-reset/confirm", response_model=MessageResponse)
def confirm_password_reset(body: PasswordResetConfirm, c: AuthContainer = Depends(get_container)):
    c.auth.confirm_password_reset(body.token, body.new_password)
    return MessageResponse(message="Password has been reset")
