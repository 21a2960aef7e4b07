"""Wiring of repositories and services around one store handle."""

from dataclasses import dataclass
from typing import Optional

from authcore.core.clock import Clock, system_clock
from authcore.core.config import settings
from authcore.db.store import Store
from authcore.repositories.security_event_repository import SecurityEventRepository
from authcore.repositories.session_repository import SessionRepository
from authcore.repositories.user_repository import UserRepository
from authcore.services.account_service import AccountService
from authcore.services.auth_service import AuthService
from authcore.services.credential_reset_service import CredentialResetService, TokenDelivery
from authcore.services.security_event_service import SecurityEventService
from authcore.services.token_service import TokenService
from authcore.services.two_factor_service import TwoFactorService


@dataclass
class AuthContainer:
    users: UserRepository
    sessions: SessionRepository
    events: SecurityEventRepository
    recorder: SecurityEventService
    accounts: AccountService
    resets: CredentialResetService
    two_factor: TwoFactorService
    auth: AuthService


def build_container(
    store: Store,
    tokens: TokenService,
    clock: Optional[Clock] = None,
    delivery: Optional[TokenDelivery] = None,
) -> AuthContainer:
    """Assemble every service against an explicit store handle."""
    clock = clock or system_clock
    users = UserRepository(store)
    sessions = SessionRepository(store, tokens, clock=clock)
    events = SecurityEventRepository(store, clock=clock)
    recorder = SecurityEventService(events)
    accounts = AccountService(users, sessions, recorder)
    resets = CredentialResetService(
        users,
        sessions,
        recorder,
        delivery=delivery,
        clock=clock,
        reset_minutes=settings.PASSWORD_RESET_EXPIRY_MINUTES,
        verification_hours=settings.EMAIL_VERIFICATION_EXPIRY_HOURS,
    )
    two_factor = TwoFactorService(users, recorder, issuer=settings.TOTP_ISSUER, clock=clock)
    auth = AuthService(
        users, sessions, tokens, accounts, resets, two_factor, recorder, clock=clock
    )
    return AuthContainer(
        users=users,
        sessions=sessions,
        events=events,
        recorder=recorder,
        accounts=accounts,
        resets=resets,
        two_factor=two_factor,
        auth=auth,
    )
