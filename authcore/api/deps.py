"""Per-request wiring of services for the routers."""

from typing import Optional, Tuple

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from authcore.core.clock import Clock, system_clock
from authcore.core.middleware import MAX_USER_AGENT, resolve_client_ip
from authcore.core.security import get_token_service
from authcore.db.session import get_db
from authcore.db.store import SqlStore
from authcore.services.container import AuthContainer, build_container
from authcore.services.credential_reset_service import TokenDelivery
from authcore.services.token_service import TokenService


def get_clock() -> Clock:
    return system_clock


def get_token_delivery() -> TokenDelivery:
    return TokenDelivery()


def get_container(
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    clock: Clock = Depends(get_clock),
    delivery: TokenDelivery = Depends(get_token_delivery),
) -> AuthContainer:
    """Build the service graph around this request's DB session."""
    return build_container(SqlStore(db), tokens, clock=clock, delivery=delivery)


def client_info(request: Request) -> Tuple[Optional[str], str]:
    """Client IP and user-agent for session and audit records."""
    state = request.state
    if hasattr(state, "client_ip"):
        return state.client_ip, state.user_agent
    return resolve_client_ip(request), request.headers.get("user-agent", "")[:MAX_USER_AGENT]
