"""Test doubles shared across the suite."""

from datetime import datetime, timedelta

from authcore.core.clock import Clock
from authcore.services.credential_reset_service import TokenDelivery

TEST_SECRET = "test-secret-key"
PASSWORD = "Passw0rd1"


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class RecordingDelivery(TokenDelivery):
    """Keeps the last raw token sent to each email."""

    def __init__(self):
        self.reset_tokens = {}
        self.verification_tokens = {}

    def send_password_reset(self, user, token):
        self.reset_tokens[user.email] = token

    def send_email_verification(self, user, token):
        self.verification_tokens[user.email] = token
