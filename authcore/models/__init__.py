"""Models package: import all models so metadata is complete."""

from authcore.models.user import User
from authcore.models.session import UserSession
from authcore.models.security_event import SecurityEvent

__all__ = ["User", "UserSession", "SecurityEvent"]
