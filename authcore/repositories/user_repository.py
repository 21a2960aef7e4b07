"""User repository: the credential store."""

from typing import Any, Dict, Optional

from authcore.core.security import hash_password, verify_password
from authcore.db.store import Page, Store
from authcore.models.user import User


class UserRepository:
    """User records and password verification.

    Plain-text passwords passed as ``password`` are hashed before they reach
    the store.
    """

    def __init__(self, store: Store):
        self.store = store

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.store.find_one(User, id=user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.store.find_one(User, email=email.strip().lower())

    def find_by_username(self, username: str) -> Optional[User]:
        return self.store.find_one(User, username=username)

    def find_by_reset_token_hash(self, token_hash: str) -> Optional[User]:
        return self.store.find_one(User, password_reset_token_hash=token_hash)

    def find_by_verification_token_hash(self, token_hash: str) -> Optional[User]:
        return self.store.find_one(User, email_verification_token_hash=token_hash)

    def create(self, email: str, password: str, **fields) -> User:
        return self.store.create(
            User,
            email=email.strip().lower(),
            hashed_password=hash_password(password),
            **fields,
        )

    def update(self, user_id: int, **values) -> Optional[User]:
        """Apply ``values`` and return the fresh row (None if it is gone)."""
        self.update_where(user_id, values)
        return self.find_by_id(user_id)

    def update_where(self, user_id: int, values: Dict[str, Any], **conditions) -> int:
        """Conditional update of one user; returns 1 if the row matched."""
        values = dict(values)
        if "password" in values:
            values["hashed_password"] = hash_password(values.pop("password"))
        return self.store.update(User, values, id=user_id, **conditions)

    def verify_password(self, user: User, password: str) -> bool:
        return verify_password(password, user.hashed_password)

    def list(self, page: int = 1, page_size: int = 20, **filters) -> Page:
        filters = {key: value for key, value in filters.items() if value is not None}
        return self.store.count_and_page(
            User, page=page, page_size=page_size, order_by="-id", **filters
        )
