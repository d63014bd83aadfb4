"""
User Repository Interface.
"""

from datetime import date
from typing import Any, Optional, Protocol


class UserRepository(Protocol):
    """Interface for user credential and profile data access."""

    async def email_exists(self, email: str, exclude_user_id: Optional[int] = None) -> bool:
        ...

    async def username_exists(self, username: str) -> bool:
        ...

    async def find_user_id_by_email(self, email: str) -> Optional[int]:
        ...

    async def find_for_login(self, identifier: str) -> Optional[dict[str, Any]]:
        """Credentials row matched by username or email."""
        ...

    async def get_password_hash(self, user_id: int) -> Optional[str]:
        ...

    async def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        firstname: str,
        lastname: str,
        email: str,
        birthdate: Optional[date] = None,
        gender: Optional[str] = None,
        mobile_number: Optional[str] = None,
    ) -> int:
        """Insert credentials and profile atomically; return the new user id."""
        ...

    async def update_password(self, user_id: int, password_hash: str) -> bool:
        ...

    async def update_email(self, user_id: int, email: str) -> bool:
        ...

    async def get_profile(self, user_id: int) -> Optional[dict[str, Any]]:
        ...

    async def update_profile(self, user_id: int, fields: dict[str, Any]) -> bool:
        ...
