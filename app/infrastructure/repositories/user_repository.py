"""
SQL implementation of the User Repository.
"""

from datetime import date
from typing import Any, Optional

from sqlalchemy import Date, Integer, String

from app.domain.models.user import DEFAULT_ROLE_ID
from app.infrastructure.executor import QueryParam as P
from app.infrastructure.repositories.base_repository import SQLRepository

# Columns a profile update may touch, with their bind types
PROFILE_UPDATE_COLUMNS = {
    "firstname": String,
    "lastname": String,
    "birthdate": Date,
    "gender": String,
    "mobile_number": String,
    "profile_image_url": String,
}

PROFILE_SELECT = """
    SELECT c.user_id, c.username, c.role_id, p.firstname, p.lastname, p.birthdate,
           p.gender, p.email, p.mobile_number, p.profile_image_url
    FROM user_credentials c
    JOIN user_profiles p ON p.user_id = c.user_id
    WHERE c.user_id = :user_id
"""


class SQLUserRepository(SQLRepository):
    """User repository over the ``user_credentials`` and ``user_profiles`` tables."""

    async def email_exists(self, email: str, exclude_user_id: Optional[int] = None) -> bool:
        if exclude_user_id is None:
            count = await self._scalar(
                "SELECT COUNT(*) FROM user_profiles WHERE email = :email",
                P("email", String, email),
            )
        else:
            count = await self._scalar(
                "SELECT COUNT(*) FROM user_profiles WHERE email = :email AND user_id <> :user_id",
                P("email", String, email),
                P("user_id", Integer, exclude_user_id),
            )
        return bool(count)

    async def username_exists(self, username: str) -> bool:
        count = await self._scalar(
            "SELECT COUNT(*) FROM user_credentials WHERE username = :username",
            P("username", String, username),
        )
        return bool(count)

    async def find_user_id_by_email(self, email: str) -> Optional[int]:
        return await self._scalar(
            "SELECT user_id FROM user_profiles WHERE email = :email",
            P("email", String, email),
        )

    async def find_for_login(self, identifier: str) -> Optional[dict[str, Any]]:
        return await self._fetch_one(
            """
            SELECT c.user_id, c.username, c.password, c.role_id, p.email
            FROM user_credentials c
            LEFT JOIN user_profiles p ON p.user_id = c.user_id
            WHERE c.username = :identifier OR p.email = :identifier
            """,
            P("identifier", String, identifier),
        )

    async def get_password_hash(self, user_id: int) -> Optional[str]:
        return await self._scalar(
            "SELECT password FROM user_credentials WHERE user_id = :user_id",
            P("user_id", Integer, user_id),
        )

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
        async with self.executor.transaction() as tx:
            inserted = await tx.execute(
                """
                INSERT INTO user_credentials (username, role_id, password)
                VALUES (:username, :role_id, :password)
                RETURNING user_id
                """,
                (
                    P("username", String, username),
                    P("role_id", Integer, DEFAULT_ROLE_ID),
                    P("password", String, password_hash),
                ),
            )
            user_id = inserted.scalar()
            await tx.execute(
                """
                INSERT INTO user_profiles
                    (user_id, firstname, lastname, birthdate, gender, email, mobile_number)
                VALUES
                    (:user_id, :firstname, :lastname, :birthdate, :gender, :email, :mobile_number)
                """,
                (
                    P("user_id", Integer, user_id),
                    P("firstname", String, firstname),
                    P("lastname", String, lastname),
                    P("birthdate", Date, birthdate),
                    P("gender", String, gender),
                    P("email", String, email),
                    P("mobile_number", String, mobile_number),
                ),
            )
        return user_id

    async def update_password(self, user_id: int, password_hash: str) -> bool:
        updated = await self._write(
            "UPDATE user_credentials SET password = :password WHERE user_id = :user_id",
            P("password", String, password_hash),
            P("user_id", Integer, user_id),
        )
        return updated > 0

    async def update_email(self, user_id: int, email: str) -> bool:
        updated = await self._write(
            "UPDATE user_profiles SET email = :email WHERE user_id = :user_id",
            P("email", String, email),
            P("user_id", Integer, user_id),
        )
        return updated > 0

    async def get_profile(self, user_id: int) -> Optional[dict[str, Any]]:
        return await self._fetch_one(PROFILE_SELECT, P("user_id", Integer, user_id))

    async def update_profile(self, user_id: int, fields: dict[str, Any]) -> bool:
        unknown = set(fields) - set(PROFILE_UPDATE_COLUMNS)
        if unknown:
            raise ValueError(f"Not updatable: {', '.join(sorted(unknown))}")
        if not fields:
            return False

        assignments = ", ".join(f"{column} = :{column}" for column in fields)
        params = [P(column, PROFILE_UPDATE_COLUMNS[column], value) for column, value in fields.items()]
        params.append(P("user_id", Integer, user_id))
        updated = await self._write(
            f"UPDATE user_profiles SET {assignments} WHERE user_id = :user_id", *params
        )
        return updated > 0
