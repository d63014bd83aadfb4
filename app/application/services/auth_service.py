"""Password hashing and the signup, login and OTP workflows.

Each workflow is a short sequence of guarded steps. A failed guard raises an
application error and nothing is written; persistence happens only in the
last step.
"""

import secrets
from datetime import timedelta
from typing import Optional

import structlog
from fastapi.concurrency import run_in_threadpool
from passlib.context import CryptContext

from app.config import Settings
from app.core.exceptions import (
    ConflictError,
    EntityNotFoundException,
    InvalidCodeError,
    UnauthorizedException,
    ValidationError,
)
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.auth import PreSignupRequest
from app.domain.schemas.common import missing_fields
from app.domain.schemas.verification import EmailChangeOtp, PasswordResetOtp, PendingSignup
from app.infrastructure.email_sender import EmailSender
from app.infrastructure.verification_store import VerificationStore

logger = structlog.get_logger(__name__)

SIGNUP_REQUIRED_FIELDS = ("username", "email", "password", "firstname", "lastname")
ROLE_NAMES = {1: "user", 2: "admin"}

NO_OTP_MESSAGE = "No OTP request found or OTP has expired"


class PasswordHasher:
    """bcrypt with a fixed cost; hashing runs in the thread pool."""

    def __init__(self, rounds: int = 10):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self._context.hash, password)

    async def verify(self, password: str, password_hash: Optional[str]) -> bool:
        if not password_hash:
            return False
        return await run_in_threadpool(self._context.verify, password, password_hash)


def generate_code() -> str:
    """Six random digits, zero padded."""
    return f"{secrets.randbelow(1_000_000):06d}"


def codes_match(expected: str, given: str) -> bool:
    return secrets.compare_digest(expected.encode(), given.strip().encode())


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        email_sender: EmailSender,
        signup_store: VerificationStore[PendingSignup],
        password_reset_store: VerificationStore[PasswordResetOtp],
        email_change_store: VerificationStore[EmailChangeOtp],
        settings: Settings,
    ):
        self.users = users
        self.hasher = hasher
        self.email_sender = email_sender
        self.signup_store = signup_store
        self.password_reset_store = password_reset_store
        self.email_change_store = email_change_store
        self.signup_ttl = timedelta(minutes=settings.SIGNUP_CODE_TTL_MINUTES)
        self.password_reset_ttl = timedelta(minutes=settings.PASSWORD_RESET_OTP_TTL_MINUTES)
        self.email_change_ttl = timedelta(minutes=settings.EMAIL_CHANGE_OTP_TTL_MINUTES)

    # --- signup -----------------------------------------------------------

    async def pre_signup(self, body: PreSignupRequest) -> str:
        missing = missing_fields(body, SIGNUP_REQUIRED_FIELDS)
        if missing:
            raise ValidationError("Missing required fields", details={"missingFields": missing})

        if await self.users.email_exists(body.email):
            raise ConflictError("Email already exists")
        if await self.users.username_exists(body.username):
            raise ConflictError("Username already exists")

        pending = PendingSignup(
            email=body.email,
            username=body.username,
            password=body.password,
            firstname=body.firstname,
            lastname=body.lastname,
            birthdate=body.birthdate,
            gender=body.gender,
            mobile_number=body.mobile_number,
            code=generate_code(),
        )
        await self.signup_store.put(body.email, pending, self.signup_ttl)
        await self._send_signup_code(pending)
        logger.info("Signup verification started", email=body.email)
        return body.email

    async def complete_signup(self, email: str, code: str) -> int:
        pending = await self.signup_store.get(email)
        if pending is None or not codes_match(pending.code, code):
            raise InvalidCodeError("Invalid or expired verification code")

        password_hash = await self.hasher.hash(pending.password)
        user_id = await self.users.create_user(
            username=pending.username,
            password_hash=password_hash,
            firstname=pending.firstname,
            lastname=pending.lastname,
            email=pending.email,
            birthdate=pending.birthdate,
            gender=pending.gender,
            mobile_number=pending.mobile_number,
        )
        await self.signup_store.delete(email)
        logger.info("User registered", user_id=user_id)
        return user_id

    async def resend_verification_code(self, email: str) -> None:
        pending = await self.signup_store.get(email)
        if pending is None:
            raise InvalidCodeError("No pending registration found for this email")

        pending.code = generate_code()
        await self.signup_store.put(email, pending, self.signup_ttl)
        await self._send_signup_code(pending)

    async def _send_signup_code(self, pending: PendingSignup) -> None:
        minutes = int(self.signup_ttl.total_seconds() // 60)
        await self.email_sender.send(
            pending.email,
            "Verify your email",
            f"Hello {pending.firstname},\n\nYour verification code is {pending.code}. "
            f"It expires in {minutes} minutes.",
        )

    # --- login ------------------------------------------------------------

    async def login(self, identifier: str, password: str) -> dict:
        identifier = identifier.strip()
        if "@" in identifier:
            identifier = identifier.lower()

        row = await self.users.find_for_login(identifier)
        # Same answer for unknown user and wrong password
        if row is None or not await self.hasher.verify(password, row["password"]):
            logger.info("Login rejected")
            raise InvalidCodeError("Invalid credentials")

        return {
            "id": row["user_id"],
            "username": row["username"],
            "email": row["email"],
            "role": ROLE_NAMES.get(row["role_id"], "user"),
        }

    # --- password reset ---------------------------------------------------

    async def forgot_password(self, email: str) -> None:
        user_id = await self.users.find_user_id_by_email(email)
        if user_id is None:
            raise EntityNotFoundException("No account found with this email")

        otp = PasswordResetOtp(user_id=user_id, code=generate_code())
        await self.password_reset_store.put(email, otp, self.password_reset_ttl)
        minutes = int(self.password_reset_ttl.total_seconds() // 60)
        await self.email_sender.send(
            email,
            "Password reset code",
            f"Your password reset code is {otp.code}. It expires in {minutes} minutes.",
        )
        logger.info("Password reset OTP issued", user_id=user_id)

    async def resend_password_otp(self, email: str) -> None:
        await self.forgot_password(email)

    async def verify_otp(self, email: str, otp: str) -> int:
        record = await self.password_reset_store.get(email)
        if record is None:
            raise InvalidCodeError(NO_OTP_MESSAGE)
        if not codes_match(record.code, otp):
            raise InvalidCodeError("Invalid OTP")
        return record.user_id

    async def reset_password(self, email: str, new_password: str) -> None:
        # Not gated on verify_otp: the client drives the two steps
        user_id = await self.users.find_user_id_by_email(email)
        if user_id is None:
            raise EntityNotFoundException("No account found with this email")

        await self.users.update_password(user_id, await self.hasher.hash(new_password))
        await self.password_reset_store.delete(email)
        logger.info("Password reset", user_id=user_id)

    async def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        password_hash = await self.users.get_password_hash(user_id)
        if password_hash is None:
            raise EntityNotFoundException("User not found")
        if not await self.hasher.verify(current_password, password_hash):
            raise UnauthorizedException("Current password is incorrect")

        await self.users.update_password(user_id, await self.hasher.hash(new_password))
        logger.info("Password changed", user_id=user_id)

    # --- email change -----------------------------------------------------

    async def verify_email_change(self, user_id: int, password: str, new_email: str) -> None:
        password_hash = await self.users.get_password_hash(user_id)
        if password_hash is None:
            raise EntityNotFoundException("User not found")
        if not await self.hasher.verify(password, password_hash):
            raise UnauthorizedException("Password is incorrect")
        profile = await self.users.get_profile(user_id)
        if profile is not None and profile["email"] == new_email:
            raise ValidationError("New email is the same as the current email")
        if await self.users.email_exists(new_email, exclude_user_id=user_id):
            raise ValidationError("Email is already in use")

        otp = EmailChangeOtp(user_id=user_id, new_email=new_email, code=generate_code())
        await self.email_change_store.put(str(user_id), otp, self.email_change_ttl)
        minutes = int(self.email_change_ttl.total_seconds() // 60)
        await self.email_sender.send(
            new_email,
            "Confirm your new email",
            f"Your email change code is {otp.code}. It expires in {minutes} minutes.",
        )
        logger.info("Email change OTP issued", user_id=user_id)

    async def confirm_email_change(self, user_id: int, otp: str) -> str:
        key = str(user_id)
        record = await self.email_change_store.get(key)
        if record is None:
            raise InvalidCodeError(NO_OTP_MESSAGE)
        if not codes_match(record.code, otp):
            raise InvalidCodeError("Invalid OTP")

        if await self.users.email_exists(record.new_email, exclude_user_id=user_id):
            await self.email_change_store.delete(key)
            raise ValidationError("Email is already in use")

        if not await self.users.update_email(user_id, record.new_email):
            raise EntityNotFoundException("User not found")
        await self.email_change_store.delete(key)
        logger.info("Email changed", user_id=user_id)
        return record.new_email
