"""Workflow tests for AuthService over a real SQLite schema."""

from datetime import timedelta

import pytest
import pytest_asyncio
from sqlalchemy import Integer, String

from app.application.services.auth_service import AuthService, PasswordHasher, codes_match, generate_code
from app.core.exceptions import (
    ConflictError,
    EntityNotFoundException,
    InvalidCodeError,
    UnauthorizedException,
    ValidationError,
)
from app.domain.schemas.auth import PreSignupRequest
from app.infrastructure.executor import QueryParam
from app.infrastructure.repositories.user_repository import SQLUserRepository
from app.infrastructure.verification_store import InMemoryVerificationStore


class Clock:
    def __init__(self):
        self.now = 5_000_000.0

    def __call__(self):
        return self.now

    def advance(self, delta: timedelta):
        self.now += delta.total_seconds()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest_asyncio.fixture
async def auth(executor, settings, email_sender, clock) -> AuthService:
    return AuthService(
        users=SQLUserRepository(executor),
        hasher=PasswordHasher(rounds=4),
        email_sender=email_sender,
        signup_store=InMemoryVerificationStore("signup", clock=clock),
        password_reset_store=InMemoryVerificationStore("password_reset", clock=clock),
        email_change_store=InMemoryVerificationStore("email_change", clock=clock),
        settings=settings,
    )


def signup_body(**overrides) -> PreSignupRequest:
    data = {
        "username": "alice",
        "email": "Alice@Example.com",
        "password": "Secret123",
        "firstname": "Alice",
        "lastname": "Reyes",
        "mobileNumber": "09171234567",
    }
    data.update(overrides)
    return PreSignupRequest.model_validate(data)


async def registered(auth: AuthService, email_sender, **overrides) -> int:
    body = signup_body(**overrides)
    await auth.pre_signup(body)
    return await auth.complete_signup(body.email, email_sender.last_code(body.email))


def test_generated_codes_are_six_digits():
    codes = {generate_code() for _ in range(50)}
    assert all(len(c) == 6 and c.isdigit() for c in codes)
    assert len(codes) > 1


def test_codes_match_ignores_surrounding_whitespace():
    assert codes_match("012345", " 012345 ")
    assert not codes_match("012345", "12345")


class TestSignup:
    @pytest.mark.asyncio
    async def test_pre_signup_stages_without_persisting(self, auth, email_sender):
        email = await auth.pre_signup(signup_body())

        assert email == "alice@example.com"
        assert email_sender.outbox[-1]["to"] == "alice@example.com"
        assert await auth.users.email_exists(email) is False

    @pytest.mark.asyncio
    async def test_missing_fields_are_listed(self, auth):
        with pytest.raises(ValidationError) as exc:
            await auth.pre_signup(signup_body(password=None, lastname="  "))

        assert exc.value.details == {"missingFields": ["password", "lastname"]}

    @pytest.mark.asyncio
    async def test_complete_signup_persists_and_consumes_code(self, auth, email_sender):
        user_id = await registered(auth, email_sender)

        profile = await auth.users.get_profile(user_id)
        assert profile["email"] == "alice@example.com"
        assert profile["mobile_number"] == "09171234567"

        code = email_sender.last_code("alice@example.com")
        with pytest.raises(InvalidCodeError):
            await auth.complete_signup("alice@example.com", code)

    @pytest.mark.asyncio
    async def test_duplicate_email_and_username_conflict(self, auth, email_sender):
        await registered(auth, email_sender)

        with pytest.raises(ConflictError, match="Email"):
            await auth.pre_signup(signup_body(username="other"))
        with pytest.raises(ConflictError, match="Username"):
            await auth.pre_signup(signup_body(email="new@example.com"))

    @pytest.mark.asyncio
    async def test_code_expires_after_ttl(self, auth, email_sender, clock):
        await auth.pre_signup(signup_body())
        code = email_sender.last_code("alice@example.com")

        clock.advance(timedelta(minutes=15, seconds=1))

        with pytest.raises(InvalidCodeError):
            await auth.complete_signup("alice@example.com", code)
        assert len(auth.signup_store) == 0

    @pytest.mark.asyncio
    async def test_resend_replaces_code_and_extends_expiry(self, auth, email_sender, clock):
        await auth.pre_signup(signup_body())
        old_code = email_sender.last_code("alice@example.com")
        clock.advance(timedelta(minutes=10))

        await auth.resend_verification_code("alice@example.com")
        new_code = email_sender.last_code("alice@example.com")
        clock.advance(timedelta(minutes=10))

        if old_code != new_code:
            with pytest.raises(InvalidCodeError):
                await auth.complete_signup("alice@example.com", old_code)
        assert await auth.complete_signup("alice@example.com", new_code) > 0

    @pytest.mark.asyncio
    async def test_resend_without_pending_record(self, auth):
        with pytest.raises(InvalidCodeError):
            await auth.resend_verification_code("nobody@example.com")

    @pytest.mark.asyncio
    async def test_profile_failure_leaves_no_credentials(self, auth, email_sender, executor):
        await auth.pre_signup(signup_body())
        code = email_sender.last_code("alice@example.com")
        # Another account claims the address between pre-signup and completion
        other = await executor.execute(
            "INSERT INTO user_credentials (username, role_id, password) "
            "VALUES ('someone', 1, 'hash') RETURNING user_id"
        )
        await executor.execute(
            "INSERT INTO user_profiles (user_id, firstname, lastname, email) "
            "VALUES (:user_id, 'X', 'Y', :email)",
            [QueryParam("user_id", Integer, other.scalar()), QueryParam("email", String, "alice@example.com")],
        )

        with pytest.raises(ConflictError):
            await auth.complete_signup("alice@example.com", code)

        assert await auth.users.username_exists("alice") is False
        with pytest.raises(InvalidCodeError):
            await auth.login("alice", "Secret123")


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_by_username_or_email(self, auth, email_sender):
        user_id = await registered(auth, email_sender)

        by_name = await auth.login("alice", "Secret123")
        by_email = await auth.login("ALICE@example.com", "Secret123")

        assert by_name == by_email == {
            "id": user_id,
            "username": "alice",
            "email": "alice@example.com",
            "role": "user",
        }

    @pytest.mark.asyncio
    async def test_unknown_user_and_wrong_password_look_the_same(self, auth, email_sender):
        await registered(auth, email_sender)

        with pytest.raises(InvalidCodeError) as wrong_password:
            await auth.login("alice", "wrong")
        with pytest.raises(InvalidCodeError) as unknown_user:
            await auth.login("bob", "Secret123")

        assert wrong_password.value.message == unknown_user.value.message == "Invalid credentials"


class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_roundtrip(self, auth, email_sender):
        user_id = await registered(auth, email_sender)

        await auth.forgot_password("alice@example.com")
        otp = email_sender.last_code("alice@example.com")

        assert await auth.verify_otp("alice@example.com", otp) == user_id
        await auth.reset_password("alice@example.com", "NewSecret1")
        assert (await auth.login("alice", "NewSecret1"))["id"] == user_id

        with pytest.raises(InvalidCodeError):
            await auth.verify_otp("alice@example.com", otp)

    @pytest.mark.asyncio
    async def test_unknown_email(self, auth):
        with pytest.raises(EntityNotFoundException):
            await auth.forgot_password("ghost@example.com")
        with pytest.raises(EntityNotFoundException):
            await auth.reset_password("ghost@example.com", "whatever")

    @pytest.mark.asyncio
    async def test_wrong_and_expired_otp(self, auth, email_sender, clock):
        await registered(auth, email_sender)
        await auth.forgot_password("alice@example.com")
        otp = email_sender.last_code("alice@example.com")

        with pytest.raises(InvalidCodeError, match="Invalid OTP"):
            await auth.verify_otp("alice@example.com", "000000" if otp != "000000" else "111111")

        clock.advance(timedelta(minutes=16))
        with pytest.raises(InvalidCodeError, match="expired"):
            await auth.verify_otp("alice@example.com", otp)
        assert len(auth.password_reset_store) == 0

    @pytest.mark.asyncio
    async def test_change_password(self, auth, email_sender):
        user_id = await registered(auth, email_sender)

        with pytest.raises(UnauthorizedException):
            await auth.change_password(user_id, "wrong", "Another1")
        with pytest.raises(EntityNotFoundException):
            await auth.change_password(user_id + 100, "Secret123", "Another1")

        await auth.change_password(user_id, "Secret123", "Another1")
        assert (await auth.login("alice", "Another1"))["id"] == user_id


class TestEmailChange:
    @pytest.mark.asyncio
    async def test_confirm_once(self, auth, email_sender):
        user_id = await registered(auth, email_sender)

        await auth.verify_email_change(user_id, "Secret123", "new@example.com")
        otp = email_sender.last_code("new@example.com")

        assert await auth.confirm_email_change(user_id, otp) == "new@example.com"
        assert (await auth.users.get_profile(user_id))["email"] == "new@example.com"

        with pytest.raises(InvalidCodeError, match="No OTP request found"):
            await auth.confirm_email_change(user_id, otp)

    @pytest.mark.asyncio
    async def test_guards(self, auth, email_sender):
        user_id = await registered(auth, email_sender)
        await registered(auth, email_sender, username="bob", email="bob@example.com")

        with pytest.raises(UnauthorizedException):
            await auth.verify_email_change(user_id, "wrong", "fresh@example.com")
        with pytest.raises(ValidationError):
            await auth.verify_email_change(user_id, "Secret123", "bob@example.com")
        with pytest.raises(EntityNotFoundException):
            await auth.verify_email_change(user_id + 100, "Secret123", "fresh@example.com")

    @pytest.mark.asyncio
    async def test_current_address_is_not_reported_as_taken(self, auth, email_sender):
        user_id = await registered(auth, email_sender)
        sent_before = len(email_sender.outbox)

        with pytest.raises(ValidationError) as exc:
            await auth.verify_email_change(user_id, "Secret123", "alice@example.com")

        assert exc.value.message == "New email is the same as the current email"
        assert len(email_sender.outbox) == sent_before
        assert len(auth.email_change_store) == 0

    @pytest.mark.asyncio
    async def test_otp_expires_after_ten_minutes(self, auth, email_sender, clock):
        user_id = await registered(auth, email_sender)
        await auth.verify_email_change(user_id, "Secret123", "new@example.com")
        otp = email_sender.last_code("new@example.com")

        clock.advance(timedelta(minutes=10, seconds=1))

        with pytest.raises(InvalidCodeError):
            await auth.confirm_email_change(user_id, otp)
        assert (await auth.users.get_profile(user_id))["email"] == "alice@example.com"
