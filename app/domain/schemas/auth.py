"""Pydantic schemas for signup, login and credential changes."""

from datetime import date
from typing import Optional

from pydantic import AliasChoices, Field, field_validator

from app.domain.schemas.common import CamelModel, normalize_email


class _EmailBody(CamelModel):
    email: str

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, value):
        return normalize_email(value)


class PreSignupRequest(CamelModel):
    # Required fields are checked by the workflow so the 400 can list them
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    birthdate: Optional[date] = None
    gender: Optional[str] = None
    mobile_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("mobileNumber", "mobilenumber", "mobile_number"),
    )

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, value):
        return normalize_email(value)


class CompleteSignupRequest(_EmailBody):
    code: str


class EmailRequest(_EmailBody):
    pass


class VerifyOtpRequest(_EmailBody):
    otp: str


class ResetPasswordRequest(_EmailBody):
    new_password: str = Field(min_length=1)


class ChangePasswordRequest(CamelModel):
    user_id: int
    current_password: str
    new_password: str = Field(min_length=1)


class VerifyEmailChangeRequest(CamelModel):
    user_id: int
    password: str
    new_email: str

    @field_validator("new_email", mode="before")
    @classmethod
    def lower_email(cls, value):
        return normalize_email(value)


class ConfirmEmailChangeRequest(CamelModel):
    user_id: int
    otp: str


class LoginRequest(CamelModel):
    identifier: str = Field(validation_alias=AliasChoices("identifier", "username", "email"))
    password: str


class UserSummary(CamelModel):
    id: int
    username: str
    email: Optional[str] = None
    role: str


class LoginResponse(CamelModel):
    message: str = "Login successful"
    user: UserSummary


class MessageResponse(CamelModel):
    message: str


class SignupStarted(CamelModel):
    message: str
    email: str


class UserIdResponse(CamelModel):
    message: str
    user_id: int
