"""Payloads held in the verification stores until a code is consumed."""

from datetime import date
from typing import Optional

from pydantic import BaseModel


class PendingSignup(BaseModel):
    """Signup details staged until the email address is confirmed."""

    email: str
    username: str
    password: str  # plaintext until complete-signup hashes it
    firstname: str
    lastname: str
    birthdate: Optional[date] = None
    gender: Optional[str] = None
    mobile_number: Optional[str] = None
    code: str


class PasswordResetOtp(BaseModel):
    user_id: int
    code: str


class EmailChangeOtp(BaseModel):
    user_id: int
    new_email: str
    code: str
