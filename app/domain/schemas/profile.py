"""Pydantic schemas for user profiles."""

from datetime import date
from typing import Optional

from pydantic import AliasChoices, Field

from app.domain.schemas.common import CamelModel


class ProfileRead(CamelModel):
    user_id: int
    username: str
    firstname: str
    lastname: str
    birthdate: Optional[date] = None
    gender: Optional[str] = None
    email: str
    mobile_number: Optional[str] = None
    profile_image_url: Optional[str] = None


class ProfileUpdate(CamelModel):
    user_id: int
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    birthdate: Optional[date] = None
    gender: Optional[str] = None
    mobile_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("mobileNumber", "mobilenumber", "mobile_number"),
    )
    profile_image_url: Optional[str] = None


class ProfileImageResponse(CamelModel):
    message: str
    image_url: str
