"""Profile service: read and partially update user profiles."""

import structlog

from app.core.exceptions import EntityNotFoundException, ValidationError
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.common import missing_fields
from app.domain.schemas.profile import ProfileRead, ProfileUpdate

logger = structlog.get_logger(__name__)

# NOT NULL columns a partial update may set but never clear
PROFILE_NAME_FIELDS = ("firstname", "lastname")


async def get_profile(users: UserRepository, user_id: int) -> ProfileRead:
    row = await users.get_profile(user_id)
    if row is None:
        raise EntityNotFoundException("User profile not found", details={"userId": user_id})
    return ProfileRead.model_validate(row)


async def update_profile(users: UserRepository, body: ProfileUpdate) -> ProfileRead:
    fields = body.model_dump(exclude_unset=True, exclude={"user_id"})
    if not fields:
        raise ValidationError("No fields to update")
    cleared = missing_fields(body, [name for name in PROFILE_NAME_FIELDS if name in fields])
    if cleared:
        raise ValidationError("Fields cannot be empty", details={"invalidFields": cleared})

    if not await users.update_profile(body.user_id, fields):
        raise EntityNotFoundException("User profile not found", details={"userId": body.user_id})
    logger.info("Profile updated", user_id=body.user_id, fields=sorted(fields))
    return await get_profile(users, body.user_id)


async def set_profile_image(users: UserRepository, user_id: int, image_url: str) -> None:
    if not await users.update_profile(user_id, {"profile_image_url": image_url}):
        raise EntityNotFoundException("User profile not found", details={"userId": user_id})
