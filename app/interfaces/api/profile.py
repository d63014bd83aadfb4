"""Profile API routes."""

from fastapi import APIRouter, Depends

from app.application.services.profile_service import get_profile, update_profile
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.profile import ProfileRead, ProfileUpdate
from app.interfaces.deps import get_user_repository

router = APIRouter(prefix="/api/profile", tags=["Profile"])


@router.get("/{user_id}", response_model=ProfileRead)
async def read_profile(user_id: int, users: UserRepository = Depends(get_user_repository)):
    return await get_profile(users, user_id)


@router.put("/update")
async def update(body: ProfileUpdate, users: UserRepository = Depends(get_user_repository)):
    profile = await update_profile(users, body)
    return {"message": "Profile updated successfully", "profile": profile.model_dump(mode="json", by_alias=True)}
