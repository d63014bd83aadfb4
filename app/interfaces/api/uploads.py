"""Upload API routes: scan images and profile pictures to object storage."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.application.services.profile_service import get_profile, set_profile_image
from app.application.services.upload_service import store_image
from app.config import Settings
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.profile import ProfileImageResponse
from app.infrastructure.object_storage import ObjectStorage
from app.interfaces.deps import get_app_settings, get_object_storage, get_user_repository

router = APIRouter(tags=["Uploads"])


@router.post("/upload")
async def upload_scan_image(
    image: Optional[UploadFile] = File(None),
    storage: ObjectStorage = Depends(get_object_storage),
    settings: Settings = Depends(get_app_settings),
):
    image_url = await store_image(storage, image, settings.BUCKET_NAME)
    return {"imageUrl": image_url}


@router.post("/upload-profile", response_model=ProfileImageResponse)
async def upload_profile_image(
    user_id: int = Form(..., alias="userId"),
    image: Optional[UploadFile] = File(None),
    storage: ObjectStorage = Depends(get_object_storage),
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_app_settings),
):
    await get_profile(users, user_id)
    image_url = await store_image(storage, image, settings.PROFILE_BUCKET_NAME)
    await set_profile_image(users, user_id, image_url)
    return ProfileImageResponse(message="Profile image updated", image_url=image_url)
