"""Upload service: validate images and hand them to object storage."""

from fastapi import UploadFile

from app.core.exceptions import ValidationError
from app.infrastructure.object_storage import ObjectStorage

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "image/heic", "image/heif"}
MAX_IMAGE_BYTES = 10 * 1024 * 1024


async def store_image(storage: ObjectStorage, file: UploadFile, bucket: str) -> str:
    """Upload an image and return its public URL."""
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationError(
            "Only image uploads are accepted",
            details={"contentType": file.content_type},
        )

    data = await file.read()
    if not data:
        raise ValidationError("Uploaded file is empty")
    if len(data) > MAX_IMAGE_BYTES:
        raise ValidationError("Image is too large", details={"maxBytes": MAX_IMAGE_BYTES})

    return await storage.put(data, file.filename, file.content_type, bucket)
