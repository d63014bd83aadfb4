"""Image uploads to a GCS-compatible object store."""

import time
from typing import Protocol

import httpx
import structlog

from app.config import Settings
from app.core.exceptions import UpstreamError

logger = structlog.get_logger(__name__)


class ObjectStorage(Protocol):
    async def put(self, data: bytes, filename: str, content_type: str, bucket: str) -> str:
        ...


def object_name_for(filename: str) -> str:
    """``{epoch_ms}-{filename}`` with path separators stripped."""
    safe = filename.replace("/", "_").replace("\\", "_").strip() or "image"
    return f"{int(time.time() * 1000)}-{safe}"


class HttpObjectStorage:
    """Single-request media upload; returns the object's public URL."""

    def __init__(self, settings: Settings):
        self.upload_url = settings.STORAGE_UPLOAD_URL.rstrip("/")
        self.public_url = settings.STORAGE_PUBLIC_URL.rstrip("/")
        self.token = settings.STORAGE_API_TOKEN
        self.timeout = 60

    async def put(self, data: bytes, filename: str, content_type: str, bucket: str) -> str:
        name = object_name_for(filename)
        url = f"{self.upload_url}/{bucket}/o"
        headers = {"Content-Type": content_type}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    params={"uploadType": "media", "name": name},
                    content=data,
                    headers=headers,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Upload rejected", bucket=bucket, status_code=e.response.status_code)
            raise UpstreamError("Upload failed", details={"details": e.response.text[:200]}) from e
        except httpx.HTTPError as e:
            logger.error("Upload failed", bucket=bucket, error=str(e))
            raise UpstreamError("Upload failed", details={"details": str(e)}) from e

        public = f"{self.public_url}/{bucket}/{name}"
        logger.info("Uploaded object", bucket=bucket, object_name=name, size=len(data))
        return public
