"""Scan service: saving scans and reading them back."""

import structlog

from app.core.exceptions import EntityNotFoundException, InvalidReferenceError, ValidationError
from app.domain.repositories.scan_repository import ScanRepository
from app.domain.schemas.common import missing_fields
from app.domain.schemas.scan import (
    SCAN_REQUIRED_FIELDS,
    DiseaseInfo,
    ScanCreate,
    ScanHistoryItem,
)

logger = structlog.get_logger(__name__)


async def save_scan(scans: ScanRepository, body: ScanCreate) -> int:
    missing = missing_fields(body, SCAN_REQUIRED_FIELDS)
    if missing:
        raise ValidationError("Missing required fields", details={"missingFields": missing})

    try:
        scan_id = await scans.save_scan(
            user_id=body.user_profile_id,
            disease_id=body.disease_prediction,
            confidence_score=body.disease_prediction_score,
            scan_image=body.scan_image,
        )
    except InvalidReferenceError as e:
        raise InvalidReferenceError(
            "Unknown user or disease class",
            details={**e.details, "fields": ["user_profile_id", "disease_prediction"]},
        ) from e
    logger.info("Scan saved", scan_id=scan_id, user_id=body.user_profile_id)
    return scan_id


async def get_scan_history(scans: ScanRepository, user_id: int) -> list[ScanHistoryItem]:
    rows = await scans.list_history(user_id)
    return [ScanHistoryItem.model_validate(row) for row in rows]


async def get_disease_info(scans: ScanRepository, class_number: int) -> DiseaseInfo:
    row = await scans.get_disease_info(class_number)
    if row is None:
        raise EntityNotFoundException(
            "No disease information found for the given class number",
            details={"classNumber": class_number},
        )
    return DiseaseInfo.model_validate(row)
