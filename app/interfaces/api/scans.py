"""Scan API routes for saved scans and disease lookups."""

from fastapi import APIRouter, Depends, status

from app.application.services.scan_service import get_disease_info, get_scan_history, save_scan
from app.domain.repositories.scan_repository import ScanRepository
from app.domain.schemas.scan import DiseaseInfo, ScanCreate, ScanHistoryItem, ScanSaved
from app.interfaces.deps import get_scan_repository

router = APIRouter(tags=["Scans"])


@router.post("/save", response_model=ScanSaved, status_code=status.HTTP_201_CREATED)
async def save(body: ScanCreate, scans: ScanRepository = Depends(get_scan_repository)):
    scan_id = await save_scan(scans, body)
    return ScanSaved(rice_leaf_scan_id=scan_id)


@router.get("/api/scan-history/{user_id}", response_model=list[ScanHistoryItem])
async def scan_history(user_id: int, scans: ScanRepository = Depends(get_scan_repository)):
    return await get_scan_history(scans, user_id)


@router.get("/disease-info/{class_number}", response_model=DiseaseInfo)
async def disease_info(class_number: int, scans: ScanRepository = Depends(get_scan_repository)):
    return await get_disease_info(scans, class_number)
