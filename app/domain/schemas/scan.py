"""Pydantic schemas for scans and disease information.

Scan bodies keep the snake_case keys the mobile client already sends.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel

SCAN_REQUIRED_FIELDS = (
    "scan_image",
    "user_profile_id",
    "disease_prediction",
    "disease_prediction_score",
)


class ScanCreate(BaseModel):
    user_profile_id: Optional[int] = None
    disease_prediction: Optional[int] = None
    disease_prediction_score: Optional[float] = None
    scan_image: Optional[str] = None


class ScanSaved(BaseModel):
    message: str = "Scan data saved successfully"
    rice_leaf_scan_id: int


class ScanHistoryItem(BaseModel):
    rice_leaf_scan_id: int
    rice_leaf_disease_id: int
    rice_leaf_disease: Optional[str] = None
    disease_confidence_score: float
    scan_image: str
    created_at: Optional[Union[datetime, str]] = None
    date_captured: Optional[Union[datetime, str]] = None


class DiseaseInfo(BaseModel):
    rice_leaf_disease: str
    disease_description: Optional[str] = None
    medicine_id: Optional[int] = None
    treatment_id: Optional[int] = None
    treatment: Optional[str] = None
    treatment_description: Optional[str] = None
    rice_plant_medicine: Optional[str] = None
    medicine_description: Optional[str] = None
