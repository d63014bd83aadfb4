"""Scan domain models: maps to 'rice_leaf_scan' and 'scan_history'."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.sql import func

from app.infrastructure.database import Base


class RiceLeafScan(Base):
    __tablename__ = "rice_leaf_scan"

    rice_leaf_scan_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user_credentials.user_id"), nullable=False, index=True)
    rice_leaf_disease_id = Column(Integer, ForeignKey("rice_leaf_disease.rice_leaf_disease_id"), nullable=False)
    disease_confidence_score = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    scan_image = Column(String(500), nullable=False)


class ScanHistory(Base):
    __tablename__ = "scan_history"

    scan_history_id = Column(Integer, primary_key=True, autoincrement=True)
    rice_leaf_scan_id = Column(Integer, ForeignKey("rice_leaf_scan.rice_leaf_scan_id"), nullable=False)
    date_captured = Column(DateTime(timezone=True), server_default=func.now())
