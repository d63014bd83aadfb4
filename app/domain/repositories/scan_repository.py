"""
Scan Repository Interface.
"""

from typing import Any, Optional, Protocol


class ScanRepository(Protocol):
    """Interface for scan records and disease lookups."""

    async def save_scan(
        self, user_id: int, disease_id: int, confidence_score: float, scan_image: str
    ) -> int:
        """Insert the scan and its history row together; return the scan id."""
        ...

    async def list_history(self, user_id: int) -> list[dict[str, Any]]:
        ...

    async def get_disease_info(self, class_number: int) -> Optional[dict[str, Any]]:
        ...
