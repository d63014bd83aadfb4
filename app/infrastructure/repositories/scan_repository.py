"""
SQL implementation of the Scan Repository.
"""

from typing import Any, Optional

from sqlalchemy import Float, Integer, String

from app.infrastructure.executor import QueryParam as P
from app.infrastructure.repositories.base_repository import SQLRepository


class SQLScanRepository(SQLRepository):
    """Scans, their capture history and the disease/treatment lookup tables."""

    async def save_scan(
        self, user_id: int, disease_id: int, confidence_score: float, scan_image: str
    ) -> int:
        async with self.executor.transaction() as tx:
            inserted = await tx.execute(
                """
                INSERT INTO rice_leaf_scan
                    (user_id, rice_leaf_disease_id, disease_confidence_score, created_at, scan_image)
                VALUES
                    (:user_id, :disease_id, :score, CURRENT_TIMESTAMP, :scan_image)
                RETURNING rice_leaf_scan_id
                """,
                (
                    P("user_id", Integer, user_id),
                    P("disease_id", Integer, disease_id),
                    P("score", Float, confidence_score),
                    P("scan_image", String, scan_image),
                ),
            )
            scan_id = inserted.scalar()
            await tx.execute(
                """
                INSERT INTO scan_history (rice_leaf_scan_id, date_captured)
                VALUES (:scan_id, CURRENT_TIMESTAMP)
                """,
                (P("scan_id", Integer, scan_id),),
            )
        return scan_id

    async def list_history(self, user_id: int) -> list[dict[str, Any]]:
        return await self._fetch_all(
            """
            SELECT s.rice_leaf_scan_id, s.rice_leaf_disease_id, d.rice_leaf_disease,
                   s.disease_confidence_score, s.scan_image, s.created_at, h.date_captured
            FROM rice_leaf_scan s
            LEFT JOIN scan_history h ON h.rice_leaf_scan_id = s.rice_leaf_scan_id
            LEFT JOIN rice_leaf_disease d ON d.rice_leaf_disease_id = s.rice_leaf_disease_id
            WHERE s.user_id = :user_id
            ORDER BY s.created_at DESC, s.rice_leaf_scan_id DESC
            """,
            P("user_id", Integer, user_id),
        )

    async def get_disease_info(self, class_number: int) -> Optional[dict[str, Any]]:
        return await self._fetch_one(
            """
            SELECT rld.rice_leaf_disease,
                   rld.description AS disease_description,
                   rld.medicine_id,
                   rld.treatment_id,
                   lpt.treatment,
                   lpt.description AS treatment_description,
                   rpm.rice_plant_medicine,
                   rpm.description AS medicine_description
            FROM rice_leaf_disease rld
            LEFT JOIN local_practice_treatment lpt ON rld.treatment_id = lpt.treatment_id
            LEFT JOIN rice_plant_medicine rpm ON rld.medicine_id = rpm.medicine_id
            WHERE rld.rice_leaf_disease_id = :class_number
            """,
            P("class_number", Integer, class_number),
        )
