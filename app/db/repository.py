"""
Repository layer for database operations.
"""
from typing import List
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import CaseRecord
from app.db.models import CaseRecordRow

_COLUMNS = [c.name for c in CaseRecordRow.__table__.columns if c.name != "position"]


class CaseRecordRepository:
    """Repository for case records. The whole collection is read and written at once."""

    @staticmethod
    def to_row(record: CaseRecord, position: int) -> CaseRecordRow:
        data = record.model_dump(mode="json")
        return CaseRecordRow(
            position=position,
            created_at=record.created_at,
            last_updated=record.last_updated,
            **{k: v for k, v in data.items() if k in _COLUMNS and k not in ("created_at", "last_updated")},
        )

    @staticmethod
    def to_record(row: CaseRecordRow) -> CaseRecord:
        return CaseRecord.model_validate({name: getattr(row, name) for name in _COLUMNS})

    @staticmethod
    async def list_all(db: AsyncSession) -> List[CaseRecord]:
        """All cases, most recent first."""
        result = await db.execute(
            select(CaseRecordRow).order_by(CaseRecordRow.position)
        )
        return [CaseRecordRepository.to_record(row) for row in result.scalars().all()]

    @staticmethod
    async def replace_all(db: AsyncSession, records: List[CaseRecord]) -> int:
        """Replace the stored collection with `records`, keeping their order."""
        await db.execute(delete(CaseRecordRow))
        db.add_all([
            CaseRecordRepository.to_row(record, position)
            for position, record in enumerate(records)
        ])
        await db.flush()
        return len(records)
