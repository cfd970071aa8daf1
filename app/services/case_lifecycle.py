"""
Case lifecycle: creation, farmer notes, follow-up assessments and bulk reset.

Status transitions are deliberately unguarded. Any status may follow any
other, e.g. a RECOVERED case becomes WORSENED when the disease comes back.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, List, Optional, Set
import asyncio
import logging
import uuid

from app.api.schemas import (
    CaseRecord,
    CaseStats,
    CaseStatus,
    Diagnosis,
    FollowUpAssessment,
    Severity,
)
from app.services.storage.case_store import CaseStore

logger = logging.getLogger(__name__)


class CaseNotFound(Exception):
    """Raised when a case id is not in the collection."""
    pass


class CaseBusy(Exception):
    """Raised when a follow-up is already running for a case."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_display_date(moment: datetime) -> str:
    """e.g. 19 OCT 2026"""
    return moment.strftime("%d %b %Y").upper()


class CaseLifecycle:
    """
    Owns every mutation of the case collection.

    Each mutation is a read-modify-write of the whole collection, serialized
    by an in-process lock. New cases go to the head; updates keep positions.

    Usage:
        lifecycle = CaseLifecycle(JsonFileCaseStore())
        record = await lifecycle.create_case(diagnosis, "Punjab")
    """

    def __init__(
        self,
        store: CaseStore,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.store = store
        self._clock = clock or _utcnow
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._lock = asyncio.Lock()
        self._follow_ups_in_flight: Set[str] = set()

    # ─────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────

    async def get_case(self, case_id: str) -> CaseRecord:
        for record in await self.store.load_all():
            if record.id == case_id:
                return record
        raise CaseNotFound(f"Case {case_id} not found")

    async def list_cases(
        self,
        status: Optional[CaseStatus] = None,
        search: Optional[str] = None,
    ) -> List[CaseRecord]:
        """Cases newest first, optionally filtered by status and by disease/crop substring."""
        records = await self.store.load_all()

        if status is not None:
            records = [r for r in records if r.status == status]

        needle = (search or "").strip().lower()
        if needle:
            records = [
                r for r in records
                if needle in r.disease_name.lower() or needle in r.crop_name.lower()
            ]

        return records

    async def stats(self) -> CaseStats:
        records = await self.store.load_all()
        return CaseStats(
            total=len(records),
            ongoing=sum(1 for r in records if r.status in (CaseStatus.ONGOING, CaseStatus.WORSENED)),
            recovered=sum(1 for r in records if r.status == CaseStatus.RECOVERED),
            severe=sum(1 for r in records if r.severity == Severity.SEVERE),
        )

    # ─────────────────────────────────────────────────────
    # Transitions
    # ─────────────────────────────────────────────────────

    async def create_case(self, diagnosis: Diagnosis, region: str) -> CaseRecord:
        """Record a fresh diagnosis as an ONGOING case at the head of the collection."""
        now = self._clock()
        record = CaseRecord(
            id=self._new_id(),
            created_at=now,
            display_date=format_display_date(now),
            region=region,
            status=CaseStatus.ONGOING,
            notes=[],
            last_updated=None,
            **diagnosis.model_dump(exclude={"voice_script"}),
        )

        async with self._lock:
            records = await self.store.load_all()
            await self.store.save_all([record] + records)

        logger.info(f"Created case {record.id}: {record.disease_name} on {record.crop_name} ({region})")
        return record

    async def add_note(
        self,
        case_id: str,
        note_text: Optional[str],
        new_status: Optional[CaseStatus] = None,
    ) -> CaseRecord:
        """
        Append a farmer note and/or change the status.

        An empty note with an unchanged status is a no-op: nothing is written
        and last_updated stays as it was.
        """
        note = (note_text or "").strip()

        async with self._lock:
            records = await self.store.load_all()
            index = self._index_of(records, case_id)
            record = records[index]

            status = new_status if new_status is not None else record.status
            if not note and status == record.status:
                return record

            notes = record.notes + [note] if note else list(record.notes)
            updated = record.model_copy(update={
                "status": status,
                "notes": notes,
                "last_updated": self._clock(),
            })
            records[index] = updated
            await self.store.save_all(records)

        logger.info(f"Updated case {case_id}: status={updated.status.value}, notes={len(updated.notes)}")
        return updated

    async def apply_follow_up(
        self,
        case_id: str,
        assessment: Optional[FollowUpAssessment],
    ) -> CaseRecord:
        """
        Set the case status from a follow-up assessment.

        `None` means the model reply could not be parsed; the case is returned
        unchanged and nothing is written.
        """
        if assessment is None:
            logger.info(f"No usable follow-up assessment for case {case_id}, status unchanged")
            return await self.get_case(case_id)

        async with self._lock:
            records = await self.store.load_all()
            index = self._index_of(records, case_id)
            previous = records[index].status

            updated = records[index].model_copy(update={
                "status": assessment.status,
                "last_updated": self._clock(),
            })
            records[index] = updated
            await self.store.save_all(records)

        logger.info(f"Follow-up for case {case_id}: {previous.value} -> {assessment.status.value}")
        return updated

    async def delete_all(self) -> int:
        """Empty the whole collection. Irreversible."""
        async with self._lock:
            count = len(await self.store.load_all())
            await self.store.save_all([])

        logger.warning(f"Deleted all {count} cases")
        return count

    @asynccontextmanager
    async def follow_up_slot(self, case_id: str):
        """Allow a single outstanding follow-up per case."""
        if case_id in self._follow_ups_in_flight:
            raise CaseBusy(f"A follow-up for case {case_id} is already running")

        self._follow_ups_in_flight.add(case_id)
        try:
            yield
        finally:
            self._follow_ups_in_flight.discard(case_id)

    @staticmethod
    def _index_of(records: List[CaseRecord], case_id: str) -> int:
        for i, record in enumerate(records):
            if record.id == case_id:
                return i
        raise CaseNotFound(f"Case {case_id} not found")
