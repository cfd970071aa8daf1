"""
Durable storage for the case collection.

The collection is read and written as a whole. Storage failures never reach
the caller: loading returns an empty list and saving logs and reports False,
so the in-memory state stays authoritative for the current request.
"""
from pathlib import Path
from typing import List, Optional
import json
import logging
import os
import tempfile

from pydantic import ValidationError

from app.api.schemas import CaseRecord
from app.core.config import get_settings

logger = logging.getLogger(__name__)


class CaseStore:
    """Interface of a whole-collection case store."""

    async def load_all(self) -> List[CaseRecord]:
        raise NotImplementedError

    async def save_all(self, records: List[CaseRecord]) -> bool:
        raise NotImplementedError


class InMemoryCaseStore(CaseStore):
    """Non-durable store, useful for tests and throwaway sessions."""

    def __init__(self, records: Optional[List[CaseRecord]] = None):
        self._records = [r.model_copy(deep=True) for r in records or []]

    async def load_all(self) -> List[CaseRecord]:
        return [r.model_copy(deep=True) for r in self._records]

    async def save_all(self, records: List[CaseRecord]) -> bool:
        self._records = [r.model_copy(deep=True) for r in records]
        return True


class JsonFileCaseStore(CaseStore):
    """Stores all cases in a single JSON document."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else get_settings().cases_path

    async def load_all(self) -> List[CaseRecord]:
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Case store unreadable at {self.path}: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Case store at {self.path} is not a list, ignoring")
            return []

        records = []
        for item in data:
            try:
                records.append(CaseRecord.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping corrupted case record: {e.error_count()} errors")
                continue

        return records

    async def save_all(self, records: List[CaseRecord]) -> bool:
        payload = [r.model_dump(mode="json") for r in records]

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".cases-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fw:
                    json.dump(payload, fw, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to save {len(records)} cases to {self.path}: {e}")
            return False

        logger.info(f"Saved {len(records)} cases to {self.path}")
        return True


class DatabaseCaseStore(CaseStore):
    """Stores cases in the `case_records` table (USE_DATABASE=true)."""

    async def load_all(self) -> List[CaseRecord]:
        try:
            from app.db.database import session_scope
            from app.db.repository import CaseRecordRepository

            async with session_scope() as session:
                return await CaseRecordRepository.list_all(session)
        except Exception as e:
            logger.error(f"Database load failed: {e}", exc_info=True)
            return []

    async def save_all(self, records: List[CaseRecord]) -> bool:
        try:
            from app.db.database import session_scope
            from app.db.repository import CaseRecordRepository

            async with session_scope() as session:
                await CaseRecordRepository.replace_all(session, records)
        except Exception as e:
            logger.warning(f"Database save failed: {e}")
            return False

        logger.info(f"Saved {len(records)} cases to database")
        return True


def build_case_store() -> CaseStore:
    """Pick the store implementation from settings."""
    settings = get_settings()
    if settings.USE_DATABASE:
        logger.info("Using database case store")
        return DatabaseCaseStore()
    return JsonFileCaseStore()
