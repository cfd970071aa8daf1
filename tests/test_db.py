"""
Tests for the database mapping layer (no live database needed).
"""
from datetime import datetime, timezone

from app.api.schemas import CaseRecord, CaseStatus, ChemicalTreatment, PlanStep, Severity
from app.db import database
from app.db.repository import CaseRecordRepository


def test_row_mapping_keeps_nested_fields():
    record = CaseRecord(
        id="case-1",
        created_at=datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc),
        display_date="19 OCT 2026",
        region="Odisha",
        crop_name="Rice",
        disease_name="Blast",
        confidence=77,
        severity=Severity.SEVERE,
        chemical_treatment=ChemicalTreatment(pesticide="Tricyclazole"),
        recovery_plan=[PlanStep(day=2, action="Drain field")],
        status=CaseStatus.WORSENED,
        notes=["Spreading"],
    )

    row = CaseRecordRepository.to_row(record, position=4)

    assert row.position == 4
    assert row.severity == "Severe"
    assert row.status == "WORSENED"
    assert row.chemical_treatment["pesticide"] == "Tricyclazole"
    assert row.recovery_plan == [{"day": 2, "action": "Drain field"}]
    assert CaseRecordRepository.to_record(row) == record


def test_database_url_from_parts(monkeypatch):
    monkeypatch.setattr(database.settings, "DATABASE_URL", None)
    monkeypatch.setattr(database.settings, "POSTGRES_PASSWORD", "secret")
    monkeypatch.setattr(database.settings, "POSTGRES_DB", "fasaldoc")

    url = database.get_database_url()

    assert url.startswith("postgresql+asyncpg://postgres:secret@")
    assert url.endswith("/fasaldoc")


def test_database_url_driver_swap(monkeypatch):
    monkeypatch.setattr(database.settings, "DATABASE_URL", "postgresql+asyncpg://u@db:5432/x")

    assert database.get_database_url(async_driver=False) == "postgresql+psycopg2://u@db:5432/x"
