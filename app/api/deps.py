"""
FastAPI dependencies shared by the routers.
"""
from functools import lru_cache

from fastapi import Depends

from app.services.case_lifecycle import CaseLifecycle
from app.services.orchestrator import DiagnosisOrchestrator
from app.services.regions import RegionCatalog, get_region_catalog
from app.services.storage.case_store import build_case_store


@lru_cache(maxsize=1)
def get_orchestrator() -> DiagnosisOrchestrator:
    """Process-wide orchestrator over the configured case store."""
    lifecycle = CaseLifecycle(build_case_store())
    return DiagnosisOrchestrator(lifecycle, get_region_catalog())


def get_lifecycle(orchestrator: DiagnosisOrchestrator = Depends(get_orchestrator)) -> CaseLifecycle:
    return orchestrator.lifecycle


def get_regions(orchestrator: DiagnosisOrchestrator = Depends(get_orchestrator)) -> RegionCatalog:
    return orchestrator.regions
