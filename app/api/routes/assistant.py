from datetime import date
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from app.api.deps import get_orchestrator, get_regions
from app.api.schemas import (
    ChatRequest,
    ChatResponse,
    RegionDetail,
    RegionSummary,
    SpeechRequest,
    SpeechResponse,
)
from app.services.orchestrator import DiagnosisOrchestrator
from app.services.regions import RegionCatalog, season_for

router = APIRouter(tags=["assistant"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    req: ChatRequest,
    orchestrator: DiagnosisOrchestrator = Depends(get_orchestrator),
):
    """
    Ask the farming advisor a free-text question.

    Raises:
        502: Model unreachable
    """
    return await orchestrator.chat(req)


@router.post("/speech", response_model=SpeechResponse)
async def speech(
    req: SpeechRequest,
    orchestrator: DiagnosisOrchestrator = Depends(get_orchestrator),
):
    """
    Spoken passage and voice choice for a diagnosis or a stored case.

    `voices` lists what the client device can speak; the best match for the
    region's language is returned.
    """
    try:
        return await orchestrator.speech(req)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/regions", response_model=List[RegionSummary])
async def list_regions(regions: RegionCatalog = Depends(get_regions)):
    return [
        RegionSummary(name=p.name, dialect=p.dialect, tts_lang=p.tts_lang)
        for p in (regions.get(name) for name in regions.names())
    ]


@router.get("/regions/{name}", response_model=RegionDetail)
async def get_region(
    name: str,
    month: Optional[int] = Query(None, ge=1, le=12),
    regions: RegionCatalog = Depends(get_regions),
):
    """Region profile with the season for `month` (defaults to the current month)."""
    profile = regions.get(name)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"Region {name} not found")

    month = month or date.today().month
    return RegionDetail(
        profile=profile,
        month=month,
        season=season_for(profile, month),
        default_language=regions.default_language_for(name),
    )
