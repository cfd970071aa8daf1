from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from app.api.deps import get_lifecycle
from app.api.schemas import (
    CaseListResponse,
    CaseRecord,
    CaseStats,
    CaseStatus,
    CaseUpdateRequest,
    DeleteAllResponse,
)
from app.services.case_lifecycle import CaseLifecycle

router = APIRouter(tags=["cases"])


@router.get("/cases", response_model=CaseListResponse)
async def list_cases(
    status: Optional[CaseStatus] = None,
    search: Optional[str] = Query(None, max_length=100),
    lifecycle: CaseLifecycle = Depends(get_lifecycle),
):
    """
    List stored cases, newest first.

    Args:
        status: Only cases with this status
        search: Case-insensitive substring of disease or crop name
    """
    cases = await lifecycle.list_cases(status=status, search=search)
    return CaseListResponse(cases=cases, total=len(cases))


@router.get("/cases/stats", response_model=CaseStats)
async def case_stats(lifecycle: CaseLifecycle = Depends(get_lifecycle)):
    """Totals shown on the case-history screen."""
    return await lifecycle.stats()


@router.get("/cases/{case_id}", response_model=CaseRecord)
async def get_case(case_id: str, lifecycle: CaseLifecycle = Depends(get_lifecycle)):
    return await lifecycle.get_case(case_id)


@router.patch("/cases/{case_id}", response_model=CaseRecord)
async def update_case(
    case_id: str,
    body: CaseUpdateRequest,
    lifecycle: CaseLifecycle = Depends(get_lifecycle),
):
    """
    Add a farmer note and/or set the status by hand.

    An empty note without a status change returns the case untouched.
    """
    return await lifecycle.add_note(case_id, body.note, body.status)


@router.delete("/cases", response_model=DeleteAllResponse)
async def delete_all_cases(
    confirm: bool = False,
    lifecycle: CaseLifecycle = Depends(get_lifecycle),
):
    """Remove every case. Requires `confirm=true`."""
    if not confirm:
        raise HTTPException(status_code=400, detail="Deleting all cases requires confirm=true")

    deleted = await lifecycle.delete_all()
    return DeleteAllResponse(deleted=deleted)
