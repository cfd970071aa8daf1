from typing import Optional
from fastapi import APIRouter, UploadFile, File, Form, HTTPException, Depends

from app.api.deps import get_orchestrator
from app.api.schemas import DiagnoseResponse, FollowUpResponse, SUPPORTED_CROPS
from app.services.images import prepare_image
from app.services.orchestrator import DiagnosisOrchestrator

router = APIRouter(tags=["diagnose"])

_CROPS_BY_KEY = {c.lower(): c for c in SUPPORTED_CROPS}


def validate_crop(crop: str) -> str:
    """Canonical crop name, case-insensitive."""
    key = (crop or "").strip().lower()
    if key not in _CROPS_BY_KEY:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported crop: {crop}. Supported: {', '.join(sorted(SUPPORTED_CROPS))}",
        )
    return _CROPS_BY_KEY[key]


@router.post("/diagnose", response_model=DiagnoseResponse)
async def diagnose(
    crop: str = Form(...),
    region: str = Form(...),
    language: Optional[str] = Form(None),
    image: UploadFile = File(...),
    orchestrator: DiagnosisOrchestrator = Depends(get_orchestrator),
):
    """
    Diagnose a crop disease from one photo.

    The reply language is the explicit `language` (code or name) when given,
    otherwise the spoken language of `region`. The result is stored as a new
    ONGOING case.

    Raises:
        400: Unsupported crop, unknown region or unusable photo
        502: Model unreachable or reply not parseable
    """
    crop_name = validate_crop(crop)
    if region not in orchestrator.regions:
        raise HTTPException(status_code=400, detail=f"Unknown region: {region}")

    prepared = prepare_image(image.filename, image.content_type, await image.read())

    return await orchestrator.diagnose(crop_name, region, language, prepared)


@router.post("/cases/{case_id}/follow-up", response_model=FollowUpResponse)
async def follow_up(
    case_id: str,
    language: Optional[str] = Form(None),
    image: UploadFile = File(...),
    orchestrator: DiagnosisOrchestrator = Depends(get_orchestrator),
):
    """
    Re-assess a stored case from a new photo.

    `assessment` is null when the model reply could not be parsed; the case
    status is then left as it was.

    Raises:
        404: Case not found
        409: A follow-up for this case is already running
        502: Model unreachable
    """
    prepared = prepare_image(image.filename, image.content_type, await image.read())

    return await orchestrator.follow_up(case_id, prepared, language)
