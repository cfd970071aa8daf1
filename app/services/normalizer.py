"""
Diagnosis normalization.

Turns whatever object the model produced into a valid Diagnosis. This is a
total function: invalid or missing fields get safe defaults instead of
failing the whole analysis.
"""
from typing import Any, Dict, List, Optional
import logging
import math

from app.api.schemas import (
    CaseStatus,
    ChemicalTreatment,
    Diagnosis,
    FollowUpAssessment,
    PlanStep,
    Severity,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 75
UNKNOWN_DISEASE = "Unknown"
MAX_SYMPTOMS = 5
MAX_PLAN_DAYS = 7

_SEVERITIES = {s.value for s in Severity}
_STATUSES = {s.value for s in CaseStatus}


def _text(value: Any) -> str:
    """Coerce a raw field to a string; missing and non-textual values become ""."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return " ".join(_text(v) for v in value if v)
    return ""


def coerce_confidence(value: Any) -> int:
    """Numeric coercion with a default of 75, clamped into [1, 100]. Infinities clamp."""
    number: Optional[float] = None

    if isinstance(value, bool):
        number = None
    elif isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # Integer literal too large for a float
            number = math.inf if value > 0 else -math.inf
    elif isinstance(value, str):
        try:
            number = float(value.strip().rstrip("%"))
        except ValueError:
            number = None

    if number is None or math.isnan(number) or number == 0:
        number = DEFAULT_CONFIDENCE

    number = max(1.0, min(100.0, number))
    return int(round(number))


def coerce_severity(value: Any) -> Severity:
    if isinstance(value, str) and value in _SEVERITIES:
        return Severity(value)
    return Severity.MODERATE


def _symptoms(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [_text(s) for s in value if s and _text(s)][:MAX_SYMPTOMS]


def _plan_day(value: Any, position: int) -> int:
    try:
        day = int(value)
    except (TypeError, ValueError, OverflowError):
        day = position
    return max(1, min(MAX_PLAN_DAYS, day))


def _recovery_plan(value: Any) -> List[PlanStep]:
    if not isinstance(value, list):
        return []

    steps = []
    for position, entry in enumerate(value[:MAX_PLAN_DAYS], start=1):
        if isinstance(entry, dict):
            steps.append(PlanStep(
                day=_plan_day(entry.get("day"), position),
                action=_text(entry.get("action")),
            ))
        elif isinstance(entry, str):
            steps.append(PlanStep(day=position, action=entry))
    return steps


def _chemical_treatment(value: Any) -> ChemicalTreatment:
    if not isinstance(value, dict):
        return ChemicalTreatment()
    return ChemicalTreatment(
        pesticide=_text(value.get("pesticide")),
        dosage=_text(value.get("dosage")),
        method=_text(value.get("method")),
        frequency=_text(value.get("frequency")),
    )


def normalize_diagnosis(
    raw: Dict[str, Any],
    fallback_crop: str,
    fallback_disease: Optional[str] = None,
) -> Diagnosis:
    """
    Validate and coerce an extracted model object into a Diagnosis.

    Args:
        raw: Object recovered by extract_json (camelCase model keys)
        fallback_crop: Crop the farmer selected, used when the model omits it
        fallback_disease: Disease name to use when the model omits it

    Returns:
        Diagnosis with every string defined, confidence in [1, 100]
        and severity one of Mild/Moderate/Severe
    """
    if not isinstance(raw, dict):
        raw = {}

    disease = _text(raw.get("disease"))
    description = _text(raw.get("description"))
    warning = _text(raw.get("warning"))

    voice_script = _text(raw.get("voiceScript"))
    if not voice_script:
        voice_script = f"{disease or 'Disease'} detected. {description} {warning}".strip()

    diagnosis = Diagnosis(
        crop_name=_text(raw.get("crop")) or fallback_crop,
        disease_name=disease or fallback_disease or UNKNOWN_DISEASE,
        confidence=coerce_confidence(raw.get("confidence")),
        severity=coerce_severity(raw.get("severity")),
        description=description,
        symptoms=_symptoms(raw.get("symptoms")),
        causes=_text(raw.get("causes")),
        chemical_treatment=_chemical_treatment(raw.get("chemicalTreatment")),
        organic_treatment=_text(raw.get("organicTreatment")),
        soil_care=_text(raw.get("soilCare")),
        local_recommendation=_text(raw.get("localRecommendation")),
        government_scheme=_text(raw.get("govtScheme")),
        recovery_plan=_recovery_plan(raw.get("sevenDayPlan")),
        warning=warning,
        voice_script=voice_script,
    )

    logger.debug(f"Normalized diagnosis: {diagnosis.disease_name} ({diagnosis.confidence}%)")
    return diagnosis


def normalize_follow_up(raw: Dict[str, Any]) -> FollowUpAssessment:
    """Coerce a follow-up reply; a status outside the case status set becomes UNKNOWN."""
    if not isinstance(raw, dict):
        raw = {}

    status = _text(raw.get("status")).strip().upper()
    if status not in _STATUSES:
        logger.info(f"Follow-up returned unrecognised status '{status}'")
        status = CaseStatus.UNKNOWN.value

    return FollowUpAssessment(
        status=CaseStatus(status),
        assessment=_text(raw.get("assessment")),
        action_needed=_text(raw.get("actionNeeded")),
    )
