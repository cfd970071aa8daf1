from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

SUPPORTED_CROPS = {
    "Rice", "Wheat", "Tomato", "Potato", "Cotton", "Maize",
    "Sugarcane", "Onion", "Soybean", "Groundnut", "Chili", "Brinjal",
}


class Severity(str, Enum):
    MILD = "Mild"
    MODERATE = "Moderate"
    SEVERE = "Severe"


class CaseStatus(str, Enum):
    ONGOING = "ONGOING"
    MONITORING = "MONITORING"
    RECOVERED = "RECOVERED"
    WORSENED = "WORSENED"
    UNKNOWN = "UNKNOWN"


class LanguageContext(BaseModel):
    explicit_language: Optional[str] = None
    location_default_language: str = Field(min_length=1)
    resolved_language: str = Field(min_length=1)


class ChemicalTreatment(BaseModel):
    pesticide: str = ""
    dosage: str = ""
    method: str = ""
    frequency: str = ""


class PlanStep(BaseModel):
    day: int = Field(ge=1, le=7)
    action: str = ""


class Diagnosis(BaseModel):
    crop_name: str
    disease_name: str
    confidence: int = Field(ge=1, le=100)
    severity: Severity
    description: str = ""
    symptoms: List[str] = Field(default_factory=list, max_length=5)
    causes: str = ""
    chemical_treatment: ChemicalTreatment = Field(default_factory=ChemicalTreatment)
    organic_treatment: str = ""
    soil_care: str = ""
    local_recommendation: str = ""
    government_scheme: str = ""
    recovery_plan: List[PlanStep] = Field(default_factory=list, max_length=7)
    warning: str = ""
    voice_script: str = ""


class CaseRecord(BaseModel):
    id: str
    created_at: datetime
    display_date: str
    region: str

    crop_name: str
    disease_name: str
    confidence: int = Field(ge=1, le=100)
    severity: Severity
    description: str = ""
    symptoms: List[str] = Field(default_factory=list)
    causes: str = ""
    chemical_treatment: ChemicalTreatment = Field(default_factory=ChemicalTreatment)
    organic_treatment: str = ""
    soil_care: str = ""
    local_recommendation: str = ""
    government_scheme: str = ""
    recovery_plan: List[PlanStep] = Field(default_factory=list)
    warning: str = ""

    status: CaseStatus = CaseStatus.ONGOING
    notes: List[str] = Field(default_factory=list)
    last_updated: Optional[datetime] = None


class FollowUpAssessment(BaseModel):
    status: CaseStatus
    assessment: str = ""
    action_needed: str = ""


class SeasonRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_month: int = Field(ge=1, le=12)
    end_month: int = Field(ge=1, le=12)
    name: str


class RegionProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    dialect: str = ""
    tts_lang: str = "hi-IN"
    dominant_soil: str = ""
    rainfall: str = ""
    temp_range: str = ""
    seasons: tuple[SeasonRule, ...] = ()
    default_season: str = ""
    common_diseases: tuple[str, ...] = ()
    pest_alert: str = ""
    govt_schemes: tuple[str, ...] = ()
    soil_advice: str = ""
    helpline: str = ""
    agri_university: str = ""
    zones: tuple[str, ...] = ()
    water_situation: str = ""
    major_crops: tuple[str, ...] = ()


# ──────────────────────────────────────────────
#  API payloads
# ──────────────────────────────────────────────

class DiagnoseResponse(BaseModel):
    case: CaseRecord
    diagnosis: Diagnosis
    language: LanguageContext


class CaseUpdateRequest(BaseModel):
    note: str = ""
    status: Optional[CaseStatus] = Field(
        default=None,
        description="New status; omitted keeps the current one",
    )


class FollowUpResponse(BaseModel):
    case: CaseRecord
    assessment: Optional[FollowUpAssessment] = None


class CaseListResponse(BaseModel):
    cases: List[CaseRecord]
    total: int


class CaseStats(BaseModel):
    total: int = 0
    ongoing: int = 0
    recovered: int = 0
    severe: int = 0


class DeleteAllResponse(BaseModel):
    deleted: int


class ChatRequest(BaseModel):
    question: str = Field(min_length=1, max_length=2000)
    region: Optional[str] = None
    crop: Optional[str] = None
    language: Optional[str] = None


class ChatResponse(BaseModel):
    reply: str
    language: LanguageContext


class RegionSummary(BaseModel):
    name: str
    dialect: str
    tts_lang: str


class RegionDetail(BaseModel):
    profile: RegionProfile
    month: int
    season: str
    default_language: str


class Voice(BaseModel):
    name: str = ""
    lang: str


class SpeechRequest(BaseModel):
    case_id: Optional[str] = None
    diagnosis: Optional[Diagnosis] = None
    region: Optional[str] = None
    voices: List[Voice] = Field(default_factory=list)


class SpeechResponse(BaseModel):
    text: str
    lang: str
    voice: Optional[Voice] = None
