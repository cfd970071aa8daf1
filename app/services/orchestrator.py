"""
Diagnosis Orchestrator - coordinates the diagnosis, follow-up and chat flows.

Diagnosis:
1. Language resolution (explicit choice or region default)
2. Prompt construction with region context
3. Model call (ModelGateway)
4. JSON recovery (extract_json)
5. Normalization (normalize_diagnosis)
6. Case creation (CaseLifecycle -> CaseStore)

Follow-up runs the same path with the follow-up prompt and feeds the result
into CaseLifecycle.apply_follow_up.
"""
from datetime import date
from typing import Callable, Optional
import logging
import time

from app.api.schemas import (
    ChatRequest,
    ChatResponse,
    DiagnoseResponse,
    Diagnosis,
    FollowUpResponse,
    LanguageContext,
    SpeechRequest,
    SpeechResponse,
)
from app.core.config import get_settings
from app.services.case_lifecycle import CaseLifecycle
from app.services.helpers.extractor import ParseError, extract_json
from app.services.images import PreparedImage
from app.services.language import language_name, resolve_language
from app.services.llm_client import ModelGateway
from app.services.normalizer import normalize_diagnosis, normalize_follow_up
from app.services.prompts import build_chat_prompt, build_diagnosis_prompt, build_follow_up_prompt
from app.services.regions import RegionCatalog
from app.services.speech import build_speech_text, select_voice

logger = logging.getLogger(__name__)


def _current_month() -> int:
    return date.today().month


class DiagnosisOrchestrator:
    """
    Main coordinator for model-backed flows.

    Usage:
        orchestrator = DiagnosisOrchestrator(lifecycle, regions)
        result = await orchestrator.diagnose("Tomato", "Punjab", None, image)
    """

    def __init__(
        self,
        lifecycle: CaseLifecycle,
        regions: RegionCatalog,
        gateway: Optional[ModelGateway] = None,
        month_provider: Callable[[], int] = _current_month,
    ):
        """
        Args:
            lifecycle: Case lifecycle over the configured store
            regions: Region reference data
            gateway: Model gateway (created from settings if None)
            month_provider: Returns the current calendar month (1-12)
        """
        self.lifecycle = lifecycle
        self.regions = regions
        self.gateway = gateway or ModelGateway()
        self._month = month_provider

        logger.info("DiagnosisOrchestrator initialized")

    def resolve_language(self, language: Optional[str], region: Optional[str]) -> LanguageContext:
        return resolve_language(language_name(language), self.regions.default_language_for(region))

    async def diagnose(
        self,
        crop: str,
        region: str,
        language: Optional[str],
        image: PreparedImage,
    ) -> DiagnoseResponse:
        """
        Run a full diagnosis and record it as a new case.

        Raises:
            GatewayError: Model unreachable or reported an error
            ParseError: No JSON could be recovered from the reply
        """
        t0 = time.perf_counter()
        lang = self.resolve_language(language, region)
        profile = self.regions.get(region)

        logger.info(f"Starting diagnosis: crop={crop}, region={region}, language={lang.resolved_language}")

        prompt = build_diagnosis_prompt(crop, region, profile, lang, self._month())
        raw_text = await self.gateway.send(prompt, image.base64_jpeg)
        t_llm = time.perf_counter()

        raw = extract_json(raw_text)
        diagnosis = normalize_diagnosis(raw, fallback_crop=crop)

        record = await self.lifecycle.create_case(diagnosis, region)

        logger.info(
            f"Diagnosis completed for case {record.id} in {time.perf_counter() - t0:.2f}s "
            f"(model {t_llm - t0:.2f}s)"
        )
        return DiagnoseResponse(case=record, diagnosis=diagnosis, language=lang)

    async def follow_up(
        self,
        case_id: str,
        image: PreparedImage,
        language: Optional[str] = None,
    ) -> FollowUpResponse:
        """
        Re-assess a case from a new photo.

        An unparseable reply leaves the case untouched and returns no assessment.

        Raises:
            CaseNotFound: Unknown case id
            CaseBusy: Another follow-up for this case is running
            GatewayError: Model unreachable or reported an error
        """
        case = await self.lifecycle.get_case(case_id)

        async with self.lifecycle.follow_up_slot(case_id):
            lang = self.resolve_language(language, case.region)
            prompt = build_follow_up_prompt(case, lang)
            raw_text = await self.gateway.send(prompt, image.base64_jpeg)

            try:
                assessment = normalize_follow_up(extract_json(raw_text))
            except ParseError as e:
                logger.warning(f"Follow-up reply for case {case_id} unparseable: {e}")
                assessment = None

            updated = await self.lifecycle.apply_follow_up(case_id, assessment)

        return FollowUpResponse(case=updated, assessment=assessment)

    async def chat(self, req: ChatRequest) -> ChatResponse:
        """Free-text question to the advisor; the reply text is returned trimmed, unparsed."""
        settings = get_settings()
        region = req.region or settings.DEFAULT_REGION
        crop = req.crop or ""
        lang = self.resolve_language(req.language, region)

        prompt = build_chat_prompt(req.question, region, crop, self.regions.get(region), lang, self._month())
        reply = await self.gateway.send(prompt)

        return ChatResponse(reply=reply.strip(), language=lang)

    async def speech(self, req: SpeechRequest) -> SpeechResponse:
        """
        Spoken text and voice for a diagnosis or a stored case.

        Raises:
            CaseNotFound: Unknown case id
            ValueError: Neither a case id nor a diagnosis was given
        """
        if req.diagnosis is not None:
            diagnosis = req.diagnosis
            region = req.region or get_settings().DEFAULT_REGION
        elif req.case_id:
            case = await self.lifecycle.get_case(req.case_id)
            diagnosis = Diagnosis(**case.model_dump(include=set(Diagnosis.model_fields)))
            region = req.region or case.region
        else:
            raise ValueError("Either case_id or diagnosis is required")

        profile = self.regions.get(region)
        target = profile.tts_lang if profile else "hi-IN"
        voice = select_voice(req.voices, target)

        return SpeechResponse(
            text=build_speech_text(diagnosis),
            lang=voice.lang if voice else target,
            voice=voice,
        )
