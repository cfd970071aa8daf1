"""
Output language resolution for model prompts.

A prompt is always written for exactly one language: the farmer's explicit
choice when there is one, otherwise the spoken language of the selected region.
"""
from typing import Optional
import logging

from app.api.schemas import LanguageContext
from app.core.config import settings

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "en": "English",
    "hi": "Hindi",
    "mr": "Marathi",
    "ta": "Tamil",
    "te": "Telugu",
    "kn": "Kannada",
    "pa": "Punjabi",
    "gu": "Gujarati",
    "bn": "Bengali",
}


def language_name(code_or_name: Optional[str]) -> Optional[str]:
    """
    Map a UI language code ("hi") to its name ("Hindi").

    Full names are passed through unchanged; blank input and "auto" mean
    no explicit choice. Unknown two-letter codes are treated as no choice.
    """
    if code_or_name is None:
        return None
    value = code_or_name.strip()
    if not value or value.lower() == "auto":
        return None

    if value.lower() in LANGUAGE_NAMES:
        return LANGUAGE_NAMES[value.lower()]

    if len(value) <= 3:
        logger.info(f"Unknown language code '{value}', falling back to region default")
        return None

    return value


def resolve_language(
    explicit_language: Optional[str],
    location_default_language: Optional[str],
) -> LanguageContext:
    """Pick the single resolved language. Never fails and never returns an empty language."""
    explicit = (explicit_language or "").strip() or None
    default = (location_default_language or "").strip() or settings.DEFAULT_LANGUAGE

    return LanguageContext(
        explicit_language=explicit,
        location_default_language=default,
        resolved_language=explicit or default,
    )
