"""
Speech output: spoken text for a diagnosis, voice selection and playback.

Playback goes through a single PlaybackSession per output device instead of
global state, so a cancel is always followed by a minimum pause before the
next utterance starts.

The HTTP API only returns the text and the chosen voice. PlaybackSession is
driven on the device that speaks, by a client-side SpeechEngine
implementation wrapping the platform text-to-speech.
"""
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Protocol
import asyncio
import logging
import time

from app.api.schemas import Diagnosis, Voice

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_TAG = "en-IN"
MIN_RESTART_DELAY_S = 0.1


def build_speech_text(diagnosis: Diagnosis) -> str:
    """Everything shown on the diagnosis screen, as one spoken passage."""
    d = diagnosis
    parts: List[str] = []

    if d.disease_name:
        parts.append(d.disease_name + ".")
    if d.crop_name and d.crop_name != d.disease_name:
        parts.append(d.crop_name + ".")
    if d.description:
        parts.append(d.description)
    symptoms = [s for s in d.symptoms if s]
    if symptoms:
        parts.append(". ".join(symptoms) + ".")
    if d.causes:
        parts.append(d.causes)
    if d.local_recommendation:
        parts.append(d.local_recommendation)
    if d.government_scheme:
        parts.append(d.government_scheme + ".")
    for value in (d.chemical_treatment.pesticide, d.chemical_treatment.dosage, d.chemical_treatment.frequency):
        if value:
            parts.append(value + ".")
    if d.organic_treatment:
        parts.append(d.organic_treatment)
    if d.soil_care:
        parts.append(d.soil_care)
    if d.recovery_plan:
        parts.append(". ".join(f"Day {step.day}: {step.action}" for step in d.recovery_plan))
    if d.warning:
        parts.append(d.warning)

    return " ".join(p for p in parts if p).strip()


def select_voice(
    voices: List[Voice],
    target_tag: str,
    fallback_tag: str = DEFAULT_FALLBACK_TAG,
) -> Optional[Voice]:
    """
    Pick a voice for a BCP-47 tag such as "mr-IN".

    Order: exact tag, same language family ("mr-*"), the fallback tag,
    any voice at all, or None when nothing is installed.
    """
    if not voices:
        return None

    family = target_tag.split("-")[0]

    for match in (
        lambda v: v.lang == target_tag,
        lambda v: v.lang.startswith(family),
        lambda v: v.lang == fallback_tag,
    ):
        for voice in voices:
            if match(voice):
                return voice

    return voices[0]


class SpeechEngine(Protocol):
    async def speak(self, text: str, lang: str, voice: Optional[Voice]) -> None: ...

    async def cancel(self) -> None: ...


class PlaybackState(str, Enum):
    IDLE = "IDLE"
    SPEAKING = "SPEAKING"
    CANCELLED = "CANCELLED"


class PlaybackSession:
    """
    Single owner of speech playback on one engine.

    IDLE -> SPEAKING on start(); SPEAKING -> CANCELLED on cancel();
    any state -> IDLE on finished(). start() while speaking cancels first and
    waits at least `min_restart_delay` after the last cancel.
    """

    def __init__(
        self,
        engine: SpeechEngine,
        min_restart_delay: float = MIN_RESTART_DELAY_S,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.engine = engine
        self.min_restart_delay = min_restart_delay
        self.state = PlaybackState.IDLE
        self._clock = clock
        self._sleep = sleep
        self._last_cancel_at: Optional[float] = None

    async def start(self, text: str, lang: str, voice: Optional[Voice] = None) -> bool:
        """Speak `text`. Returns False when there is nothing to say."""
        if not text.strip():
            return False

        if self.state == PlaybackState.SPEAKING:
            await self.cancel()

        if self._last_cancel_at is not None:
            remaining = self.min_restart_delay - (self._clock() - self._last_cancel_at)
            if remaining > 0:
                await self._sleep(remaining)

        self.state = PlaybackState.SPEAKING
        logger.debug(f"Speaking {len(text)} chars in {voice.lang if voice else lang}")
        await self.engine.speak(text, voice.lang if voice else lang, voice)
        return True

    async def cancel(self) -> None:
        await self.engine.cancel()
        self._last_cancel_at = self._clock()
        self.state = PlaybackState.CANCELLED

    def finished(self) -> None:
        """Engine callback: the utterance ended or failed."""
        self.state = PlaybackState.IDLE

    async def toggle(self, text: str, lang: str, voice: Optional[Voice] = None) -> PlaybackState:
        """Stop when speaking, otherwise start speaking."""
        if self.state == PlaybackState.SPEAKING:
            await self.cancel()
        else:
            await self.start(text, lang, voice)
        return self.state
