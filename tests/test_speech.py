"""
Tests for spoken text, voice choice and playback sequencing.
"""
import asyncio
import pytest

from app.api.schemas import Voice
from app.services.speech import (
    PlaybackSession,
    PlaybackState,
    build_speech_text,
    select_voice,
)


class RecordingEngine:
    def __init__(self):
        self.events = []

    async def speak(self, text, lang, voice):
        self.events.append(("speak", text, lang))

    async def cancel(self):
        self.events.append(("cancel",))


class FakeTime:
    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def clock(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def session(fake_time):
    return PlaybackSession(RecordingEngine(), clock=fake_time.clock, sleep=fake_time.sleep)


def test_speech_text_covers_diagnosis(sample_diagnosis):
    text = build_speech_text(sample_diagnosis)

    assert text.startswith("Late Blight. Tomato. Dark water-soaked lesions")
    assert "Dark lesions. White mould underneath." in text
    assert "Metalaxyl + Mancozeb." in text
    assert "Day 1: Remove infected plants" in text
    assert text.endswith("Monsoon humidity favours spread.")


def test_speech_text_skips_empty_parts(sample_diagnosis):
    sparse = sample_diagnosis.model_copy(update={
        "crop_name": "Late Blight",
        "description": "",
        "symptoms": [],
        "recovery_plan": [],
        "warning": "",
    })
    text = build_speech_text(sparse)

    assert text.startswith("Late Blight. Cool wet weather.")
    assert "  " not in text


VOICES = [
    Voice(name="Google US English", lang="en-US"),
    Voice(name="Google Hindi", lang="hi-IN"),
    Voice(name="Marathi (generic)", lang="mr"),
    Voice(name="Indian English", lang="en-IN"),
]


def test_select_voice_exact_match():
    assert select_voice(VOICES, "hi-IN").name == "Google Hindi"


def test_select_voice_language_family():
    assert select_voice(VOICES, "mr-IN").name == "Marathi (generic)"


def test_select_voice_fallback_tag():
    assert select_voice(VOICES, "ta-IN").name == "Indian English"


def test_select_voice_any_then_none():
    assert select_voice([Voice(name="Only", lang="fr-FR")], "ta-IN").name == "Only"
    assert select_voice([], "ta-IN") is None


def test_start_speaks(session):
    assert asyncio.run(session.start("Namaste", "hi-IN")) is True

    assert session.state == PlaybackState.SPEAKING
    assert session.engine.events == [("speak", "Namaste", "hi-IN")]


def test_start_with_empty_text_does_nothing(session):
    assert asyncio.run(session.start("   ", "hi-IN")) is False
    assert session.state == PlaybackState.IDLE
    assert session.engine.events == []


def test_restart_cancels_and_waits(session, fake_time):
    async def scenario():
        await session.start("first", "hi-IN")
        await session.start("second", "hi-IN")

    asyncio.run(scenario())

    assert session.engine.events == [
        ("speak", "first", "hi-IN"),
        ("cancel",),
        ("speak", "second", "hi-IN"),
    ]
    assert fake_time.sleeps == [pytest.approx(0.1)]


def test_no_wait_once_delay_has_passed(session, fake_time):
    async def scenario():
        await session.start("first", "hi-IN")
        await session.cancel()
        fake_time.now += 1.0
        await session.start("second", "hi-IN")

    asyncio.run(scenario())

    assert fake_time.sleeps == []


def test_toggle_and_finished(session):
    async def scenario():
        assert await session.toggle("hello", "en-IN") == PlaybackState.SPEAKING
        assert await session.toggle("hello", "en-IN") == PlaybackState.CANCELLED

    asyncio.run(scenario())
    session.finished()

    assert session.state == PlaybackState.IDLE


def test_voice_lang_overrides_requested_lang(session):
    asyncio.run(session.start("Vanakkam", "ta-IN", Voice(name="Fallback", lang="en-IN")))
    assert session.engine.events == [("speak", "Vanakkam", "en-IN")]
