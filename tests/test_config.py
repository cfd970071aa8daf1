"""
Tests for configuration management.
"""
from pathlib import Path
import pytest

from app.core import config


@pytest.fixture(autouse=True)
def fresh_settings():
    """Rebuild settings around each test and drop the result afterwards."""
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def test_settings_loads_from_env(monkeypatch):
    """Test Settings class loads from FASAL_ prefixed env vars."""
    monkeypatch.setenv("FASAL_MAX_IMAGE_MB", "15")
    monkeypatch.setenv("FASAL_DATA_ROOT", "/custom/path")
    monkeypatch.setenv("FASAL_LLM_MODE", "GROQ")

    settings = config.get_settings()

    assert settings.MAX_IMAGE_MB == 15
    assert settings.DATA_ROOT == "/custom/path"
    assert settings.LLM_MODE == "groq"
    assert settings.cases_path == Path("/custom/path") / "cases.json"


def test_settings_fallback_to_non_prefixed(monkeypatch):
    """Test Settings falls back to non-FASAL_ prefixed vars."""
    monkeypatch.delenv("FASAL_GROQ_MODEL", raising=False)
    monkeypatch.setenv("GROQ_MODEL", "llama-3.2-90b-vision-preview")

    settings = config.get_settings()

    assert settings.GROQ_MODEL == "llama-3.2-90b-vision-preview"


def test_prefixed_var_wins(monkeypatch):
    monkeypatch.setenv("FASAL_DEFAULT_REGION", "Punjab")
    monkeypatch.setenv("DEFAULT_REGION", "Kerala")

    assert config.get_settings().DEFAULT_REGION == "Punjab"


def test_settings_defaults(monkeypatch):
    """Test Settings uses defaults when env vars not set."""
    for key in [
        "FASAL_DATA_ROOT", "DATA_ROOT", "FASAL_MAX_IMAGE_MB", "MAX_IMAGE_MB",
        "FASAL_LLM_TIMEOUT_S", "LLM_TIMEOUT_S", "FASAL_LLM_TEMPERATURE", "LLM_TEMPERATURE",
        "FASAL_LLM_MAX_TOKENS", "LLM_MAX_TOKENS", "FASAL_REGIONS_FILE", "REGIONS_FILE",
    ]:
        monkeypatch.delenv(key, raising=False)

    settings = config.get_settings()

    assert settings.MAX_IMAGE_MB == 5
    assert settings.DATA_ROOT == "./data"
    assert settings.LLM_TIMEOUT_S == 60
    assert settings.LLM_TEMPERATURE == 0.4
    assert settings.LLM_MAX_TOKENS == 2800
    assert Path(settings.REGIONS_FILE).name == "regions.yaml"
    assert Path(settings.REGIONS_FILE).exists()


def test_settings_are_cached():
    assert config.get_settings() is config.get_settings()


def test_allowed_mime_entries_are_trimmed(monkeypatch):
    monkeypatch.setenv("FASAL_ALLOWED_MIME", "image/jpeg, Image/PNG ,,")

    assert config.get_settings().ALLOWED_MIME == ["image/jpeg", "image/png"]
