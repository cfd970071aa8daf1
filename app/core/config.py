import os
from functools import lru_cache
from pathlib import Path
from dotenv import load_dotenv

load_dotenv(override=True)

_PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env(name: str, default: str) -> str:
    """Read FASAL_<name>, then <name>, then the default."""
    return os.getenv(f"FASAL_{name}", os.getenv(name, default))


class Settings:
    def __init__(self) -> None:
        self.DATA_ROOT = _env("DATA_ROOT", "./data")
        self.CASES_FILE = _env("CASES_FILE", "cases.json")
        self.REGIONS_FILE = _env("REGIONS_FILE", str(_PROJECT_ROOT / "data" / "regions.yaml"))

        self.DEFAULT_LANGUAGE = _env("DEFAULT_LANGUAGE", "Hindi")
        self.DEFAULT_REGION = _env("DEFAULT_REGION", "Maharashtra")

        self.MAX_IMAGE_MB = int(_env("MAX_IMAGE_MB", "5"))
        self.MAX_IMAGE_SIDE = int(_env("MAX_IMAGE_SIDE", "1600"))
        self.ALLOWED_MIME = [
            m.strip().lower()
            for m in _env("ALLOWED_MIME", "image/jpeg,image/png,image/webp").split(",")
            if m.strip()
        ]

        # LLM gateway
        self.LLM_MODE = _env("LLM_MODE", "stub").lower()
        self.LLM_TIMEOUT_S = float(_env("LLM_TIMEOUT_S", "60"))
        self.LLM_TEMPERATURE = float(_env("LLM_TEMPERATURE", "0.4"))
        self.LLM_MAX_TOKENS = int(_env("LLM_MAX_TOKENS", "2800"))

        self.GROQ_API_URL = _env("GROQ_API_URL", "https://api.groq.com/openai/v1/chat/completions")
        self.GROQ_API_KEY = _env("GROQ_API_KEY", "")
        self.GROQ_MODEL = _env("GROQ_MODEL", "meta-llama/llama-4-scout-17b-16e-instruct")

        self.BEDROCK_REGION = os.getenv("FASAL_BEDROCK_REGION")
        self.BEDROCK_MODEL_ID = os.getenv("FASAL_BEDROCK_MODEL_ID")

        # Database
        self.DATABASE_URL = os.getenv("DATABASE_URL")  # Full connection string
        self.POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
        self.POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "")
        self.POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
        self.POSTGRES_PORT = int(os.getenv("POSTGRES_PORT", "5432"))
        self.POSTGRES_DB = os.getenv("POSTGRES_DB", "fasaldoc")
        self.DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"
        self.USE_DATABASE = _env("USE_DATABASE", "false").lower() == "true"

    @property
    def cases_path(self) -> Path:
        return Path(self.DATA_ROOT) / self.CASES_FILE


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
