"""
Application-wide settings using pydantic-settings.
All runtime env access in soapie/ should go through this module.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_PATH = PROJECT_ROOT / ".env"

_DEFAULT_PLACEHOLDER_NAMES = ["Patient non identifié", "Patient Inconnu"]


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    LOG_DIR: str = "./logs"
    LOG_FILE_NAME: str = "soapie.debug.log"
    LOG_FILE_WHEN: str = "midnight"
    LOG_FILE_INTERVAL: int = 1
    LOG_FILE_BACKUP_COUNT: int = 7
    LOG_FILE_ENCODING: str = "utf-8"
    LOG_FILE_LEVEL: str = "DEBUG"
    LOG_TRUNCATE: int = 600

    # Structuring model
    STRUCTURING_PROVIDER: str = ""
    STRUCTURING_MODEL: str = "gpt-4o-mini"
    STRUCTURING_TEMPERATURE: float = 0.0
    STRUCTURING_MAX_OUTPUT_TOKENS: int = 8192
    STRUCTURING_REQUEST_TIMEOUT: float = 60.0

    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = ""
    OLLAMA_BASE_URL: str = "http://localhost:11434"

    # Retry / backoff for overloaded model service
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_BASE_DELAY: float = 1.0
    RETRY_MAX_DELAY: float = 5.0

    # Pipeline
    PIPELINE_TIMEOUT_MULTIPLIER: int = 4
    RAW_SNIPPET_CHARS: int = 1000
    CLEAN_TRANSCRIPTION: bool = True

    # Database
    DB_PATH: str = "./data/patients.db"

    # Names that mean "identity not established yet"
    PLACEHOLDER_NAMES: list[str] = Field(
        default_factory=lambda: list(_DEFAULT_PLACEHOLDER_NAMES)
    )

    model_config = SettingsConfigDict(
        env_file=ENV_PATH,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def get_structuring_provider(self) -> str:
        return (self.STRUCTURING_PROVIDER or "").strip().lower()

    def get_openai_base_url(self) -> str | None:
        return self.OPENAI_BASE_URL.strip() or None

    def has_openai_creds(self) -> bool:
        return bool(self.OPENAI_API_KEY.strip())

    def retry_attempts(self) -> int:
        return self.RETRY_MAX_ATTEMPTS if self.RETRY_MAX_ATTEMPTS > 0 else 3

    def pipeline_timeout(self) -> float:
        """Hard bound for one structuring run, invocation plus all retries."""
        attempts = self.retry_attempts()
        multiplier = max(self.PIPELINE_TIMEOUT_MULTIPLIER, attempts)
        backoff_budget = self.RETRY_MAX_DELAY * max(attempts - 1, 0)
        return self.STRUCTURING_REQUEST_TIMEOUT * multiplier + backoff_budget


settings = Settings()
