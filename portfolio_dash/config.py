from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, ValidationError

from .errors import ConfigError

# Load .env from repo root for local development and scripts.
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(dotenv_path=ENV_PATH)

class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, populate_by_name=True)
    portfolio_base_url: str = Field(alias="PORTFOLIO_BASE_URL", min_length=1)
    portfolio_api_key: str = Field(alias="PORTFOLIO_API_KEY", min_length=1)
    http_timeout_seconds: float = Field(default=20.0, alias="HTTP_TIMEOUT_SECONDS", gt=0)
    ticker_concurrency: int = Field(default=8, alias="TICKER_CONCURRENCY", ge=1)
    notification_buffer: int = Field(default=50, alias="NOTIFICATION_BUFFER", ge=1)
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_error_file: str | None = Field(default=None, alias="LOG_ERROR_FILE")


def load_settings(**overrides) -> Settings:
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        fields = []
        for err in exc.errors():
            loc = err.get("loc") or ()
            fields.append(str(loc[0]) if loc else "?")
        raise ConfigError(f"invalid or missing configuration: {', '.join(sorted(set(fields)))}") from exc
