import os
from pathlib import Path
from typing import Any, Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Backend API Configuration
    api_url: str = Field(default="http://localhost:8000", alias="SEVA_API_URL")
    request_timeout: float = Field(default=30.0, gt=0, alias="SEVA_API_TIMEOUT")

    # Retry Configuration
    retry_attempts: int = Field(default=3, ge=0, alias="SEVA_RETRY_ATTEMPTS")
    retry_delay: float = Field(default=1.0, ge=0, alias="SEVA_RETRY_DELAY")

    # Credential storage (memory only when unset)
    token_path: Path | None = Field(default=None, alias="SEVA_TOKEN_PATH")

    # Request/response tracing
    debug: bool = Field(default=False, alias="SEVA_DEBUG")


def load_settings(env: Mapping[str, Any] | None = None) -> Settings:
    """Build settings from environment variables (or the given mapping)."""
    source = os.environ if env is None else env
    values = {key: value for key, value in source.items() if value != ""}
    return Settings.model_validate(values)
