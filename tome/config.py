import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from tome.utils import list_files

DOCUMENT_EXTENSION = "pdf"

# environment variable -> settings field
ENV_VARS = {
    "SOURCE_DIR": "source_dir",
    "INVENTORY_PATH": "inventory_path",
    "ANTHROPIC_API_KEY": "anthropic_api_key",
    "CLAUDE_API_KEY": "anthropic_api_key",
    "VISION_MODEL": "vision_model",
    "GOOGLE_API_KEY": "google_api_key",
    "GOOGLE_CSE_ID": "google_cse_id",
    "ENABLE_WEB_VALIDATION": "enable_web_validation",
    "LOG_LEVEL": "log_level",
    "LOG_FILE": "log_file",
}


class Settings(BaseModel):
    source_dir: Optional[Path] = None
    inventory_path: Path = Path("inventory.csv")

    # visual analysis
    anthropic_api_key: Optional[str] = None
    vision_model: str = "claude-sonnet-4-20250514"
    vision_max_tokens: int = Field(default=1000, gt=0)
    render_dpi: int = Field(default=300, gt=0)
    render_max_size: int = Field(default=2048, gt=0)

    # web validation
    google_api_key: Optional[str] = None
    google_cse_id: Optional[str] = None
    enable_web_validation: bool = True
    validation_confidence_threshold: int = Field(default=60, ge=0, le=100)
    search_suffix: str = "bande dessinée"

    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @field_validator("enable_web_validation", mode="before")
    @classmethod
    def parse_toggle(cls, v):
        # only an explicit "false" disables validation
        if isinstance(v, str):
            return v.strip().lower() != "false"
        return v

    @field_validator("anthropic_api_key", "google_api_key", "google_cse_id", mode="before")
    @classmethod
    def empty_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v):
        allowed = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {allowed}")
        return v.upper()

    @property
    def vision_enabled(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_api_key and self.google_cse_id)

    def list_documents(self) -> list[Path]:
        return list_files(self.source_dir, DOCUMENT_EXTENSION)


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    return raw.get("tome", raw)


def load_settings(config_path: Optional[str] = None, **overrides) -> Settings:
    """Build settings from an optional YAML file, then the environment, then overrides.

    The YAML file is taken from `config_path` or the TOME_CONFIG variable; `.env`
    files are honoured through python-dotenv.
    """
    load_dotenv()
    values: dict[str, Any] = {}

    config_path = config_path or os.getenv("TOME_CONFIG")
    if config_path and Path(config_path).is_file():
        values.update(_read_yaml(Path(config_path)))

    for env_name, field_name in ENV_VARS.items():
        value = os.getenv(env_name)
        if value is not None and value != "":
            values[field_name] = value

    values.update(overrides)
    return Settings(**values)
