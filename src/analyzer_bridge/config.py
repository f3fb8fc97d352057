"""Configuration settings for the analyzer bridge."""

import json
import logging
import os
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from analyzer_bridge.domain.exceptions import ConfigError

logger = logging.getLogger(__name__)


def get_config_path():
    """Get settings file path from environment variables."""
    return os.environ.get("BRIDGE_CONFIG_PATH", "config.json")


def get_log_level():
    """Get log level name from environment variables."""
    return os.environ.get("LOG_LEVEL", "INFO").upper()


def get_api_host_and_port():
    """Get status API bind address from environment variables."""
    host = os.environ.get("API_HOST", "0.0.0.0")
    port = int(os.environ.get("API_PORT", "8000"))
    return dict(host=host, port=port)


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class AnalyzerDetails(_Section):
    analyzer_base_url: str = Field(alias="analyzerBaseURL", min_length=1)
    analyzer_name: str = Field(alias="analyzerName")
    analyzer_id: str = Field(alias="analyzerId")
    department_id: str = Field(alias="departmentId")
    department_analyzer_id: str = Field(alias="departmentAnalyzerId")

    @field_validator("analyzer_base_url")
    @classmethod
    def _must_be_http(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("analyzerBaseURL must be an http(s) URL")
        return value


class Communication(_Section):
    query_frequency_in_minutes: int = Field(alias="queryFrequencyInMinutes", gt=0)
    query_for_yesterday_results: bool = Field(alias="queryForYesterdayResults", default=False)
    request_timeout_seconds: float = Field(alias="requestTimeoutSeconds", default=30, gt=0)


class LimsSettings(_Section):
    lims_server_base_url: str = Field(alias="limsServerBaseUrl", min_length=1)
    username: str
    password: str

    @field_validator("lims_server_base_url")
    @classmethod
    def _normalise_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("limsServerBaseUrl must be an http(s) URL")
        return value.rstrip("/")


class LedgerSettings(_Section):
    backend: Literal["file", "sql"] = "file"
    directory: str = "."
    database_url: str = Field(alias="databaseUrl", default="sqlite:///ledger.db")


class Settings(_Section):
    """Validated, immutable bridge settings."""
    analyzer: AnalyzerDetails = Field(alias="analyzerDetails")
    communication: Communication
    lims: LimsSettings = Field(alias="limsSettings")
    ledger: LedgerSettings = Field(alias="ledgerSettings", default_factory=LedgerSettings)


def parse_settings(raw: dict) -> Settings:
    """
    Validate a decoded settings document.

    Accepts either the full document or its ``middlewareSettings`` section.

    Raises:
        ConfigError: If a section or field is missing or invalid
    """
    if not isinstance(raw, dict):
        raise ConfigError("Settings document must be a JSON object")
    section = raw.get("middlewareSettings", raw)
    try:
        return Settings.model_validate(section)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load bridge settings from a JSON file.

    Args:
        path: Settings file. If None, uses BRIDGE_CONFIG_PATH or config.json.

    Raises:
        ConfigError: If the file is missing, is not valid JSON, or fails validation
    """
    path = Path(path or get_config_path())
    logger.info(f"Loading configuration from file: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"Settings file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Settings file {path} is not valid JSON: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read settings file {path}: {e}") from e

    settings = parse_settings(raw)
    logger.info("Configuration loaded successfully")
    return settings
