"""Client defaults and settings loading.

Settings resolve from the environment first and then from a ``settings.json``
file found by walking up from a start directory::

    {
        "OpenAISettings": {
            "ApiKey": "sk-...",
            "PreferedChatCompletionModel": "gpt-4o-mini",
            "SystemRole": "You are a helpful assistant.",
            "Temperature": "0.2"
        }
    }
"""

import json
import os
from pathlib import Path
from typing import Mapping, Optional, Union

import structlog
from pydantic import BaseModel

from .domain.errors import ConfigurationError, ValidationError

logger = structlog.get_logger()

DEFAULT_CHAT_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODELS_ENDPOINT = "https://api.openai.com/v1/models"
DEFAULT_MODEL = "gpt-4o"
DEFAULT_SYSTEM_ROLE = "You are a helpful assistant."
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 5000
DEFAULT_TIMEOUT = 60.0

SETTINGS_FILE_NAME = "settings.json"
SETTINGS_SECTION = "OpenAISettings"

# Environment variable -> settings.json key
_SETTING_SOURCES = {
    "api_key": ("OPENAI_API_KEY", "ApiKey"),
    "model": ("OAI_MODEL", "PreferedChatCompletionModel"),
    "system_role": ("OAI_SYSTEM_ROLE", "SystemRole"),
    "temperature": ("OAI_TEMPERATURE", "Temperature"),
    "endpoint": ("OAI_ENDPOINT", "Endpoint"),
}


class Settings(BaseModel):
    """Values a chat session can be configured from. None means not set."""

    api_key: Optional[str] = None
    model: Optional[str] = None
    system_role: Optional[str] = None
    temperature: Optional[float] = None
    endpoint: Optional[str] = None


def find_settings_file(
    start_dir: Optional[Union[str, Path]] = None,
    file_name: str = SETTINGS_FILE_NAME
) -> Optional[Path]:
    """Return the first ``file_name`` found in ``start_dir`` or its parents."""
    directory = Path(start_dir or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / file_name
        if candidate.is_file():
            return candidate
    return None


def read_settings_file(path: Path) -> dict:
    """Return the string values of the settings section, blanks dropped."""
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Settings file {path} is not valid JSON: {e}") from e

    section = document.get(SETTINGS_SECTION) if isinstance(document, dict) else None
    if not isinstance(section, dict):
        logger.warning("settings_section_missing", path=str(path), section=SETTINGS_SECTION)
        return {}

    return {
        key: value for key, value in section.items()
        if isinstance(value, str) and value.strip()
    }


def load_settings(
    start_dir: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None
) -> Settings:
    """Resolve settings from the environment, then from ``settings.json``."""
    environ = os.environ if environ is None else environ
    path = find_settings_file(start_dir)
    file_values = read_settings_file(path) if path else {}

    values = {}
    for field_name, (env_name, file_key) in _SETTING_SOURCES.items():
        value = environ.get(env_name)
        if not value or not value.strip():
            value = file_values.get(file_key)
        if value is not None:
            values[field_name] = value

    if "temperature" in values:
        try:
            values["temperature"] = float(values["temperature"])
        except ValueError as e:
            raise ValidationError(f"Temperature setting {values['temperature']!r} is not a number") from e

    logger.debug(
        "settings_loaded",
        settings_file=str(path) if path else None,
        keys=sorted(values)
    )
    return Settings(**values)
