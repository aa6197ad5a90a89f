"""Pydantic models and loaders for the Chauffeur configuration file."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from common.app_setup import print_error

CONFIG_ENV_VAR = "CHAUFFEUR_CONFIG"
DEFAULT_CONFIG_PATH = "~/.chauffeur/config.yaml"
DEFAULT_CHAUFFEUR_DIRECTORY = "~/.chauffeur/packages"


class BackendSettings(BaseModel):
    """Connection parameters for the content-management backend."""

    type: Literal["rest"] = Field(default="rest", description="Connector type")
    url: str = Field(default="http://127.0.0.1:8000", description="Base URL, scheme included")
    user: str = "admin"
    password: str = ""


class ChauffeurSettings(BaseModel):
    """Settings consumed by the deliverables."""

    chauffeur_directory: str | None = Field(default=None, description="Folder holding <package>.xml files")
    backend: BackendSettings = Field(default_factory=BackendSettings)

    def try_get_chauffeur_directory(self) -> str | None:
        """Return the package directory, or None after reporting why it is unusable."""
        configured = self.chauffeur_directory or DEFAULT_CHAUFFEUR_DIRECTORY
        directory = Path(configured).expanduser()
        if not directory.is_dir():
            print_error(f"The Chauffeur directory '{directory}' does not exist, create it or pass -f:<path>")
            return None
        return str(directory)


# ---------------------------------------------------------------------------
# helpers


def resolve_config_path(path: str | os.PathLike[str] | None = None) -> Path:
    """Pick the explicit path, then $CHAUFFEUR_CONFIG, then the default."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)
    return Path(path).expanduser()


def load_settings(path: str | os.PathLike[str] | None = None) -> ChauffeurSettings:
    """Load settings from a YAML (or JSON) file. A missing file yields defaults."""
    config_path = resolve_config_path(path)
    if not config_path.exists():
        return ChauffeurSettings()
    payload = _load_text_payload(config_path.read_text())
    try:
        return ChauffeurSettings.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid settings in {config_path}") from exc


def _load_text_payload(raw: str) -> dict[str, Any]:
    """Interpret raw text as YAML first, falling back to JSON."""
    try:
        return yaml.safe_load(raw) or {}
    except yaml.YAMLError:
        return json.loads(raw)


__all__ = [
    "BackendSettings",
    "ChauffeurSettings",
    "load_settings",
    "resolve_config_path",
]
