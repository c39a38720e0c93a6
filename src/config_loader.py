"""YAML configuration loader with environment-based secret resolution.

Notes:
- Secrets are NOT stored in the YAML file; only the ENV VAR name of the API key is.
- The embed API key itself lives in the settings store (see settings_store.py).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict

import yaml


@dataclass(frozen=True)
class APIConfig:
    google_maps_api_key_env: str

    def get_google_maps_api_key(self) -> str | None:
        return os.getenv(self.google_maps_api_key_env)


@dataclass(frozen=True)
class SettingsConfig:
    store_path: str
    api_key_option: str


@dataclass(frozen=True)
class IframeDefaults:
    width: str
    height: str


@dataclass(frozen=True)
class LoggingConfig:
    embed_log_path: str


@dataclass(frozen=True)
class Config:
    project_name: str
    project_version: str
    api: APIConfig
    settings: SettingsConfig
    iframe: IframeDefaults
    logging: LoggingConfig

    def validate(self) -> None:
        if not self.settings.store_path.strip():
            raise ValueError("settings.store_path must not be empty.")
        if not self.settings.api_key_option.strip():
            raise ValueError("settings.api_key_option must not be empty.")
        if not self.iframe.width.strip():
            raise ValueError("iframe.width must not be empty.")
        if not self.iframe.height.strip():
            raise ValueError("iframe.height must not be empty.")


def _require_key(d: Dict[str, Any], key: str) -> Any:
    if key not in d:
        raise KeyError(f"Missing required configuration key: {key}")
    return d[key]


def load_config(path: str) -> Config:
    """Load and validate YAML configuration from `path`.

    The API key env var is not required at load time; it is resolved on demand.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    project = raw.get("project", {})
    api_raw = raw.get("api", {})
    settings_raw = raw.get("settings", {})
    iframe_raw = raw.get("iframe", {})
    logging_raw = raw.get("logging", {})

    cfg = Config(
        project_name=_require_key(project, "name"),
        project_version=str(_require_key(project, "version")),
        api=APIConfig(
            google_maps_api_key_env=_require_key(api_raw, "google_maps_api_key_env"),
        ),
        settings=SettingsConfig(
            store_path=str(_require_key(settings_raw, "store_path")),
            api_key_option=str(
                settings_raw.get("api_key_option", "google_maps_embed_api_key")
            ),
        ),
        iframe=IframeDefaults(
            width=str(_require_key(iframe_raw, "width")),
            height=str(_require_key(iframe_raw, "height")),
        ),
        logging=LoggingConfig(
            embed_log_path=str(
                logging_raw.get("embed_log_path", "data/logs/embed_log.jsonl")
            ),
        ),
    )

    cfg.validate()
    return cfg
