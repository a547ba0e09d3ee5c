"""Runtime settings.

Resolution order, later wins: built-in defaults, an optional YAML file,
then environment variables (a local .env is loaded first).

YAML layout:

    registry:
      base_url: https://clinicaltrials.gov/api/v2
      timeout_seconds: 30
      user_agent: trialscope/0.1.0
    http:
      host: 0.0.0.0
      port: 5000
    logging:
      level: INFO
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from trialscope.registry.ctgov_client import CTGOV_BASE, DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5000
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True, slots=True)
class Settings:
    base_url: str = CTGOV_BASE
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL


def _read_yaml(config_path: str | Path) -> dict[str, Any]:
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return data


def _from_yaml(data: dict[str, Any]) -> dict[str, Any]:
    registry = data.get("registry") or {}
    http = data.get("http") or {}
    logging_cfg = data.get("logging") or {}
    values = {
        "base_url": registry.get("base_url"),
        "timeout_seconds": registry.get("timeout_seconds"),
        "user_agent": registry.get("user_agent"),
        "host": http.get("host"),
        "port": http.get("port"),
        "log_level": logging_cfg.get("level"),
    }
    return {k: v for k, v in values.items() if v is not None}


def _from_env() -> dict[str, Any]:
    values = {
        "base_url": os.environ.get("TRIALSCOPE_BASE_URL"),
        "timeout_seconds": os.environ.get("TRIALSCOPE_TIMEOUT_SECONDS"),
        "user_agent": os.environ.get("TRIALSCOPE_USER_AGENT"),
        "host": os.environ.get("TRIALSCOPE_HOST"),
        # PORT is what most PaaS runtimes inject
        "port": os.environ.get("TRIALSCOPE_PORT") or os.environ.get("PORT"),
        "log_level": os.environ.get("TRIALSCOPE_LOG_LEVEL"),
    }
    return {k: v for k, v in values.items() if v}


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Resolve Settings from defaults, YAML and the environment."""
    load_dotenv()
    merged: dict[str, Any] = {}
    if config_path:
        merged.update(_from_yaml(_read_yaml(config_path)))
    merged.update(_from_env())

    if "timeout_seconds" in merged:
        merged["timeout_seconds"] = float(merged["timeout_seconds"])
    if "port" in merged:
        merged["port"] = int(merged["port"])
    if "log_level" in merged:
        merged["log_level"] = str(merged["log_level"]).upper()
    return Settings(**merged)
