"""Configuration loader: YAML files + environment variables."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from docguard.core.models import AppConfig, LoggingConfig, SanitizerConfig

_TRUTHY = {"1", "true", "yes", "on"}


def _find_project_root() -> Path:
    """Walk up from cwd to find a directory containing pyproject.toml."""
    cwd = Path.cwd()
    for p in [cwd, *cwd.parents]:
        if (p / "pyproject.toml").exists():
            return p
    return cwd


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load configuration from YAML + environment variables.

    Priority: env vars > .env file > YAML defaults.
    """
    root = _find_project_root()
    load_dotenv(root / ".env")

    yaml_path = Path(config_path) if config_path else root / "config" / "default.yaml"
    yaml_data: dict = {}
    if yaml_path.exists():
        with open(yaml_path) as f:
            yaml_data = yaml.safe_load(f) or {}

    # Sanitizer config with env overrides
    san_data = yaml_data.get("sanitizer", {}) or {}
    tags_env = os.getenv("DOCGUARD_ADDITIONAL_TAGS")
    if tags_env is not None:
        additional_tags = [t.strip() for t in tags_env.split(",") if t.strip()]
    else:
        additional_tags = list(san_data.get("additional_tags", []) or [])
    sanitizer = SanitizerConfig(
        base_url=os.getenv("DOCGUARD_BASE_URL", san_data.get("base_url", "http://localhost/")),
        allow_images=_env_bool("DOCGUARD_ALLOW_IMAGES", bool(san_data.get("allow_images", True))),
        allow_links=_env_bool("DOCGUARD_ALLOW_LINKS", bool(san_data.get("allow_links", True))),
        additional_tags=additional_tags,
    )

    # Logging config
    log_data = yaml_data.get("logging", {}) or {}
    log_cfg = LoggingConfig(
        level=os.getenv("DOCGUARD_LOG_LEVEL", log_data.get("level", "WARNING")).upper(),
        **({"format": log_data["format"]} if log_data.get("format") else {}),
    )

    return AppConfig(sanitizer=sanitizer, logging=log_cfg)


def configure_logging(cfg: LoggingConfig) -> None:
    """Configure the root logger once from the loaded config."""
    level = logging.getLevelName(cfg.level)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format=cfg.format)
