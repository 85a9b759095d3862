# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_DIR = "logs"
DEFAULT_TIMEOUT_SECONDS = 30.0


class ConfigurationError(RuntimeError):
    pass


def parse_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _parse_timeout(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"GOOGLE_SEARCH_MCP_TIMEOUT must be a number of seconds, got {raw!r}"
        ) from exc
    if value <= 0:
        raise ConfigurationError("GOOGLE_SEARCH_MCP_TIMEOUT must be positive")
    return value


def _parse_log_level(raw: Optional[str]) -> str:
    value = (raw or DEFAULT_LOG_LEVEL).strip().upper()
    if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError(f"Unknown GOOGLE_SEARCH_MCP_LOG_LEVEL: {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    config_path: Optional[Path]
    log_level: str
    log_dir: str
    failure_log_enabled: bool
    request_timeout: float


def get_settings(load_env_file: bool = True) -> Settings:
    if load_env_file:
        load_dotenv()

    raw_path = (os.getenv("GOOGLE_SEARCH_MCP_CONFIG") or "").strip()
    return Settings(
        config_path=Path(raw_path).expanduser() if raw_path else None,
        log_level=_parse_log_level(os.getenv("GOOGLE_SEARCH_MCP_LOG_LEVEL")),
        log_dir=(os.getenv("GOOGLE_SEARCH_MCP_LOG_DIR") or "").strip() or DEFAULT_LOG_DIR,
        failure_log_enabled=parse_bool_env("GOOGLE_SEARCH_MCP_FAILURE_LOG", True),
        request_timeout=_parse_timeout(os.getenv("GOOGLE_SEARCH_MCP_TIMEOUT")),
    )


def configure_logging(settings: Settings) -> None:
    # stdout carries the MCP stdio transport, so everything goes to stderr
    logging.basicConfig(
        stream=sys.stderr,
        level=settings.log_level,
        format="[%(levelname)s] %(message)s",
    )
    lib_logger = logging.getLogger("quota_rotator")
    lib_logger.setLevel(settings.log_level)
    lib_logger.propagate = True
