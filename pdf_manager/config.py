"""Environment-driven settings for :mod:`pdf_manager`."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

XREF_FORMATS = ("table", "stream")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

XREF_FORMAT_ENV = "PDF_MANAGER_XREF_FORMAT"
STRICT_ENV = "PDF_MANAGER_STRICT"
PRUNE_ENV = "PDF_MANAGER_PRUNE"
LOG_LEVEL_ENV = "PDF_MANAGER_LOG_LEVEL"
COMPRESS_ENV = "PDF_MANAGER_COMPRESS"


def _read_switch(environ: Mapping[str, str], env_name: str, default: bool) -> bool:
    value = environ.get(env_name)
    if value is None or not value.strip():
        return default
    normalised = value.strip().lower()
    if normalised in _TRUE_VALUES:
        return True
    if normalised in _FALSE_VALUES:
        return False
    raise ValueError(f"{env_name} must be one of 1/true/yes/on or 0/false/no/off, got {value!r}")


def _read_choice(environ: Mapping[str, str], env_name: str, choices: tuple[str, ...], default: str) -> str:
    value = environ.get(env_name)
    if value is None or not value.strip():
        return default
    normalised = value.strip()
    for choice in choices:
        if normalised.lower() == choice.lower():
            return choice
    raise ValueError(f"{env_name} must be one of {', '.join(choices)}, got {value!r}")


@dataclass(frozen=True)
class Settings:
    """Runtime switches shared by the loader, serializer and operations."""

    xref_format: str = "table"
    strict: bool = False
    prune: bool = True
    log_level: str = "WARNING"
    compress: bool = True

    def __post_init__(self) -> None:
        if self.xref_format not in XREF_FORMATS:
            raise ValueError(f"xref_format must be one of {', '.join(XREF_FORMATS)}")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``PDF_MANAGER_*`` environment variables."""

        env = os.environ if environ is None else environ
        return cls(
            xref_format=_read_choice(env, XREF_FORMAT_ENV, XREF_FORMATS, "table"),
            strict=_read_switch(env, STRICT_ENV, False),
            prune=_read_switch(env, PRUNE_ENV, True),
            log_level=_read_choice(env, LOG_LEVEL_ENV, LOG_LEVELS, "WARNING"),
            compress=_read_switch(env, COMPRESS_ENV, True),
        )


__all__ = ["Settings", "XREF_FORMATS", "LOG_LEVELS"]
