"""Leveled, optionally colorized, thread-safe text logger."""
from __future__ import annotations

from tintlog.core.colors import Color, ColorRules
from tintlog.core.errors import (
    ConfigError,
    EscalationError,
    InvalidLevelError,
    LogWriteError,
    TintlogError,
)
from tintlog.core.header import Flag
from tintlog.core.levels import Level, parse_level
from tintlog.core.logger import Logger, LogResult
from tintlog.core.registry import LoggerRegistry

__all__ = [
    "Color",
    "ColorRules",
    "ConfigError",
    "EscalationError",
    "Flag",
    "InvalidLevelError",
    "Level",
    "LogResult",
    "LogWriteError",
    "Logger",
    "LoggerRegistry",
    "TintlogError",
    "parse_level",
]
