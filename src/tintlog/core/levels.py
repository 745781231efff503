from __future__ import annotations
from enum import IntEnum
from typing import Dict

from tintlog.core.errors import InvalidLevelError

class Level(IntEnum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4

LEVEL_NAMES: Dict[Level, str] = {
    Level.DEBUG: "DEBUG",
    Level.INFO: "INFO",
    Level.WARN: "WARN",
    Level.ERROR: "ERROR",
    Level.FATAL: "FATAL",
}

_ALIASES: Dict[str, Level] = {
    "warning": Level.WARN,
    "panic": Level.FATAL,
    "critical": Level.FATAL,
}

def level_name(level: Level) -> str:
    return LEVEL_NAMES[Level(level)]

def parse_level(text: str) -> Level:
    key = (text or "").strip().lower()
    for lv, name in LEVEL_NAMES.items():
        if name.lower() == key:
            return lv
    if key in _ALIASES:
        return _ALIASES[key]
    raise InvalidLevelError(text)

def coerce_level(value: "Level | int | str") -> Level:
    """Accept a Level, its integer value, or a level name."""
    if isinstance(value, str):
        return parse_level(value)
    try:
        return Level(value)
    except ValueError:
        raise InvalidLevelError(str(value)) from None
