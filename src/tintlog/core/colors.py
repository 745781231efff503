"""Color tables and the text-to-color heuristic.

Provides:
  Color: palette understood by the logger (NONE disables escapes)
  color_from_name / color_from_level: default lookups
  escape_prefix / ESCAPE_SUFFIX: ANSI sequences sourced from colorama
  ColorRules: ordered substring rules deriving a color from message text
"""
from __future__ import annotations
import json
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from colorama import Fore, Style, just_fix_windows_console

from tintlog.core.errors import ConfigError
from tintlog.core.levels import Level

just_fix_windows_console()

class Color(Enum):
    NONE = "none"
    BLACK = "black"
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    PURPLE = "purple"
    DARK_GREEN = "darkgreen"
    WHITE = "white"

_PREFIX: Dict[Color, str] = {
    Color.NONE: "",
    Color.BLACK: Fore.BLACK,
    Color.RED: Fore.RED,
    Color.GREEN: Fore.GREEN,
    Color.YELLOW: Fore.YELLOW,
    Color.BLUE: Fore.BLUE,
    Color.PURPLE: Fore.MAGENTA,
    Color.DARK_GREEN: Fore.CYAN,
    Color.WHITE: Fore.WHITE,
}

ESCAPE_SUFFIX = Style.RESET_ALL

_BY_LEVEL: Dict[Level, Color] = {
    Level.DEBUG: Color.NONE,
    Level.INFO: Color.GREEN,
    Level.WARN: Color.YELLOW,
    Level.ERROR: Color.RED,
    Level.FATAL: Color.RED,
}

def escape_prefix(color: Color) -> str:
    return _PREFIX[color]

def color_from_name(name: str) -> Optional[Color]:
    key = (name or "").strip().lower().replace("_", "")
    for c in Color:
        if c.value == key:
            return c
    return None

def color_from_level(level: Level) -> Color:
    return _BY_LEVEL[level]

class ColorRules:
    """First matching substring wins; no match means Color.NONE."""

    def __init__(self, rules: Iterable[Tuple[str, Color]] = ()):
        self._rules: List[Tuple[str, Color]] = list(rules)

    def add(self, text: str, color: Color):
        self._rules.append((text, color))

    def color_from_text(self, text: str) -> Color:
        for needle, color in self._rules:
            if needle in text:
                return color
        return Color.NONE

    def __len__(self) -> int:
        return len(self._rules)

    @classmethod
    def from_dict(cls, data: dict, source: str = "<dict>") -> "ColorRules":
        rules = cls()
        entries = data.get("rules") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise ConfigError(source, "expected a 'rules' list")
        for i, entry in enumerate(entries):
            try:
                text, name = entry["text"], entry["color"]
            except (KeyError, TypeError):
                raise ConfigError(source, f"rule {i} needs 'text' and 'color'") from None
            color = color_from_name(name)
            if color is None:
                raise ConfigError(source, f"rule {i} has unknown color '{name}'")
            rules.add(str(text), color)
        return rules

    @classmethod
    def load(cls, path: "str | Path") -> "ColorRules":
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(str(path), str(e)) from e
        return cls.from_dict(data, source=str(path))
