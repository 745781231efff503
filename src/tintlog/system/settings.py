from __future__ import annotations
import json, os
from dataclasses import dataclass, asdict, field, fields
from pathlib import Path
from typing import Callable, List, Optional

from tintlog.core.colors import ColorRules
from tintlog.core.errors import ConfigError, InvalidLevelError
from tintlog.core.header import Flag, parse_flags
from tintlog.core.levels import parse_level
from tintlog.core.logger import ESCALATION_POLICIES
from tintlog.core.logging import logger

CONFIG_ENV = "TINTLOG_CONFIG"

def env_flag(name: str, default: str = "0") -> bool:
    v = (os.getenv(name) or default).strip().lower()
    return v in ("1", "true", "yes", "on")

def _valid_level(name: str) -> bool:
    try:
        parse_level(name)
    except InvalidLevelError:
        return False
    return True

@dataclass
class SettingsData:
    level: str = "DEBUG"
    panic_level: str = "FATAL"
    color: bool = False
    flags: List[str] = field(default_factory=lambda: ["date", "time"])
    output_file: Optional[str] = None
    color_rules: Optional[str] = None   # path to a JSON rules file
    escalation: str = "raise"           # raise, exit, return

    def normalize(self):
        if not isinstance(self.level, str) or not _valid_level(self.level):
            self.level = "DEBUG"
        if not isinstance(self.panic_level, str) or not _valid_level(self.panic_level):
            self.panic_level = "FATAL"
        self.level = self.level.upper()
        self.panic_level = self.panic_level.upper()
        if isinstance(self.color, str):
            self.color = self.color.strip().lower() in ("1", "true", "yes", "on")
        else:
            self.color = bool(self.color)
        try:
            parse_flags(self.flags)
        except (TypeError, ValueError):
            self.flags = ["date", "time"]
        if self.escalation not in ESCALATION_POLICIES:
            self.escalation = "raise"

    def header_flags(self) -> Flag:
        return parse_flags(self.flags)

class Settings:
    def __init__(self, data: SettingsData, path: Optional[Path] = None):
        self.data = data
        self.path = path
        self._listeners: List[Callable[[SettingsData], None]] = []

    @classmethod
    def load(cls, path: "str | Path | None" = None) -> "Settings":
        if path is None and os.getenv(CONFIG_ENV):
            path = os.environ[CONFIG_ENV]
        path = Path(path) if path is not None else None
        data = SettingsData()
        if path is not None and path.exists():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                known = {f.name for f in fields(SettingsData)}
                data = SettingsData(**{k: v for k, v in raw.items() if k in known})
                logger.debug("Loaded settings from %s", path)
            except Exception as e:
                logger.warn("Failed to parse settings %s, using defaults: %s", path, e)
                data = SettingsData()
        cls._apply_env(data)
        data.normalize()
        return cls(data, path)

    @staticmethod
    def _apply_env(data: SettingsData):
        if os.getenv("TINTLOG_LEVEL"):
            data.level = os.environ["TINTLOG_LEVEL"]
        if os.getenv("TINTLOG_PANIC_LEVEL"):
            data.panic_level = os.environ["TINTLOG_PANIC_LEVEL"]
        if os.getenv("TINTLOG_COLOR"):
            data.color = env_flag("TINTLOG_COLOR")
        if os.getenv("TINTLOG_FLAGS"):
            data.flags = [p for p in os.environ["TINTLOG_FLAGS"].split(",") if p.strip()]
        if env_flag("TINTLOG_COLOR_DISABLED"):
            data.color = False

    def save(self):
        if self.path is None:
            return
        try:
            self.path.write_text(json.dumps(asdict(self.data), indent=2), encoding="utf-8")
            logger.debug("Settings saved to %s", self.path)
        except OSError as e:
            logger.error("Failed to save settings %s: %s", self.path, e)

    def on_change(self, fn: Callable[[SettingsData], None]):
        self._listeners.append(fn)

    def _notify(self):
        for fn in self._listeners:
            fn(self.data)

    def update(self, **changes):
        for key, value in changes.items():
            if not hasattr(self.data, key):
                raise AttributeError(f"Unknown setting '{key}'")
            setattr(self.data, key, value)
        self.data.normalize()
        self._notify()

    def load_color_rules(self) -> Optional[ColorRules]:
        if not self.data.color_rules:
            return None
        try:
            return ColorRules.load(self.data.color_rules)
        except ConfigError as e:
            logger.warn("Ignoring color rules: %s", e)
            return None

    def apply(self, target, rules: Optional[ColorRules] = None) -> Optional[ColorRules]:
        """Push these settings onto a Logger.

        The logger keeps color rules only weakly, so the rules that were
        attached are returned and the caller must keep them alive.
        """
        d = self.data
        target.set_level_by_name(d.level)
        target.set_panic_level_by_name(d.panic_level)
        target.set_flags(d.header_flags())
        target.enable_color(d.color)
        target.escalation = d.escalation
        if rules is None:
            rules = self.load_color_rules()
        if rules is not None:
            target.set_color_resolver(rules)
        if d.output_file:
            target.set_output_file(d.output_file)
        return rules

    def apply_registry(self, registry, pattern: str = "*") -> Optional[ColorRules]:
        """Apply level, flags and color to every registered logger matching pattern.

        Output files are exclusive to one logger and are not applied here.
        """
        d = self.data
        registry.set_level(pattern, d.level)
        registry.set_panic_level(pattern, d.panic_level)
        registry.set_flags(pattern, d.header_flags())
        registry.enable_color(pattern, d.color)
        rules = self.load_color_rules()
        if rules is not None:
            registry.set_color_resolver(pattern, rules)
        for lg in registry.matching(pattern):
            lg.escalation = d.escalation
        return rules
