from __future__ import annotations
import weakref
from fnmatch import fnmatchcase
from typing import Callable, List, Optional

from tintlog.core.colors import ColorRules
from tintlog.core.levels import Level, coerce_level

class LoggerRegistry:
    """Loggers known to an application, held weakly and addressed by name patterns."""

    def __init__(self):
        self._loggers: "weakref.WeakValueDictionary[str, object]" = weakref.WeakValueDictionary()

    def add(self, logger):
        if logger.name in self._loggers:
            raise ValueError(f"Duplicate logger name {logger.name}")
        self._loggers[logger.name] = logger

    def get(self, name: str):
        return self._loggers.get(name)

    def remove(self, name: str) -> bool:
        return self._loggers.pop(name, None) is not None

    def names(self) -> List[str]:
        return sorted(self._loggers.keys())

    def visit(self, fn: Callable[[object], Optional[bool]]):
        """Call fn for each logger in name order; stop early if fn returns False."""
        for name in self.names():
            logger = self._loggers.get(name)
            if logger is not None and fn(logger) is False:
                break

    def matching(self, pattern: str) -> list:
        return [lg for name, lg in sorted(self._loggers.items()) if fnmatchcase(name, pattern)]

    def __len__(self) -> int:
        return len(self._loggers)

    def __contains__(self, name: str) -> bool:
        return name in self._loggers

    def set_level(self, pattern: str, level: "Level | int | str") -> int:
        lv = coerce_level(level)
        targets = self.matching(pattern)
        for lg in targets:
            lg.set_level(lv)
        return len(targets)

    def set_panic_level(self, pattern: str, level: "Level | int | str") -> int:
        lv = coerce_level(level)
        targets = self.matching(pattern)
        for lg in targets:
            lg.set_panic_level(lv)
        return len(targets)

    def enable_color(self, pattern: str, enabled: bool = True) -> int:
        targets = self.matching(pattern)
        for lg in targets:
            lg.enable_color(enabled)
        return len(targets)

    def set_color_resolver(self, pattern: str, rules: Optional[ColorRules]) -> int:
        targets = self.matching(pattern)
        for lg in targets:
            lg.set_color_resolver(rules)
        return len(targets)

    def set_flags(self, pattern: str, flags: int) -> int:
        targets = self.matching(pattern)
        for lg in targets:
            lg.set_flags(flags)
        return len(targets)
