from __future__ import annotations

class TintlogError(Exception):
    """Base for internal errors."""

class InvalidLevelError(TintlogError, ValueError):
    def __init__(self, name: str):
        super().__init__(f"Unknown log level '{name}'")
        self.name = name

class ConfigError(TintlogError):
    def __init__(self, path: str, detail: str):
        super().__init__(f"Failed loading '{path}': {detail}")
        self.path = path
        self.detail = detail

class LogWriteError(TintlogError):
    def __init__(self, detail: str):
        super().__init__(f"Log write failed: {detail}")
        self.detail = detail

class EscalationError(TintlogError):
    """Raised after a line at or above the escalation level has been written."""
    def __init__(self, text: str, result=None):
        super().__init__(text)
        self.text = text
        self.result = result
