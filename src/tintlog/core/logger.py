"""The Logger: level filter, line formatting, color choice and serialized writes.

Each emitted line is built in a single scratch buffer owned by the Logger and
handed to the destination with exactly one write call, both under the
Logger's lock. The wire format is::

    [color-prefix]<LEVEL> <name> [date ][time[.micro] ][file:line: ]<message>[color-suffix]\\n
"""
from __future__ import annotations
import io
import sys
import threading
import weakref
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import IO, Any, Callable, Optional

from tintlog.core.colors import (
    ESCAPE_SUFFIX,
    Color,
    ColorRules,
    color_from_level,
    color_from_name,
    escape_prefix,
)
from tintlog.core.errors import EscalationError, LogWriteError
from tintlog.core.header import Flag, format_header
from tintlog.core.levels import Level, coerce_level, level_name, parse_level

# Frames between output() and the user's call site: output <- log <- info <- caller.
CALL_DEPTH = 3

ESCALATION_POLICIES = ("raise", "exit", "return")


@dataclass
class LogResult:
    level: Level
    text: str
    fatal: bool = False
    error: Optional[LogWriteError] = None


def _join_args(args) -> str:
    return " ".join(str(a) for a in args) + "\n"


def _wants_bytes(out) -> bool:
    if isinstance(out, (io.RawIOBase, io.BufferedIOBase)):
        return True
    mode = getattr(out, "mode", "")
    return isinstance(mode, str) and "b" in mode


def _interpolate(template: str, args) -> str:
    if not args:
        return template
    try:
        return template % args
    except (TypeError, ValueError) as e:
        return f"{template} {args!r} (format error: {e})"


def _caller(calldepth: int):
    try:
        frame = sys._getframe(calldepth + 1)
    except ValueError:
        return "???", 0
    return frame.f_code.co_filename, frame.f_lineno


class Logger:
    def __init__(self, name: str, *, registry=None, stream: Optional[IO] = None,
                 clock: Optional[Callable[[], datetime]] = None, strict: bool = False):
        self._mu = threading.Lock()
        self._buf = bytearray()
        self._name = name
        self._flags = Flag.STD
        self._level = Level.DEBUG
        self._panic_level = Level.FATAL
        self._color = False
        self._color_rules: Optional[weakref.ref] = None
        self._stream = stream
        self._file_output: Optional[IO[bytes]] = None
        self.clock: Callable[[], datetime] = clock or datetime.now
        self.escalation = "raise"
        self.strict = strict
        if registry is not None:
            registry.add(self)

    def __repr__(self) -> str:
        return f"Logger({self._name!r}, level={level_name(self._level)})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def flags(self) -> Flag:
        return self._flags

    def set_flags(self, flags: int):
        self._flags = Flag(flags)

    @property
    def level(self) -> Level:
        return self._level

    def set_level(self, level: "Level | int | str"):
        self._level = coerce_level(level)

    def set_level_by_name(self, name: str):
        self._level = parse_level(name)

    @property
    def panic_level(self) -> Level:
        return self._panic_level

    def set_panic_level(self, level: "Level | int | str"):
        self._panic_level = coerce_level(level)

    def set_panic_level_by_name(self, name: str):
        self._panic_level = parse_level(name)

    @property
    def color_enabled(self) -> bool:
        return self._color

    def enable_color(self, enabled: bool = True):
        self._color = bool(enabled)

    def set_color_resolver(self, rules: Optional[ColorRules]):
        """Attach a text-to-color heuristic. Only a weak reference is kept."""
        self._color_rules = weakref.ref(rules) if rules is not None else None

    def color_resolver(self) -> Optional[ColorRules]:
        if self._color_rules is None:
            return None
        return self._color_rules()

    def is_debug_enabled(self) -> bool:
        return self._level == Level.DEBUG

    def set_output_file(self, path: "str | Path"):
        """Append to path instead of the default stream; the file is owned by this Logger."""
        fh = open(path, "ab")
        old, self._file_output = self._file_output, fh
        if old is not None:
            old.close()

    def close_output(self):
        fh, self._file_output = self._file_output, None
        if fh is not None:
            fh.close()

    def destination(self) -> IO:
        if self._file_output is not None:
            return self._file_output
        return self._stream if self._stream is not None else sys.stdout

    def output(self, calldepth: int, prefix: str, text: str, color: Color = Color.NONE,
               out: Optional[IO] = None):
        """Write one line to out. Raises LogWriteError if the destination rejects it."""
        now = self.clock()
        flags = self._flags
        file, line = "", 0
        if flags & (Flag.SHORT_FILE | Flag.LONG_FILE):
            file, line = _caller(calldepth)
        if out is None:
            out = self.destination()
        with self._mu:
            buf = self._buf
            del buf[:]
            colored = color is not Color.NONE
            if colored:
                buf += escape_prefix(color).encode("ascii")
            buf += prefix.encode("utf-8")
            format_header(buf, flags, now, file, line)
            body = text[:-1] if text.endswith("\n") else text
            buf += body.encode("utf-8")
            if colored:
                buf += ESCAPE_SUFFIX.encode("ascii")
            buf.append(0x0A)
            try:
                if _wants_bytes(out):
                    out.write(bytes(buf))
                else:
                    out.write(buf.decode("utf-8"))
                flush = getattr(out, "flush", None)
                if flush is not None:
                    flush()
            except Exception as e:
                raise LogWriteError(str(e)) from e

    def log(self, color: Color, level: Level, template: str, *args: Any) -> Optional[LogResult]:
        if level < self._level:
            return None

        prefix = f"{level_name(level)} {self._name}"
        if template:
            text = _interpolate(template, args)
        else:
            text = _join_args(args)

        if self._color:
            rules = self.color_resolver()
            if rules is not None and color is Color.NONE:
                color = rules.color_from_text(text)
            if level >= Level.ERROR:
                color = Color.RED
        else:
            color = Color.NONE

        result = LogResult(level=level, text=text)
        try:
            self.output(CALL_DEPTH, prefix, text, color, self.destination())
        except LogWriteError as e:
            result.error = e

        if level >= self._panic_level:
            result.fatal = True
            if self.escalation == "exit":
                raise SystemExit(1)
            if self.escalation != "return":
                raise EscalationError(text, result)
        if self.strict and result.error is not None:
            raise result.error
        return result

    def debug_color(self, color_name: str, template: str, *args: Any) -> Optional[LogResult]:
        return self.log(color_from_name(color_name) or Color.WHITE, Level.DEBUG, template, *args)

    def debug_colorln(self, color_name: str, *args: Any) -> Optional[LogResult]:
        return self.log(color_from_name(color_name) or Color.WHITE, Level.DEBUG, "", *args)

    def debug(self, template: str, *args: Any): return self.log(color_from_level(Level.DEBUG), Level.DEBUG, template, *args)
    def debugln(self, *args: Any): return self.log(color_from_level(Level.DEBUG), Level.DEBUG, "", *args)
    def info(self, template: str, *args: Any): return self.log(color_from_level(Level.INFO), Level.INFO, template, *args)
    def infoln(self, *args: Any): return self.log(color_from_level(Level.INFO), Level.INFO, "", *args)
    def warn(self, template: str, *args: Any): return self.log(color_from_level(Level.WARN), Level.WARN, template, *args)
    def warnln(self, *args: Any): return self.log(color_from_level(Level.WARN), Level.WARN, "", *args)
    def error(self, template: str, *args: Any): return self.log(color_from_level(Level.ERROR), Level.ERROR, template, *args)
    def errorln(self, *args: Any): return self.log(color_from_level(Level.ERROR), Level.ERROR, "", *args)
    def fatal(self, template: str, *args: Any): return self.log(color_from_level(Level.FATAL), Level.FATAL, template, *args)
    def fatalln(self, *args: Any): return self.log(color_from_level(Level.FATAL), Level.FATAL, "", *args)
