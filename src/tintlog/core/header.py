"""Fixed-layout line header: ` [YYYY/MM/DD ][HH:MM:SS[.uuuuuu] ][file:line: ]`."""
from __future__ import annotations
import os
from datetime import datetime
from enum import IntFlag

class Flag(IntFlag):
    # Fields always print in this order regardless of which bits are set.
    DATE = 1
    TIME = 2
    MICROSECONDS = 4   # implies TIME
    LONG_FILE = 8
    SHORT_FILE = 16    # overrides LONG_FILE
    STD = DATE | TIME

FLAG_NAMES = {
    "date": Flag.DATE,
    "time": Flag.TIME,
    "microseconds": Flag.MICROSECONDS,
    "longfile": Flag.LONG_FILE,
    "shortfile": Flag.SHORT_FILE,
    "std": Flag.STD,
}

_ITOA_SCRATCH = 32

def itoa(buf: bytearray, value: int, width: int):
    """Append value as decimal ASCII, zero-padded to width. Negative width disables padding."""
    if value < 0:
        raise ValueError("itoa expects a non-negative value")
    if value == 0 and width <= 1:
        buf.append(0x30)
        return
    if max(width, len(str(value))) > _ITOA_SCRATCH:
        raise ValueError(f"itoa supports at most {_ITOA_SCRATCH} digits")
    b = bytearray(_ITOA_SCRATCH)
    bp = len(b)
    while value > 0 or width > 0:
        bp -= 1
        width -= 1
        value, digit = divmod(value, 10)
        b[bp] = 0x30 + digit
    buf += b[bp:]

def short_file(path: str) -> str:
    cut = max(path.rfind("/"), path.rfind(os.sep))
    if cut > 0:
        return path[cut + 1:]
    return path

def format_header(buf: bytearray, flags: int, when: datetime, file: str = "", line: int = 0):
    buf.append(0x20)
    if flags & (Flag.DATE | Flag.TIME | Flag.MICROSECONDS):
        if flags & Flag.DATE:
            itoa(buf, when.year, 4)
            buf.append(0x2F)
            itoa(buf, when.month, 2)
            buf.append(0x2F)
            itoa(buf, when.day, 2)
            buf.append(0x20)
        if flags & (Flag.TIME | Flag.MICROSECONDS):
            itoa(buf, when.hour, 2)
            buf.append(0x3A)
            itoa(buf, when.minute, 2)
            buf.append(0x3A)
            itoa(buf, when.second, 2)
            if flags & Flag.MICROSECONDS:
                buf.append(0x2E)
                itoa(buf, when.microsecond, 6)
            buf.append(0x20)
    if flags & (Flag.SHORT_FILE | Flag.LONG_FILE):
        if flags & Flag.SHORT_FILE:
            file = short_file(file)
        buf += file.encode("utf-8")
        buf.append(0x3A)
        itoa(buf, line, -1)
        buf += b": "

def parse_flags(names) -> Flag:
    """Combine flag names such as ["date", "time"] into a Flag."""
    result = Flag(0)
    for name in names:
        key = str(name).strip().lower().replace("_", "")
        if key not in FLAG_NAMES:
            raise ValueError(f"Unknown header flag '{name}'")
        result |= FLAG_NAMES[key]
    return result
