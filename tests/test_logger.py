import gc
import io
import sys
from datetime import datetime

import pytest

from tintlog import Color, ColorRules, EscalationError, Flag, Level, Logger, LoggerRegistry, LogWriteError
from tintlog.core.colors import ESCAPE_SUFFIX, escape_prefix

WHEN = datetime(2024, 1, 2, 3, 4, 5)

def make_logger(name="svc", **kw):
    out = io.StringIO()
    lg = Logger(name, stream=out, clock=lambda: WHEN, **kw)
    return lg, out

class BrokenStream(io.RawIOBase):
    def writable(self):
        return True
    def write(self, data):
        raise OSError("disk full")

def test_info_line_end_to_end():
    lg, out = make_logger()
    lg.set_level(Level.INFO)
    lg.info("hello %d", 5)
    assert out.getvalue() == "INFO svc 2024/01/02 03:04:05 hello 5\n"

def test_below_level_is_dropped_without_formatting():
    lg, out = make_logger()
    lg.set_level_by_name("warn")
    assert lg.info("%d", "not a number") is None
    assert lg.debugln("quiet") is None
    assert out.getvalue() == ""

def test_level_change_affects_later_calls_only():
    lg, out = make_logger()
    lg.set_flags(0)
    lg.debug("one")
    lg.set_level("error")
    lg.debug("two")
    lg.set_level(Level.DEBUG)
    lg.debug("three")
    assert out.getvalue() == "DEBUG svc one\nDEBUG svc three\n"

def test_single_trailing_newline():
    lg, out = make_logger()
    lg.set_flags(0)
    lg.info("done\n")
    lg.info("done")
    lg.infoln("a", 1, None)
    assert out.getvalue() == "INFO svc done\nINFO svc done\nINFO svc a 1 None\n"

def test_empty_message_still_ends_line():
    lg, out = make_logger()
    lg.set_flags(0)
    lg.warn("")
    assert out.getvalue() == "WARN svc \n"

def test_template_without_args_is_literal():
    lg, out = make_logger()
    lg.set_flags(0)
    lg.info("100% sure")
    assert out.getvalue() == "INFO svc 100% sure\n"

def test_binary_stream_receives_bytes():
    buf = io.BytesIO()
    lg = Logger("svc", stream=buf, clock=lambda: WHEN)
    lg.set_flags(Flag.TIME)
    lg.warn("café")
    assert buf.getvalue() == "WARN svc 03:04:05 café\n".encode("utf-8")

def test_short_file_reports_call_site():
    lg, out = make_logger()
    lg.set_flags(Flag.SHORT_FILE)
    expected = sys._getframe().f_lineno + 1
    lg.info("where")
    assert out.getvalue() == f"INFO svc test_logger.py:{expected}: where\n"

def test_long_file_reports_full_path():
    lg, out = make_logger()
    lg.set_flags(Flag.LONG_FILE)
    lg.errorln("boom")
    assert out.getvalue().startswith(f"ERROR svc {__file__}:")

def test_color_disabled_never_emits_escapes():
    lg, out = make_logger()
    lg.set_panic_level(Level.FATAL)
    lg.escalation = "return"
    rules = ColorRules([("o", Color.BLUE)])
    lg.set_color_resolver(rules)
    lg.debug("one")
    lg.info("two")
    lg.warn("three")
    lg.error("four")
    lg.fatal("five")
    lg.debug_color("purple", "six")
    lg.debug_colorln("red", "seven")
    assert "\033[" not in out.getvalue()
    assert len(out.getvalue().splitlines()) == 7

def test_color_enabled_wraps_message():
    lg, out = make_logger()
    lg.set_flags(0)
    lg.enable_color()
    lg.info("ok")
    assert out.getvalue() == escape_prefix(Color.GREEN) + "INFO svc ok" + ESCAPE_SUFFIX + "\n"

def test_color_suffix_precedes_newline():
    lg, out = make_logger()
    lg.set_flags(0)
    lg.enable_color()
    lg.warnln("careful")
    assert out.getvalue().endswith("careful" + ESCAPE_SUFFIX + "\n")

def test_resolver_only_used_without_explicit_color():
    lg, out = make_logger()
    lg.set_flags(0)
    lg.enable_color()
    rules = ColorRules([("cache", Color.BLUE)])
    lg.set_color_resolver(rules)
    lg.debug("cache miss")
    lg.warn("cache stale")
    lines = out.getvalue().splitlines()
    assert lines[0].startswith(escape_prefix(Color.BLUE))
    assert lines[1].startswith(escape_prefix(Color.YELLOW))

def test_error_and_above_forced_red():
    lg, out = make_logger()
    lg.set_flags(0)
    lg.enable_color()
    lg.escalation = "return"
    rules = ColorRules([("x", Color.BLUE)])
    lg.set_color_resolver(rules)
    lg.error("x")
    lg.fatal("x")
    for line in out.getvalue().splitlines():
        assert line.startswith(escape_prefix(Color.RED))
    assert len(rules) == 1

def test_unknown_debug_color_falls_back_to_white():
    lg, out = make_logger()
    lg.set_flags(0)
    lg.enable_color()
    lg.debug_color("chartreuse", "x=%s", 1)
    lg.debug_colorln("blue", "y")
    lines = out.getvalue().splitlines()
    assert lines[0].startswith(escape_prefix(Color.WHITE))
    assert lines[1].startswith(escape_prefix(Color.BLUE))

def test_resolver_is_held_weakly():
    lg, _ = make_logger()
    rules = ColorRules([("a", Color.RED)])
    lg.set_color_resolver(rules)
    assert lg.color_resolver() is rules
    del rules
    gc.collect()
    assert lg.color_resolver() is None

def test_escalation_raises_after_write():
    lg, out = make_logger()
    lg.set_flags(0)
    lg.set_panic_level_by_name("error")
    with pytest.raises(EscalationError) as exc:
        lg.error("disk %s", "full")
    assert exc.value.text == "disk full"
    assert exc.value.result.fatal is True
    assert out.getvalue() == "ERROR svc disk full\n"

def test_escalation_below_threshold_returns():
    lg, _ = make_logger()
    lg.set_panic_level_by_name("error")
    result = lg.warn("fine")
    assert result.fatal is False and result.error is None

def test_fatal_escalates_by_default():
    lg, _ = make_logger()
    with pytest.raises(EscalationError):
        lg.fatalln("bye")

def test_escalation_return_policy():
    lg, out = make_logger()
    lg.escalation = "return"
    result = lg.fatal("bye")
    assert result.fatal is True
    assert result.text == "bye"
    assert result.level == Level.FATAL
    assert out.getvalue().endswith("bye\n")

def test_escalation_exit_policy():
    lg, _ = make_logger()
    lg.escalation = "exit"
    with pytest.raises(SystemExit):
        lg.fatal("bye")

def test_escalation_below_minimum_level_never_fires():
    lg, out = make_logger()
    lg.set_level(Level.FATAL)
    lg.set_panic_level(Level.DEBUG)
    assert lg.error("suppressed") is None
    assert out.getvalue() == ""

def test_write_error_is_surfaced():
    lg = Logger("svc", stream=BrokenStream(), clock=lambda: WHEN)
    result = lg.info("lost")
    assert isinstance(result.error, LogWriteError)
    assert "disk full" in str(result.error)

def test_write_error_strict_raises():
    lg = Logger("svc", stream=BrokenStream(), clock=lambda: WHEN, strict=True)
    with pytest.raises(LogWriteError):
        lg.info("lost")

def test_escalation_happens_even_when_write_fails():
    lg = Logger("svc", stream=BrokenStream(), clock=lambda: WHEN)
    with pytest.raises(EscalationError) as exc:
        lg.fatal("gone")
    assert isinstance(exc.value.result.error, LogWriteError)

def test_output_reports_closed_stream():
    lg, out = make_logger()
    out.close()
    with pytest.raises(LogWriteError):
        lg.output(1, "INFO svc", "x", Color.NONE, out)

def test_output_file_destination(tmp_path):
    lg, out = make_logger()
    lg.set_flags(0)
    path = tmp_path / "svc.log"
    lg.set_output_file(path)
    lg.info("to file")
    lg.set_output_file(path)
    lg.info("again")
    lg.close_output()
    lg.info("to stream")
    assert path.read_bytes() == b"INFO svc to file\nINFO svc again\n"
    assert out.getvalue() == "INFO svc to stream\n"

def test_default_stream_is_stdout(capsys):
    lg = Logger("svc", clock=lambda: WHEN)
    lg.infoln("printed")
    assert capsys.readouterr().out == "INFO svc 2024/01/02 03:04:05 printed\n"

def test_accessors_and_registration():
    reg = LoggerRegistry()
    lg = Logger("db", registry=reg)
    assert reg.get("db") is lg
    assert lg.name == "db"
    assert lg.flags == Flag.STD
    assert lg.level == Level.DEBUG
    assert lg.panic_level == Level.FATAL
    assert lg.color_enabled is False
    assert lg.is_debug_enabled()
    lg.set_level("info")
    assert not lg.is_debug_enabled()

class TextOnlyWriter:
    """Plain object with a write() that accepts str only."""
    def __init__(self):
        self.parts = []
    def write(self, s):
        if not isinstance(s, str):
            raise TypeError("write() argument must be str, not bytes")
        self.parts.append(s)

class RejectingWriter:
    def write(self, s):
        raise TypeError("unsupported payload")

def test_duck_typed_text_writer_receives_str():
    sink = TextOnlyWriter()
    lg = Logger("svc", stream=sink, clock=lambda: WHEN)
    lg.set_flags(0)
    result = lg.info("hello")
    assert result.error is None
    assert sink.parts == ["INFO svc hello\n"]

def test_binary_mode_attribute_selects_bytes():
    class ModeSink:
        mode = "wb"
        def __init__(self):
            self.data = b""
        def write(self, b):
            self.data += b
    sink = ModeSink()
    lg = Logger("svc", stream=sink, clock=lambda: WHEN)
    lg.set_flags(0)
    lg.warn("raw")
    assert sink.data == b"WARN svc raw\n"

def test_any_write_exception_becomes_log_write_error():
    lg = Logger("svc", stream=RejectingWriter(), clock=lambda: WHEN)
    result = lg.info("lost")
    assert isinstance(result.error, LogWriteError)
    assert isinstance(result.error.__cause__, TypeError)

def test_escalation_after_type_error_write():
    lg = Logger("svc", stream=RejectingWriter(), clock=lambda: WHEN)
    lg.set_panic_level_by_name("error")
    with pytest.raises(EscalationError) as exc:
        lg.error("boom")
    assert exc.value.text == "boom"
    assert isinstance(exc.value.result.error, LogWriteError)

def test_mismatched_format_args_still_write():
    lg, out = make_logger()
    lg.set_flags(0)
    result = lg.info("%d items", "x")
    assert result.error is None
    assert result.text.startswith("%d items ('x',) (format error: ")
    assert out.getvalue() == "INFO svc " + result.text + "\n"
    lg.info("100% of %s", "disk")
    assert out.getvalue().splitlines()[1].startswith("INFO svc 100% of %s ('disk',) (format error: ")

def test_mismatched_format_args_still_escalate():
    lg, out = make_logger()
    lg.set_flags(0)
    with pytest.raises(EscalationError) as exc:
        lg.fatal("%d", "nan")
    assert "format error" in exc.value.text
    assert out.getvalue().startswith("FATAL svc %d ('nan',)")

def test_unknown_caller_frame_reports_placeholder():
    lg, out = make_logger()
    lg.set_flags(Flag.SHORT_FILE)
    lg.output(10000, "INFO svc", "lost frame", Color.NONE, out)
    assert out.getvalue() == "INFO svc ???:0: lost frame\n"

def test_flags_read_once_per_line(monkeypatch):
    lg, out = make_logger()
    lg.set_flags(Flag.SHORT_FILE)

    def caller_that_changes_flags(calldepth):
        lg.set_flags(0)
        return "/srv/app.py", 7

    monkeypatch.setattr("tintlog.core.logger._caller", caller_that_changes_flags)
    lg.info("snap")
    assert out.getvalue() == "INFO svc app.py:7: snap\n"
    assert lg.flags == Flag(0)
