"""
Tests for routing cores and tees.
"""

import json

import pytest
from ff_logpipe import (
    CoreTee,
    EncoderConfig,
    Level,
    MemorySink,
    RoutingCore,
    Sink,
    StreamSink,
    build_core,
    build_tee,
)


class BrokenSink(Sink):
    """A sink whose disk is always full."""

    name = "broken"

    def write(self, line: str) -> None:
        raise OSError(28, "No space left on device")


class TestRoutingCore:
    """Test gating and fan-out within one core."""

    def test_below_gate_reaches_no_sink(self, sinks):
        """A debug record on an info core is dropped."""
        main, errors = sinks
        core = build_core([main, errors], Level.INFO)

        accepted = core.write(Level.DEBUG, {"event": "too chatty"})

        assert accepted is False
        assert main.lines == []
        assert errors.lines == []

    def test_at_or_above_gate_reaches_all_sinks(self, sinks):
        """An error record on an info core reaches every sink."""
        main, errors = sinks
        core = build_core([main, errors], Level.INFO)

        assert core.write(Level.ERROR, {"event": "disk failing"}) is True

        assert len(main.lines) == 1
        assert len(errors.lines) == 1
        assert "disk failing" in main.lines[0]

    def test_none_sinks_are_skipped(self):
        """Failed resolutions are skipped, not fatal."""
        sink = MemorySink()
        core = build_core([None, sink, None], Level.DEBUG)

        assert core.sinks == (sink,)

    def test_stdout_added_in_development(self, capsys):
        """In local mode nothing is file-only: stdout is always a sink."""
        sink = MemorySink()
        core = build_core([sink], Level.DEBUG, stdout=True)

        core.write(Level.INFO, {"event": "visible"})

        assert any(isinstance(s, StreamSink) for s in core.sinks)
        assert "visible" in capsys.readouterr().out
        assert len(sink.lines) == 1

    def test_context_fields_bound(self):
        sink = MemorySink()
        core = build_core(
            [sink], Level.DEBUG, EncoderConfig(format="json"), context={"service": "orders"}
        )

        core.write(Level.INFO, {"event": "placed", "order_id": 7})

        record = json.loads(sink.lines[0])
        assert record["service"] == "orders"
        assert record["order_id"] == 7
        assert record["event"] == "placed"
        assert record["level"] == "info"

    def test_level_names_rendered(self):
        sink = MemorySink()
        core = build_core([sink], Level.DEBUG, EncoderConfig(format="json"))

        core.write(Level.WARN, {"event": "w"})
        core.write(Level.DPANIC, {"event": "d"})

        levels = [json.loads(line)["level"] for line in sink.lines]
        assert levels == ["warning", "dpanic"]

    def test_failing_sink_falls_back_to_stdout(self, capsys):
        """A write failure never reaches the caller and never starves other sinks."""
        healthy = MemorySink()
        core = build_core([BrokenSink(), healthy], Level.DEBUG)

        core.write(Level.ERROR, {"event": "still delivered"})

        assert len(healthy.lines) == 1
        assert "still delivered" in capsys.readouterr().out

    def test_string_minimum(self):
        core = RoutingCore([], minimum="warning")
        assert core.minimum is Level.WARN


class TestCoreTee:
    """Test independent evaluation across cores."""

    def test_error_reaches_each_core_exactly_once(self, sinks):
        """Main and error-mirror cores each get an error record once."""
        main_sink, error_sink = sinks
        main = build_core([main_sink], Level.DEBUG)
        errors = build_core([error_sink], Level.ERROR)
        tee = build_tee(main, errors)

        accepted = tee.write(Level.ERROR, {"event": "boom"})

        assert accepted == 2
        assert len(main_sink.lines) == 1
        assert len(error_sink.lines) == 1

    def test_rejection_by_one_core_does_not_suppress_another(self, sinks):
        main_sink, error_sink = sinks
        tee = build_tee(build_core([main_sink], Level.INFO), build_core([error_sink], Level.ERROR))

        assert tee.write(Level.INFO, {"event": "fyi"}) == 1

        assert len(main_sink.lines) == 1
        assert error_sink.lines == []

    def test_none_cores_skipped(self):
        core = build_core([MemorySink()], Level.INFO)
        tee = build_tee(core, None)
        assert tee.cores == (core,)

    def test_minimum_and_enabled(self):
        tee = build_tee(build_core([], Level.INFO), build_core([], Level.ERROR))

        assert tee.minimum is Level.INFO
        assert tee.enabled(Level.INFO)
        assert not tee.enabled(Level.DEBUG)

    def test_empty_tee(self):
        tee = CoreTee(())
        assert tee.minimum is None
        assert not tee.enabled(Level.FATAL)
        assert tee.write(Level.FATAL, {"event": "nobody listens"}) == 0
        assert tee.sync() is True


class TestEncoderConfig:
    """Test encoder settings."""

    def test_console_lines(self):
        sink = MemorySink()
        core = build_core([sink], Level.DEBUG, EncoderConfig(add_caller=False))

        core.write(Level.INFO, {"event": "hello", "user_id": 5})

        line = sink.lines[0]
        assert "hello" in line
        assert "user_id=5" in line
        assert "\x1b[" not in line

    def test_caller_points_outside_package(self):
        sink = MemorySink()
        core = build_core([sink], Level.DEBUG, EncoderConfig(format="json"))

        core.write(Level.INFO, {"event": "where"})

        record = json.loads(sink.lines[0])
        assert record["caller"].startswith("test_core.py:")

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            EncoderConfig(format="xml")
