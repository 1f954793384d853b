"""
Tests for the named logger registry and pipeline construction.
"""

import json
import threading

import pytest
from ff_logpipe import (
    DEFAULT_ERROR_RULE,
    EncoderConfig,
    Logger,
    LoggerExistsError,
    LoggerInitError,
    LoggerRegistry,
    LogPathError,
    Options,
    RotationRule,
    StreamSink,
)
from ff_logpipe import pipeline


def production_options(directory, **overrides):
    values = {
        "base_directory": directory,
        "mode": "production",
        "encoder": EncoderConfig(format="json", add_caller=False),
    }
    values.update(overrides)
    return Options(**values)


@pytest.fixture
def registry():
    registry = LoggerRegistry()
    yield registry
    registry.close()


@pytest.fixture
def counted_builds(monkeypatch):
    """Count calls to the pipeline builder."""
    calls = []
    original = pipeline.build_logger_tee

    def counting(name, options, **kwargs):
        calls.append(name)
        return original(name, options, **kwargs)

    monkeypatch.setattr(pipeline, "build_logger_tee", counting)
    return calls


def read_records(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestConstruct:
    """Test constructing named loggers."""

    def test_construct_registers(self, registry, temp_dir):
        log = registry.construct("orders", production_options(temp_dir))

        assert isinstance(log, Logger)
        assert registry.get("orders") is log
        assert "orders" in registry
        assert len(registry) == 1

    def test_get_never_constructs(self, registry):
        assert registry.get("missing") is None
        assert len(registry) == 0

    def test_unusable_directory_raises_and_registers_nothing(self, registry, unusable_dir):
        with pytest.raises(LogPathError):
            registry.construct("orders", production_options(unusable_dir))

        assert registry.get("orders") is None

    def test_missing_directory_is_created(self, registry, temp_dir):
        nested = temp_dir / "a" / "b"
        registry.construct("orders", production_options(nested))
        assert nested.is_dir()

    def test_duplicate_name_rejected(self, registry, temp_dir):
        first = registry.construct("orders", production_options(temp_dir))

        with pytest.raises(LoggerExistsError):
            registry.construct("orders", production_options(temp_dir))

        assert registry.get("orders") is first

    def test_build_failure_wrapped(self, registry, temp_dir, monkeypatch):
        def broken(name, options, **kwargs):
            raise RuntimeError("encoder exploded")

        monkeypatch.setattr(pipeline, "build_logger_tee", broken)

        with pytest.raises(LoggerInitError, match="encoder exploded"):
            registry.construct("orders", production_options(temp_dir))
        assert registry.get("orders") is None

    def test_failed_build_can_be_retried(self, registry, temp_dir, monkeypatch):
        """A failed build leaves no entry and no leftover per-name lock."""
        original = pipeline.build_logger_tee
        attempts = []

        def flaky(name, options, **kwargs):
            attempts.append(name)
            if len(attempts) == 1:
                raise RuntimeError("disk not mounted yet")
            return original(name, options, **kwargs)

        monkeypatch.setattr(pipeline, "build_logger_tee", flaky)

        with pytest.raises(LoggerInitError):
            registry.construct("orders", production_options(temp_dir))
        assert registry._pending == {}

        log = registry.construct("orders", production_options(temp_dir))

        assert registry.get("orders") is log
        assert registry._pending == {}
        assert attempts == ["orders", "orders"]

    def test_stdout_fallback_when_directory_optional(self, registry, unusable_dir):
        log = registry.get_or_construct(
            "fallback", production_options(unusable_dir), require_directory=False
        )

        sinks = [sink for core in log.tee.cores for sink in core.sinks]
        assert len(sinks) == 1
        assert isinstance(sinks[0], StreamSink)

    def test_loggers_share_registry_trace(self, registry, temp_dir):
        log = registry.construct("orders", production_options(temp_dir))
        assert log.trace is registry.trace


class TestConcurrentConstruction:
    """Test that each name is built exactly once."""

    def test_concurrent_first_use_builds_once(self, registry, temp_dir, counted_builds):
        results = []
        barrier = threading.Barrier(50)

        def worker():
            barrier.wait()
            results.append(registry.get_or_construct("shared", production_options(temp_dir)))

        threads = [threading.Thread(target=worker) for _ in range(50)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert counted_builds == ["shared"]
        assert len(results) == 50
        assert all(result is results[0] for result in results)

    def test_distinct_names_build_independently(self, registry, temp_dir, counted_builds):
        threads = [
            threading.Thread(
                target=registry.get_or_construct,
                args=(f"svc{i}", production_options(temp_dir)),
            )
            for i in range(5)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(counted_builds) == [f"svc{i}" for i in range(5)]
        assert len(registry) == 5


class TestFileRouting:
    """Test where records land on disk."""

    def test_no_error_rule_writes_single_file(self, registry, temp_dir):
        """Without an error rule, errors stay in the main file and no mirror exists."""
        log = registry.construct("orders", production_options(temp_dir, error_rule=None))

        log.info("started")
        log.errorw("failed", code=500)
        log.sync()

        records = read_records(temp_dir / "orders.log")
        assert [r["event"] for r in records] == ["started", "failed"]
        assert not (temp_dir / "orders_error.log").exists()

    def test_error_rule_mirrors_errors(self, registry, temp_dir):
        log = registry.construct(
            "orders", production_options(temp_dir, error_rule=DEFAULT_ERROR_RULE)
        )

        log.info("started")
        log.warn("slow")
        log.error("failed")
        log.sync()

        main = read_records(temp_dir / "orders.log")
        mirror = read_records(temp_dir / "orders_error.log")
        assert [r["event"] for r in main] == ["started", "slow", "failed"]
        assert [r["event"] for r in mirror] == ["failed"]

    def test_production_drops_debug(self, registry, temp_dir):
        log = registry.construct("orders", production_options(temp_dir, error_rule=None))

        log.debug("noise")
        log.info("signal")
        log.sync()

        assert [r["event"] for r in read_records(temp_dir / "orders.log")] == ["signal"]

    def test_context_fields_on_every_record(self, registry, temp_dir):
        options = production_options(
            temp_dir,
            service_name="orders-api",
            extra_fields=[("region", "eu-1")],
        )
        log = registry.construct("orders", options)

        log.info("started")
        log.sync()

        record = read_records(temp_dir / "orders.log")[0]
        assert record["service"] == "orders-api"
        assert record["region"] == "eu-1"

    def test_logger_name_overrides_file_name(self, registry, temp_dir):
        log = registry.construct("orders", production_options(temp_dir, logger_name="billing"))

        log.info("started")
        log.sync()

        assert (temp_dir / "billing.log").exists()

    def test_rule_directory_wins_over_base(self, registry, temp_dir):
        custom = temp_dir / "custom"
        custom.mkdir()
        options = production_options(
            temp_dir, output_rule=RotationRule(directory=custom), error_rule=None
        )
        log = registry.construct("orders", options)

        log.info("started")
        log.sync()

        assert (custom / "orders.log").exists()
        assert not (temp_dir / "orders.log").exists()
