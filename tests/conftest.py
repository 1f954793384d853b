"""
Pytest configuration and fixtures for ff-logpipe tests.
"""

import shutil
import tempfile
from pathlib import Path

import pytest
from ff_logpipe import LoggingSystem, MemorySink, reset_system


@pytest.fixture
def temp_dir():
    """Create a temporary directory for log files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def unusable_dir(temp_dir):
    """A path that can never be created as a directory (its parent is a file)."""
    blocker = temp_dir / "blocker"
    blocker.write_text("not a directory")
    return blocker / "logs"


@pytest.fixture
def system(temp_dir):
    """A LoggingSystem writing under a temporary directory, closed afterwards."""
    logging_system = LoggingSystem(base_directory=temp_dir, mode="production", environ={})
    yield logging_system
    logging_system.close()


@pytest.fixture
def sinks():
    """A pair of in-memory sinks."""
    return MemorySink("main"), MemorySink("errors")


@pytest.fixture(autouse=True)
def fresh_process_system():
    """Drop the process-wide LoggingSystem around every test."""
    reset_system()
    yield
    reset_system()
