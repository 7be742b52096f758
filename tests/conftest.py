"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import logging
import os

import pytest

from port_terminator.config import runtime
from port_terminator.logging_config import PACKAGE_LOGGER_NAME
from port_terminator.platforms import detection
from tests.helpers.fake_platform import FakeAdapter, FakeCommandRunner


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Hide PORT_TERMINATOR_* variables and .env files from every test."""
    for name in list(os.environ):
        if name.startswith("PORT_TERMINATOR_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(runtime, "_DEFAULT_VALUES", {})
    detection.current_platform.cache_clear()
    yield
    detection.current_platform.cache_clear()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers and levels installed by setup_logging during a test."""
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    original_level = package_logger.level
    original_handlers = list(package_logger.handlers)
    yield
    for handler in list(package_logger.handlers):
        if handler not in original_handlers:
            package_logger.removeHandler(handler)
    package_logger.setLevel(original_level)


@pytest.fixture
def fake_runner() -> FakeCommandRunner:
    """Provide a scripted command runner."""
    return FakeCommandRunner()


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    """Provide an in-memory platform adapter."""
    return FakeAdapter()
