"""Tests for CLI logging setup."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
from pr_autoreview.observability import configure_logging


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Put root and httpx logger state back after a test reconfigures them."""
    root = logging.getLogger()
    httpx_logger = logging.getLogger("httpx")
    saved = (root.level, list(root.handlers), httpx_logger.level)
    yield
    for handler in root.handlers:
        if handler not in saved[1]:
            handler.close()
    root.handlers[:] = saved[1]
    root.setLevel(saved[0])
    httpx_logger.setLevel(saved[2])


@pytest.mark.unit
def test_configure_logging_defaults_to_info(restore_logging: None) -> None:
    configure_logging()

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING


@pytest.mark.unit
def test_configure_logging_verbose_enables_debug(restore_logging: None) -> None:
    configure_logging(verbose=True)

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.DEBUG
