"""Shared pytest fixtures for gradeline tests."""

from __future__ import annotations

import itertools
import os
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest
from dotenv import load_dotenv

from gradeline.backend.factory import clear_config_cache
from gradeline.config import AnnotationConfig

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

load_dotenv()

# Fixed palette so colour assertions do not depend on configuration
TEST_PALETTE = ["#111111", "#222222", "#333333"]


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Keep developer env vars and cached settings out of every test."""
    for key in list(os.environ):
        if key.startswith(("API__", "ANNOTATION__", "APP__", "DEV__")):
            monkeypatch.delenv(key, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """A clock that advances one second per call, starting 2026-01-01 UTC."""
    ticks = itertools.count()
    base = datetime(2026, 1, 1, tzinfo=UTC)
    return lambda: base + timedelta(seconds=next(ticks))


@pytest.fixture
def annotation_config() -> AnnotationConfig:
    return AnnotationConfig(palette=TEST_PALETTE)
