"""Shared pytest fixtures: a fixed clock and an in-memory store."""

from __future__ import annotations

import os
from datetime import UTC, datetime

import pytest

# テストでは .env の値に左右されないよう既定値を固定する。
os.environ.setdefault("STRICT_MODE", "true")
os.environ.setdefault("LOG_LEVEL", "INFO")

from tutor_engine.store import InMemoryStore  # noqa: E402


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 1, 9, 30, tzinfo=UTC)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()
