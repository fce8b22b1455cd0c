# ABOUTME: Shared fixtures for rollup tests.
# ABOUTME: Pins the local timezone before any test module computes day keys.

from __future__ import annotations

import pytest

from tests.helpers import NOW_MS


@pytest.fixture
def now_ms() -> float:
    return NOW_MS
