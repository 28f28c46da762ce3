"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import pytest

from scrimcord.engine.normalizer import Normalizer
from tests.fakes import RecordingLedger


@pytest.fixture
def ledger() -> RecordingLedger:
    return RecordingLedger()


@pytest.fixture
def normalizer() -> Normalizer:
    return Normalizer("discord")
