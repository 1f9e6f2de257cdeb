"""Pytest configuration and shared fixtures."""
import os
from datetime import datetime

import pytest

# Settings are read at import time
os.environ.setdefault("EDI_LOG_FORMAT", "console")

from claim837.services.edi.control_numbers import ControlNumberSequencer, reset_counters
from tests.factories import (
    Claim837PInputFactory,
    CommercialClaimFactory,
    PediatricClaimFactory,
)

FIXED_NOW = datetime(2024, 1, 25, 9, 5, 30)


@pytest.fixture(autouse=True)
def clean_counters():
    """Reset the process-wide sequencer before and after each test."""
    reset_counters()
    yield
    reset_counters()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def sequencer() -> ControlNumberSequencer:
    """An isolated sequencer, independent of the process-wide default."""
    return ControlNumberSequencer()


@pytest.fixture
def adult_claim():
    return Claim837PInputFactory()


@pytest.fixture
def pediatric_claim():
    return PediatricClaimFactory()


@pytest.fixture
def commercial_claim():
    return CommercialClaimFactory()
