"""
FieldMedic Test Configuration

Pytest fixtures and configuration for the test suite.
"""

from collections.abc import Generator
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from fieldmedic.main import app

# ============================================
# Client Fixtures
# ============================================


@pytest.fixture(autouse=True)
def reset_metrics() -> Generator[None, None, None]:
    """Clear in-process metric counters before each test."""
    from fieldmedic.observability.metrics import reset_metrics as _reset

    _reset()
    yield


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a synchronous test client with a fresh call log and index."""
    with TestClient(app) as c:
        yield c


# ============================================
# Sample Data Fixtures
# ============================================


@pytest.fixture
def captured_at() -> datetime:
    """Fixed capture timestamp."""
    return datetime(2024, 3, 14, 9, 26, 53)


@pytest.fixture
def sample_protocol() -> str:
    """Sample protocol text with headings and several paragraphs."""
    return (
        "ADULT CARDIAC ARREST\n"
        "Begin CPR immediately at a rate of 100 to 120 compressions per minute. "
        "Attach the monitor and analyze the rhythm.\n\n"
        "Give epinephrine 1 mg IV every 3 to 5 minutes. "
        "Epinephrine 1:10000 is used for cardiac arrest. "
        "Consider amiodarone 300 mg for refractory VF.\n\n"
        "CHEST PAIN / STEMI\n"
        "Give aspirin 324 mg PO chewed unless allergic. "
        "Obtain a 12-lead ECG within 10 minutes of patient contact. "
        "Nitroglycerin 0.4 mg SL every 5 minutes if systolic pressure is above 90.\n\n"
        "ANAPHYLAXIS\n"
        "Give epinephrine 1:1000 0.5 mg IM into the lateral thigh. "
        "Repeat every 5 minutes as needed. "
        "Diphenhydramine 50 mg IV may be given as an adjunct."
    )


# ============================================
# Marker Configuration
# ============================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
