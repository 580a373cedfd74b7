"""
Pytest configuration and shared fixtures.

The Gemini client is always a mock; no test touches the network.
"""

import base64
import csv
import json
import random
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from hairscan.config import Settings
from hairscan.gateway import AnalysisGateway
from hairscan.tips import TipProvider


VALID_ASSESSMENT = {
    "grade": "II",
    "percentageLoss": 15,
    "analysisSummary": "Mild thinning at the crown with a stable frontal hairline.",
    "tips": ["Use a gentle shampoo", "Reduce heat styling"],
    "doctorConsultationAdvice": "No urgent visit needed; monitor for six months.",
}

# Smallest valid PNG header plus padding; the gateway never decodes pixels.
SAMPLE_IMAGE_B64 = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 32).decode("ascii")


def gemini_reply(text):
    return SimpleNamespace(text=text)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        doctors_csv=tmp_path / "missing.csv",
        analysis_timeout_seconds=5,
        analysis_retry_delay_seconds=0,
    )


@pytest.fixture
def tip_provider():
    return TipProvider(rng=random.Random(7))


@pytest.fixture
def mock_genai():
    """Mock google-genai client returning a well-formed assessment."""
    client = Mock()
    client.aio.models.generate_content = AsyncMock(
        return_value=gemini_reply(json.dumps(VALID_ASSESSMENT))
    )
    return client


@pytest.fixture
def gateway(settings, tip_provider, mock_genai):
    return AnalysisGateway(settings, tip_provider, client=mock_genai)


@pytest.fixture
def write_csv(tmp_path):
    """Write rows to a CSV file under tmp_path and return its path."""
    def _write(rows, name="doctors.csv"):
        path = tmp_path / name
        fieldnames = []
        for row in rows:
            for key in row:
                if key not in fieldnames:
                    fieldnames.append(key)
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(rows)
        return path
    return _write
