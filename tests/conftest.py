"""Pytest configuration and fixtures for pyyouless tests."""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from aioresponses import aioresponses

from pyyouless.transports import AuthCookie

# Load sample API responses
SAMPLES_DIR = Path(__file__).parent / "samples"


def load_sample(filename: str) -> dict[str, Any]:
    """Load a sample JSON response file."""
    file_path = SAMPLES_DIR / filename
    with open(file_path) as f:
        result: dict[str, Any] = json.load(f)
        return result


@pytest.fixture
def status_response() -> dict[str, Any]:
    """Sample status response of a digital meter."""
    return load_sample("status.json")


@pytest.fixture
def status_analog_response() -> dict[str, Any]:
    """Sample status response of an analog meter with a deviation."""
    return load_sample("status_analog.json")


@pytest.fixture
def usage_sample_response() -> dict[str, Any]:
    """Minimal kWh usage block with three measurements."""
    return load_sample("usage_sample.json")


@pytest.fixture
def hour_half_responses() -> dict[int, dict[str, Any]]:
    """Samples for h=1 (most recent half hour) and h=2."""
    return {1: load_sample("usage_h1.json"), 2: load_sample("usage_h2.json")}


@pytest.fixture
def eight_hour_responses() -> dict[int, dict[str, Any]]:
    """Samples for w=1, w=2 and w=3."""
    return {index: load_sample(f"usage_w{index}.json") for index in (1, 2, 3)}


@pytest.fixture
def day_response() -> dict[str, Any]:
    """Sample response for a single day."""
    return load_sample("usage_day.json")


@pytest.fixture
def month_response() -> dict[str, Any]:
    """Sample kWh response for a month."""
    return load_sample("usage_month.json")


@pytest.fixture
def auth_cookie() -> AuthCookie:
    """Session cookie as granted by the device."""
    return AuthCookie(name="tk", value="abc123")


@pytest.fixture
def mocked_api() -> Generator[aioresponses, None, None]:
    """Create aioresponses mock for HTTP requests.

    This fixture provides a context manager for mocking aiohttp requests
    using the aioresponses library.
    """
    with aioresponses() as m:
        yield m
