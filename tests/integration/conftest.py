"""Shared fixtures for integration tests."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from dotenv import load_dotenv

from pyyouless import YoulessClient, YoulessConfig

# Load .env file before running tests
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

# Load device settings from environment
YOULESS_HOST = os.getenv("YOULESS_HOST")
YOULESS_PORT = int(os.getenv("YOULESS_PORT", "80"))
YOULESS_PASSWORD = os.getenv("YOULESS_PASSWORD") or None


@pytest.fixture
def live_config() -> YoulessConfig:
    """Device configuration from the environment, skipping when absent."""
    if not YOULESS_HOST:
        pytest.skip("Integration tests require the YOULESS_HOST environment variable")
    return YoulessConfig(host=YOULESS_HOST, port=YOULESS_PORT, password=YOULESS_PASSWORD)


@pytest.fixture
async def live_client(live_config: YoulessConfig) -> AsyncGenerator[YoulessClient, None]:
    """Create a client for the device on the local network."""
    async with YoulessClient.from_config(live_config) as client:
        yield client
