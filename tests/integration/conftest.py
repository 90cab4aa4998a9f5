"""Shared fixtures for integration tests."""

import os

import pytest

# Skip all integration tests unless RUN_TRACKLINK_NETWORK_TESTS=1
pytestmark = pytest.mark.skipif(
    os.environ.get("RUN_TRACKLINK_NETWORK_TESTS") != "1",
    reason="Requires a reachable analytics endpoint. Set RUN_TRACKLINK_NETWORK_TESTS=1 to run",
)


@pytest.fixture
def analytics_base_url() -> str:
    return os.environ.get("TRACKLINK_ANALYTICS_URL", "http://127.0.0.1:8020")
