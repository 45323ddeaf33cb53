# tests/conftest.py

"""Shared pytest fixtures for all tests."""

from collections.abc import Generator
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def no_network_probes() -> Generator[None, None, None]:
    """Disable URL probing so a local .env cannot make tests hit the network."""
    with patch(
        "src.config.settings.Settings.IMAGE_PROBE_ENABLED", False
    ), patch(
        "src.config.settings.Settings.PRODUCT_URL_PROBE_ENABLED", False
    ), patch(
        "src.config.settings.Settings.REQUIRE_IMAGE_EXTENSION", False
    ):
        yield
