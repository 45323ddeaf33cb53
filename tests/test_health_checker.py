# tests/test_health_checker.py

"""Tests for the dependency health checker service."""

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from src.models.errors import StoreUnavailable
from src.services.health_checker import (
    HealthChecker,
    probe_provider,
    probe_store,
)


def _limiter(side_effect: object = None) -> MagicMock:
    limiter = MagicMock()
    limiter.ping = AsyncMock(return_value=True, side_effect=side_effect)
    return limiter


class TestProbeStore(unittest.IsolatedAsyncioTestCase):
    """Tests for the shared-store probe."""

    async def test_ok_status(self) -> None:
        """A fast PING is 'ok'."""
        result = await probe_store(_limiter())
        self.assertEqual(result.source_id, "store")
        self.assertEqual(result.status, "ok")

    async def test_down_on_error(self) -> None:
        """An unreachable store is 'down' with the error message."""
        result = await probe_store(
            _limiter(StoreUnavailable("Connection refused"))
        )
        self.assertEqual(result.status, "down")
        self.assertIn("Connection refused", result.message)

    @patch("src.config.settings.Settings.HEALTH_SLOW_MS", -1.0)
    async def test_slow_status(self) -> None:
        """Latency above the threshold is 'slow'."""
        result = await probe_store(_limiter())
        self.assertEqual(result.status, "slow")


class TestProbeProvider(unittest.IsolatedAsyncioTestCase):
    """Tests for the provider configuration probe."""

    @patch("src.config.settings.Settings.OPENAI_API_KEY", "")
    async def test_missing_key_down(self) -> None:
        """No API key means the provider is down."""
        result = await probe_provider()
        self.assertEqual(result.status, "down")
        self.assertIn("OPENAI_API_KEY", result.message)

    @patch("src.config.settings.Settings.OPENAI_API_KEY", "sk-test")
    async def test_key_present_ok(self) -> None:
        """A configured key is 'ok'."""
        result = await probe_provider()
        self.assertEqual(result.status, "ok")


class TestHealthChecker(unittest.IsolatedAsyncioTestCase):
    """Tests for the HealthChecker orchestrator."""

    async def test_check_all_returns_all_dependencies(self) -> None:
        """check_all returns one result per dependency."""
        checker = HealthChecker(_limiter())
        results = await checker.check_all()
        self.assertEqual(
            [r.source_id for r in results], ["store", "provider"]
        )


if __name__ == "__main__":
    unittest.main()
