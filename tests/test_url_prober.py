# tests/test_url_prober.py

"""Tests for UrlProber HEAD probes (network mocked)."""

import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from src.services.url_prober import UrlProber


def _resp(status: int, content_type: str = "image/jpeg") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.headers = {"content-type": content_type}
    return resp


class FakeSession:
    """Async session answering HEAD from a url -> response/exception map."""

    def __init__(self, answers: dict[str, Any]) -> None:
        self.answers = answers
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    async def head(self, url: str, **kwargs: Any) -> Any:
        self.calls.append((url, kwargs))
        answer = self.answers[url]
        if isinstance(answer, Exception):
            raise answer
        return answer


SESSION_PATH = "src.services.url_prober.AsyncSession"


class TestFilterImages(unittest.IsolatedAsyncioTestCase):
    """UrlProber.filter_images."""

    async def test_keeps_reachable_images_in_order(self) -> None:
        """Only 2xx image responses survive, original order kept."""
        answers = {
            "https://a.ca/1.jpg": _resp(200),
            "https://a.ca/2.jpg": _resp(404),
            "https://a.ca/3.jpg": _resp(200, "text/html"),
            "https://a.ca/4.jpg": TimeoutError("timed out"),
            "https://a.ca/5.png": _resp(204, "image/png"),
        }
        session = FakeSession(answers)
        with patch(SESSION_PATH, return_value=session):
            kept = await UrlProber(timeout=3.0).filter_images(
                list(answers)
            )
        self.assertEqual(kept, ["https://a.ca/1.jpg", "https://a.ca/5.png"])

    async def test_uses_short_timeout_and_redirects(self) -> None:
        """Each probe passes the configured timeout and follows redirects."""
        session = FakeSession({"https://a.ca/1.jpg": _resp(200)})
        with patch(SESSION_PATH, return_value=session):
            await UrlProber(timeout=2.5).filter_images(["https://a.ca/1.jpg"])
        _url, kwargs = session.calls[0]
        self.assertEqual(kwargs["timeout"], 2.5)
        self.assertTrue(kwargs["allow_redirects"])

    async def test_empty_list_skips_network(self) -> None:
        """No URLs means no session is opened."""
        with patch(SESSION_PATH) as mock_session:
            kept = await UrlProber().filter_images([])
        self.assertEqual(kept, [])
        mock_session.assert_not_called()


class TestPageExists(unittest.IsolatedAsyncioTestCase):
    """UrlProber.page_exists."""

    async def test_html_page_ok(self) -> None:
        """A 200 HTML page exists; content type is not checked."""
        session = FakeSession({"https://shop.ca/p": _resp(200, "text/html")})
        with patch(SESSION_PATH, return_value=session):
            self.assertTrue(await UrlProber().page_exists("https://shop.ca/p"))

    async def test_error_status_or_exception(self) -> None:
        """5xx and network errors both mean the page is missing."""
        session = FakeSession({
            "https://shop.ca/a": _resp(503, "text/html"),
            "https://shop.ca/b": ConnectionError("refused"),
        })
        prober = UrlProber()
        with patch(SESSION_PATH, return_value=session):
            self.assertFalse(await prober.page_exists("https://shop.ca/a"))
            self.assertFalse(await prober.page_exists("https://shop.ca/b"))


if __name__ == "__main__":
    unittest.main()
