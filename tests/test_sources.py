# tests/test_sources.py

"""Tests for the search provider client and catalog sources."""

import unittest
from unittest.mock import AsyncMock, MagicMock

from src.sources.catalog_source import StubCatalogSource
from src.sources.search_provider import (
    INSTRUCTIONS,
    OpenAIWebSearchProvider,
)


def _client(output_text: str) -> MagicMock:
    response = MagicMock()
    response.output_text = output_text
    client = MagicMock()
    client.responses.create = AsyncMock(return_value=response)
    return client


class TestOpenAIWebSearchProvider(unittest.IsolatedAsyncioTestCase):
    """OpenAIWebSearchProvider.fetch."""

    async def test_returns_output_text(self) -> None:
        """The raw output text is returned untouched."""
        provider = OpenAIWebSearchProvider(client=_client('{"products": []}'))
        self.assertEqual(
            await provider.fetch("toques", 10.0), '{"products": []}'
        )

    async def test_request_shape(self) -> None:
        """Query, instructions, web-search tool, and deadline are sent."""
        client = _client("")
        await OpenAIWebSearchProvider(client=client).fetch("toques", 12.5)
        kwargs = client.responses.create.call_args.kwargs
        self.assertIn("toques", kwargs["input"])
        self.assertEqual(kwargs["instructions"], INSTRUCTIONS)
        self.assertEqual(kwargs["tools"][0]["type"], "web_search_preview")
        self.assertEqual(kwargs["timeout"], 12.5)
        self.assertGreater(kwargs["max_output_tokens"], 0)

    async def test_empty_output_is_empty_string(self) -> None:
        """A missing output text becomes ''."""
        client = _client("")
        client.responses.create.return_value.output_text = None
        text = await OpenAIWebSearchProvider(client=client).fetch("x", 1.0)
        self.assertEqual(text, "")


class TestStubCatalogSource(unittest.IsolatedAsyncioTestCase):
    """StubCatalogSource."""

    async def test_returns_nothing(self) -> None:
        """The stub catalog has no products."""
        source = StubCatalogSource()
        self.assertEqual(source.source_name, "catalog")
        self.assertEqual(await source.search("maple"), [])


if __name__ == "__main__":
    unittest.main()
