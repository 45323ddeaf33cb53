# src/sources/catalog_source.py

"""Structured (non-LLM) product catalog sources."""

import logging
from abc import ABC, abstractmethod

from src.models.product import Product


class CatalogSource(ABC):
    """Abstract base class for catalog sources merged ahead of LLM results."""

    def __init__(self, source_name: str) -> None:
        self.source_name = source_name
        self.logger = logging.getLogger(
            f"canmade_search.{source_name}"
        )

    @abstractmethod
    async def search(self, query: str) -> list[Product]:
        """Search the catalog and return already-valid products."""
        ...


class StubCatalogSource(CatalogSource):
    """Placeholder for Shopify / marketplace catalog APIs.

    Returns no products until a real catalog integration is wired in.
    """

    def __init__(self) -> None:
        super().__init__("catalog")

    async def search(self, query: str) -> list[Product]:
        self.logger.debug(
            "[%s] No catalog integration configured for '%s'",
            self.source_name,
            query,
        )
        return []
