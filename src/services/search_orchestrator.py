# src/services/search_orchestrator.py

"""Orchestrates a deadline-bounded search across the provider and catalogs."""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from src.config.settings import Settings
from src.filters.deduplicator import ProductDeduplicator
from src.filters.product_validator import (
    ProductValidator,
    ensure_unique_ids,
)
from src.filters.query_sanitizer import QuerySanitizer
from src.filters.response_parser import ResponseParser
from src.models.errors import InvalidInput, ProviderTimeout
from src.models.product import Product
from src.sources.catalog_source import CatalogSource, StubCatalogSource
from src.sources.search_provider import (
    OpenAIWebSearchProvider,
    SearchProvider,
)

logger = logging.getLogger("canmade_search.orchestrator")


@dataclass
class SearchResult:
    """Container for one completed search and its bookkeeping."""

    query: str
    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    catalog_count: int = 0
    provider_count: int = 0
    invalid_count: int = 0
    deduplicated_count: int = 0
    attempts: int = 0
    timed_out: bool = False
    elapsed_ms: float = 0.0
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )


class SearchOrchestrator:
    """Coordinates the provider race, validation, retries, and merge.

    ``search`` never raises for provider or content faults: a slow,
    failing, or incoherent provider only shrinks the result list. The
    one caller-visible error is :class:`InvalidInput` for an empty query.
    """

    def __init__(
        self,
        provider: SearchProvider | None = None,
        catalog: CatalogSource | None = None,
        validator: ProductValidator | None = None,
        max_retries: int | None = None,
        margin_ms: int | None = None,
    ) -> None:
        self.settings = Settings()
        self.provider = provider or OpenAIWebSearchProvider()
        self.catalog = catalog or StubCatalogSource()
        self.validator = validator or ProductValidator()
        self.max_retries: int = max(
            0,
            self.settings.PROVIDER_MAX_RETRIES
            if max_retries is None
            else max_retries,
        )
        self.margin_ms: int = (
            self.settings.PROVIDER_MARGIN_MS
            if margin_ms is None
            else margin_ms
        )

    # ── Private helpers ──────────────────────────────────

    @staticmethod
    def _remaining_ms(deadline_at: float) -> float:
        return (deadline_at - time.monotonic()) * 1000

    async def _call_provider(self, query: str, timeout_s: float) -> str:
        """Race one provider call against a timer.

        On timeout the call is cancelled and its late result, if any,
        is never observed.

        Raises:
            ProviderTimeout: when the timer fires first.
        """
        try:
            return await asyncio.wait_for(
                self.provider.fetch(query, timeout_s),
                timeout=timeout_s,
            )
        except asyncio.TimeoutError:
            raise ProviderTimeout(
                f"{self.provider.name} gave no answer within {timeout_s:.1f}s"
            ) from None

    async def _provider_products(
        self,
        query: str,
        deadline_at: float,
        margin_ms: float,
        result: SearchResult,
    ) -> list[Product]:
        """Call, parse, and validate, retrying on empty output.

        Retries stop after ``max_retries`` extra attempts or when the
        remaining time no longer leaves room for a call plus margin.
        """
        while result.attempts <= self.max_retries:
            budget_ms = self._remaining_ms(deadline_at) - margin_ms
            if budget_ms <= 0:
                logger.info(
                    "No time left for provider attempt %d on '%s'",
                    result.attempts + 1,
                    query,
                )
                break
            result.attempts += 1

            raw = ""
            try:
                raw = await self._call_provider(query, budget_ms / 1000)
            except ProviderTimeout as exc:
                result.timed_out = True
                logger.warning("Provider timeout for '%s': %s", query, exc)
            except Exception as exc:
                result.errors.append(f"{self.provider.name}: {exc}")
                logger.error(
                    "Provider error for '%s' on attempt %d: %s",
                    query,
                    result.attempts,
                    exc,
                    exc_info=True,
                )

            candidates = ResponseParser.parse(raw)
            products = await self._validate(
                candidates, deadline_at, result
            )
            if products:
                return products

            if result.attempts <= self.max_retries:
                logger.info(
                    "No valid products for '%s', retrying (%d of %d retries left)",
                    query,
                    self.max_retries - result.attempts + 1,
                    self.max_retries,
                )

        logger.warning(
            "Provider produced no valid products for '%s' after %d attempt(s)",
            query,
            result.attempts,
        )
        return []

    async def _validate(
        self,
        candidates: list[dict[str, object]],
        deadline_at: float,
        result: SearchResult,
    ) -> list[Product]:
        """Validate within the remaining deadline; overruns yield ``[]``."""
        if not candidates:
            return []
        remaining_s = max(self._remaining_ms(deadline_at), 0) / 1000
        try:
            products, dropped = await asyncio.wait_for(
                self.validator.validate_batch(candidates),  # type: ignore[arg-type]
                timeout=remaining_s,
            )
        except asyncio.TimeoutError:
            result.timed_out = True
            logger.warning(
                "Validation of %d candidates overran the deadline",
                len(candidates),
            )
            return []
        except Exception as exc:
            result.errors.append(f"validation: {exc}")
            logger.error(
                "Validation failed: %s", exc, exc_info=True
            )
            return []
        result.invalid_count += dropped
        return products

    async def _catalog_products(
        self,
        query: str,
        deadline_at: float,
        result: SearchResult,
    ) -> list[Product]:
        """Query the catalog source, degrading to ``[]`` on any failure."""
        remaining_s = max(self._remaining_ms(deadline_at), 0) / 1000
        try:
            return await asyncio.wait_for(
                self.catalog.search(query), timeout=remaining_s
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Catalog source '%s' timed out for '%s'",
                self.catalog.source_name,
                query,
            )
        except Exception as exc:
            result.errors.append(f"{self.catalog.source_name}: {exc}")
            logger.error(
                "Catalog source error for query '%s': %s",
                query,
                exc,
                exc_info=exc,
            )
        return []

    # ── Public API ───────────────────────────────────────

    async def search_with_stats(
        self,
        query: str | None,
        deadline_ms: int | None = None,
    ) -> SearchResult:
        """Run a full search and return products plus bookkeeping.

        Raises:
            InvalidInput: if *query* is empty after sanitising.
        """
        clean = QuerySanitizer.sanitize(query)
        if not clean:
            raise InvalidInput("Query parameter 'q' is required")

        total_ms = (
            self.settings.SEARCH_DEADLINE_MS
            if deadline_ms is None
            else deadline_ms
        )
        # Short deadlines still leave most of the window to the provider
        margin_ms = min(self.margin_ms, total_ms / 4)
        start = time.monotonic()
        deadline_at = start + total_ms / 1000
        result = SearchResult(query=clean)

        catalog_products, provider_products = await asyncio.gather(
            self._catalog_products(clean, deadline_at, result),
            self._provider_products(clean, deadline_at, margin_ms, result),
        )
        result.catalog_count = len(catalog_products)
        result.provider_count = len(provider_products)

        merged, result.deduplicated_count = ProductDeduplicator.merge(
            catalog_products, provider_products
        )
        result.products = ensure_unique_ids(merged)
        result.elapsed_ms = (time.monotonic() - start) * 1000

        logger.info(
            "Search '%s' returned %d products in %.0fms "
            "(catalog=%d, provider=%d, invalid=%d, deduped=%d, attempts=%d)",
            clean,
            len(result.products),
            result.elapsed_ms,
            result.catalog_count,
            result.provider_count,
            result.invalid_count,
            result.deduplicated_count,
            result.attempts,
        )
        return result

    async def search(
        self,
        query: str | None,
        deadline_ms: int | None = None,
    ) -> list[Product]:
        """Return the merged, validated products for *query*.

        Degrades to a shorter or empty list on provider failure.

        Raises:
            InvalidInput: if *query* is empty after sanitising.
        """
        result = await self.search_with_stats(query, deadline_ms)
        return result.products
