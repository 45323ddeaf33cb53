# src/filters/deduplicator.py

"""Merge listings from several sources and drop same-name duplicates."""

import logging

from src.models.product import Product

logger = logging.getLogger("canmade_search.filters")


class ProductDeduplicator:
    """Combine product lists with a stable, name-keyed dedup."""

    @staticmethod
    def deduplicate(
        products: list[Product],
    ) -> tuple[list[Product], int]:
        """Keep the first product for every exact (case-sensitive) name.

        Later products with an already-seen name are dropped even when
        their other fields differ.

        Returns the deduplicated list and the count of removed dupes.
        """
        if not products:
            return [], 0

        seen_names: set[str] = set()
        kept: list[Product] = []
        removed = 0

        for product in products:
            if product.name in seen_names:
                logger.debug(
                    "Duplicate '%s' dropped (url=%s)",
                    product.name,
                    product.url,
                )
                removed += 1
                continue
            seen_names.add(product.name)
            kept.append(product)

        if removed:
            logger.info(
                "Deduplication removed %d duplicate products",
                removed,
            )

        return kept, removed

    @staticmethod
    def merge(
        source_a: list[Product],
        source_b: list[Product],
    ) -> tuple[list[Product], int]:
        """Concatenate *source_a* then *source_b* and deduplicate by name."""
        return ProductDeduplicator.deduplicate(
            [*source_a, *source_b]
        )
