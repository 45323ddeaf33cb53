# src/filters/product_validator.py

"""Product validation: drop candidates that break listing invariants."""

import asyncio
import logging
import math
import uuid
from collections.abc import Callable
from dataclasses import replace
from typing import Any
from urllib.parse import urlsplit

from src.config.settings import Settings
from src.models.errors import ProductRejected
from src.models.product import CountryShare, Product
from src.services.url_prober import UrlProber

logger = logging.getLogger("canmade_search.filters")

REQUIRED_FIELDS: tuple[str, ...] = (
    "name",
    "price",
    "url",
    "manufacturer",
    "description",
    "available",
)

_TEXT_FIELDS: tuple[str, ...] = ("name", "manufacturer", "description")


def is_http_url(value: Any) -> bool:
    """Return True for an absolute ``http``/``https`` URL with a host."""
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.hostname)


def is_placeholder_image(url: str, hosts: list[str]) -> bool:
    """Return True if *url* is served from a placeholder-image host."""
    hostname = (urlsplit(url).hostname or "").lower()
    return any(
        hostname == host or hostname.endswith(f".{host}")
        for host in hosts
    )


def _is_number(value: Any) -> bool:
    """True for ints and floats, excluding bools."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _finite(value: Any) -> float | None:
    """Return *value* as a finite float, or None.

    Rejects bools, NaN, infinities, and ints too large for a float.
    """
    if not _is_number(value):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _percentage(value: Any) -> float | None:
    """Return *value* as a 0-100 percentage, or None if out of shape."""
    number = _finite(value)
    if number is not None and 0 <= number <= 100:
        return number
    return None


# ── Structural checks ────────────────────────────────────
# Each check raises ProductRejected; they run in declaration order.


def check_required_fields(candidate: dict[str, Any]) -> None:
    """Every required field must be present (``available`` may be False)."""
    missing = [
        f for f in REQUIRED_FIELDS
        if f not in candidate or candidate[f] is None
    ]
    if missing:
        raise ProductRejected(
            f"missing required field(s): {', '.join(missing)}",
            str(candidate.get("name", "")),
        )


def check_field_content(candidate: dict[str, Any]) -> None:
    """Text fields non-empty, price a non-negative number, URL absolute."""
    name = str(candidate.get("name", ""))
    for f in _TEXT_FIELDS:
        value = candidate[f]
        if not isinstance(value, str) or not value.strip():
            raise ProductRejected(f"empty or non-text '{f}'", name)
    price = _finite(candidate["price"])
    if price is None or price < 0:
        raise ProductRejected(
            f"invalid price of type {type(candidate['price']).__name__}",
            name,
        )
    if not isinstance(candidate["available"], bool):
        raise ProductRejected("'available' is not a boolean", name)
    if not is_http_url(candidate["url"]):
        raise ProductRejected(
            f"product url {candidate['url']!r} is not absolute http(s)",
            name,
        )


def check_images_present(candidate: dict[str, Any]) -> None:
    """``images`` must be a non-empty list."""
    images = candidate.get("images")
    if not isinstance(images, list) or not images:
        raise ProductRejected(
            "no images", str(candidate.get("name", ""))
        )


STRUCTURAL_CHECKS: list[Callable[[dict[str, Any]], None]] = [
    check_required_fields,
    check_field_content,
    check_images_present,
]


class ProductValidator:
    """Validate candidate records and build :class:`Product` objects.

    Structural rules run first, then image URLs are filtered by format
    and the placeholder denylist. With probing enabled, the surviving
    images (and optionally the product page) are checked over the
    network. A candidate is rejected as soon as one rule fails, or when
    no image survives filtering.
    """

    def __init__(
        self,
        prober: UrlProber | None = None,
        probe_images: bool | None = None,
        probe_product_url: bool | None = None,
    ) -> None:
        self.settings = Settings()
        self.prober = prober or UrlProber()
        self.probe_images: bool = (
            self.settings.IMAGE_PROBE_ENABLED
            if probe_images is None
            else probe_images
        )
        self.probe_product_url: bool = (
            self.settings.PRODUCT_URL_PROBE_ENABLED
            if probe_product_url is None
            else probe_product_url
        )

    # ── Image filters ────────────────────────────────────

    def filter_image_formats(self, images: list[Any]) -> list[str]:
        """Keep well-formed, non-placeholder image URLs in order."""
        hosts = self.settings.PLACEHOLDER_IMAGE_HOSTS
        kept: list[str] = []
        for image in images:
            if not is_http_url(image):
                continue
            url = image.strip()
            if is_placeholder_image(url, hosts):
                continue
            if self.settings.REQUIRE_IMAGE_EXTENSION and not any(
                urlsplit(url).path.lower().endswith(ext)
                for ext in self.settings.IMAGE_EXTENSIONS
            ):
                continue
            kept.append(url)
        return kept

    # ── Record building ──────────────────────────────────

    @staticmethod
    def assign_id(candidate: dict[str, Any]) -> dict[str, Any]:
        """Return *candidate* with a fresh ``llm-<uuid>`` id if it lacks one."""
        raw_id = candidate.get("id")
        if raw_id is None or not str(raw_id).strip():
            return {**candidate, "id": f"llm-{uuid.uuid4()}"}
        return {**candidate, "id": str(raw_id).strip()}

    @staticmethod
    def _countries(raw: Any) -> list[CountryShare]:
        """Parse the optional countries list, dropping malformed entries."""
        if not isinstance(raw, list):
            return []
        countries: list[CountryShare] = []
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            code = entry.get("code")
            name = entry.get("name")
            if not (
                isinstance(code, str)
                and len(code.strip()) == 2
                and isinstance(name, str)
            ):
                continue
            countries.append(
                CountryShare(
                    code=code.strip().upper(),
                    name=name.strip(),
                    percentage=_percentage(entry.get("percentage")),
                )
            )
        return countries

    @staticmethod
    def _build(
        candidate: dict[str, Any], images: list[str],
    ) -> Product:
        """Create the Product for an accepted, id-assigned candidate."""
        return Product(
            id=candidate["id"],
            name=candidate["name"].strip(),
            price=float(candidate["price"]),
            url=candidate["url"].strip(),
            manufacturer=candidate["manufacturer"].strip(),
            description=candidate["description"].strip(),
            available=candidate["available"],
            images=images,
            countries=ProductValidator._countries(
                candidate.get("countries")
            ),
            canadian_percentage=_percentage(
                candidate.get("canadianPercentage")
            ),
        )

    # ── Validation ───────────────────────────────────────

    async def validate(self, candidate: dict[str, Any]) -> Product:
        """Validate one candidate.

        Raises:
            ProductRejected: with the first failing rule as the reason.
        """
        for check in STRUCTURAL_CHECKS:
            check(candidate)

        name = candidate["name"]
        images = self.filter_image_formats(candidate["images"])
        if not images:
            raise ProductRejected(
                "no well-formed non-placeholder image", name
            )

        if self.probe_product_url and not await self.prober.page_exists(
            candidate["url"].strip()
        ):
            raise ProductRejected("product url unreachable", name)

        if self.probe_images:
            images = await self.prober.filter_images(images)
            if not images:
                raise ProductRejected("no reachable image", name)

        return self._build(self.assign_id(candidate), images)

    async def _validate_or_none(
        self, candidate: dict[str, Any],
    ) -> Product | None:
        """Validate one candidate, logging and swallowing rejections."""
        try:
            return await self.validate(candidate)
        except ProductRejected as exc:
            logger.debug(
                "Dropped candidate '%s': %s", exc.name, exc.reason
            )
            return None

    async def validate_batch(
        self, candidates: list[dict[str, Any]],
    ) -> tuple[list[Product], int]:
        """Validate all candidates concurrently, preserving order.

        Returns the accepted products (with ids unique in the batch)
        and the count of dropped candidates.
        """
        if not candidates:
            return [], 0

        results = await asyncio.gather(
            *(self._validate_or_none(c) for c in candidates)
        )
        valid = ensure_unique_ids(
            [p for p in results if p is not None]
        )
        dropped = len(candidates) - len(valid)

        if dropped:
            logger.info(
                "Validation dropped %d of %d candidates",
                dropped,
                len(candidates),
            )
        return valid, dropped


def ensure_unique_ids(products: list[Product]) -> list[Product]:
    """Give every product after the first with a repeated id a fresh one."""
    seen: set[str] = set()
    unique: list[Product] = []
    for product in products:
        if product.id in seen:
            product = replace(product, id=f"llm-{uuid.uuid4()}")
        seen.add(product.id)
        unique.append(product)
    return unique
