# src/services/url_prober.py

"""Lightweight HEAD probes for product pages and image URLs."""

import asyncio
import logging

from curl_cffi.requests import AsyncSession

from src.config.settings import Settings

logger = logging.getLogger("canmade_search.probe")


class UrlProber:
    """Check that remote URLs exist without downloading their bodies.

    Every probe is a single ``HEAD`` request (redirects followed) with a
    short timeout. Network errors count as failures and are logged,
    never raised.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self.settings = Settings()
        self._timeout: float = (
            timeout
            if timeout is not None
            else self.settings.IMAGE_PROBE_TIMEOUT
        )

    def _session(self) -> AsyncSession:
        """Open a browser-impersonating session for one batch of probes."""
        return AsyncSession(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )

    async def _head_ok(
        self,
        session: AsyncSession,
        url: str,
        require_image: bool,
    ) -> bool:
        """Return True if *url* answers 2xx (and is an image if required)."""
        try:
            resp = await session.head(
                url,
                headers=self.settings.PROBE_HEADERS,
                timeout=self._timeout,
                allow_redirects=True,
            )
        except Exception as exc:
            logger.debug("Probe failed for %s: %s", url, exc)
            return False

        if not 200 <= resp.status_code < 300:
            logger.debug(
                "Probe for %s returned HTTP %d", url, resp.status_code
            )
            return False

        if require_image:
            content_type = resp.headers.get("content-type") or ""
            if not content_type.lower().startswith("image/"):
                logger.debug(
                    "Probe for %s returned non-image content type '%s'",
                    url,
                    content_type,
                )
                return False
        return True

    async def filter_images(self, urls: list[str]) -> list[str]:
        """Return the reachable image URLs from *urls*, in original order.

        All probes run concurrently; the result is a stable filter.
        """
        if not urls:
            return []
        async with self._session() as session:
            checks = await asyncio.gather(
                *(self._head_ok(session, u, True) for u in urls)
            )
        kept = [u for u, ok in zip(urls, checks) if ok]
        if len(kept) < len(urls):
            logger.info(
                "Image probes removed %d of %d URLs",
                len(urls) - len(kept),
                len(urls),
            )
        return kept

    async def page_exists(self, url: str) -> bool:
        """Return True if the product page answers with a 2xx status."""
        async with self._session() as session:
            return await self._head_ok(session, url, False)
