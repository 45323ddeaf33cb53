# src/filters/query_sanitizer.py

"""Pre-search input cleanup for user-supplied text."""

import logging
import re

from src.config.settings import Settings

logger = logging.getLogger("canmade_search.filters")


class QuerySanitizer:
    """Normalise free text before it is sent to the search provider."""

    _CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")

    @staticmethod
    def sanitize(text: str | None, max_length: int | None = None) -> str:
        """Replace control characters, collapse whitespace, and trim.

        The result is truncated to *max_length* characters
        (``Settings.MAX_QUERY_LENGTH`` by default). ``None`` becomes ``""``.
        """
        if not text:
            return ""
        limit = max_length or Settings.MAX_QUERY_LENGTH
        cleaned = QuerySanitizer._CONTROL_RE.sub(" ", text)
        cleaned = " ".join(cleaned.split())
        if len(cleaned) > limit:
            logger.debug(
                "Truncated input from %d to %d chars",
                len(cleaned),
                limit,
            )
            cleaned = cleaned[:limit].rstrip()
        return cleaned
