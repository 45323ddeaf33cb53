# src/filters/response_parser.py

"""Turn raw provider text into candidate product records."""

import json
import logging
import re
from typing import Any

from src.models.errors import ProviderMalformedOutput

logger = logging.getLogger("canmade_search.filters")


class ResponseParser:
    """Parse a ``{"products": [...]}`` blob, tolerating malformed output."""

    # ```json ... ``` fences the model sometimes adds despite instructions
    _FENCE_RE = re.compile(
        r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE
    )

    @staticmethod
    def _decode(text: str) -> Any:
        """Strict ``json.loads`` with NaN/Infinity tokens read as null.

        Raises:
            ProviderMalformedOutput: on any decoder failure, including
                nesting too deep for the decoder.
        """
        try:
            return json.loads(text, parse_constant=lambda _token: None)
        except (ValueError, RecursionError) as exc:
            raise ProviderMalformedOutput(
                f"Unparseable JSON: {type(exc).__name__}"
            ) from exc

    @staticmethod
    def load_json(raw_text: str) -> Any:
        """Decode *raw_text* as JSON, unwrapping fences and prose.

        Raises:
            ProviderMalformedOutput: when no JSON object can be recovered.
        """
        text = raw_text.strip()
        try:
            return ResponseParser._decode(text)
        except ProviderMalformedOutput:
            pass

        fenced = ResponseParser._FENCE_RE.match(text)
        if fenced:
            text = fenced.group(1)
            try:
                return ResponseParser._decode(text)
            except ProviderMalformedOutput:
                pass

        # Explanatory prose around the object: keep the outermost braces
        start = text.find("{")
        end = text.rfind("}")
        if start != -1 and end > start:
            return ResponseParser._decode(text[start:end + 1])

        raise ProviderMalformedOutput("No JSON object in provider output")

    @staticmethod
    def parse(raw_text: str | None) -> list[dict[str, Any]]:
        """Return the candidate records in *raw_text*, or ``[]``.

        A missing ``products`` field counts as an empty list. Entries
        that are not JSON objects are skipped.
        """
        if not raw_text or not raw_text.strip():
            return []

        try:
            payload = ResponseParser.load_json(raw_text)
        except ProviderMalformedOutput as exc:
            logger.warning(
                "Discarding malformed provider output (%d chars): %s",
                len(raw_text),
                exc,
            )
            return []

        if not isinstance(payload, dict):
            logger.warning(
                "Provider output root is %s, expected object",
                type(payload).__name__,
            )
            return []

        products = payload.get("products", [])
        if not isinstance(products, list):
            logger.warning(
                "Provider 'products' field is %s, expected array",
                type(products).__name__,
            )
            return []

        candidates = [p for p in products if isinstance(p, dict)]
        skipped = len(products) - len(candidates)
        if skipped:
            logger.debug("Skipped %d non-object product entries", skipped)

        logger.info("Parsed %d candidate products", len(candidates))
        return candidates
