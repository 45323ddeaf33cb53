# src/sources/search_provider.py

"""Natural-language web search provider for Canadian-made listings."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from openai import AsyncOpenAI

from src.config.settings import Settings

logger = logging.getLogger("canmade_search.provider")

INSTRUCTIONS = """
You are an expert in Canadian-made products. Perform a live web search
(not your knowledge base) for products that claim to be Canadian-made and
match the user's query. Return up to the top 10 products, including
brand-new items from retail product pages and artisan or marketplace
listings that claim to be Canadian-made.

Return a single JSON object, with no markdown, code fences or extra text:
{
  "products": [{
    "id": string,
    "name": string,
    "price": number,          // price in CAD
    "available": boolean,
    "images": string[],       // direct jpg, png, gif, webp or svg URLs, not the product URL
    "url": string,            // product page URL
    "description": string,
    "manufacturer": string,
    "countries": [{
      "code": string,         // ISO 3166-1 alpha-2
      "name": string,
      "percentage"?: number   // share of manufacturing in this country
    }],
    "canadianPercentage"?: number
  }]
}
If no product meets the criteria, return {"products": []}.
Each product must have at least one valid image URL and a valid product
page URL; omit products with missing or invalid fields.
Never return incomplete JSON.
"""

_INPUT_TEMPLATE = (
    "Search the web for products claiming to be Canadian-made matching: "
    "{query}. Include price, image URLs, the product page URL and the "
    "manufacturing share of each country involved when available. "
    "Do not ask for clarification; return results as fast as possible."
)


class SearchProvider(ABC):
    """Black-box capability: query in, raw (possibly invalid) text out."""

    name: str = "provider"

    @abstractmethod
    async def fetch(self, query: str, deadline_s: float) -> str:
        """Return the provider's raw text answer for *query*.

        *deadline_s* is a hint; callers enforce the hard deadline.
        """
        ...


class OpenAIWebSearchProvider(SearchProvider):
    """Search provider backed by the OpenAI Responses API web-search tool."""

    name = "openai"

    def __init__(self, client: AsyncOpenAI | None = None) -> None:
        self.settings = Settings()
        # Retries are owned by the orchestrator's bounded loop
        self.client = client or AsyncOpenAI(
            api_key=self.settings.OPENAI_API_KEY or None,
            max_retries=0,
        )

    def _tools(self) -> list[dict[str, Any]]:
        return [
            {
                "type": "web_search_preview",
                "search_context_size": "low",
                "user_location": {
                    "type": "approximate",
                    "country": self.settings.PROVIDER_USER_COUNTRY,
                },
            }
        ]

    async def fetch(self, query: str, deadline_s: float) -> str:
        """Run one web-search completion and return its output text."""
        logger.info(
            "Querying %s for '%s' (deadline %.1fs)",
            self.settings.OPENAI_MODEL,
            query,
            deadline_s,
        )
        response = await self.client.responses.create(
            model=self.settings.OPENAI_MODEL,
            tools=self._tools(),  # type: ignore[arg-type]
            instructions=INSTRUCTIONS,
            input=_INPUT_TEMPLATE.format(query=query),
            max_output_tokens=self.settings.PROVIDER_MAX_OUTPUT_TOKENS,
            parallel_tool_calls=True,
            timeout=deadline_s,
        )
        text: str = response.output_text or ""
        if not text:
            logger.warning("Provider returned no output text for '%s'", query)
        else:
            logger.debug("Provider output (%d chars): %s", len(text), text)
        return text
