# src/services/origin_analyzer.py

"""Manufacturing-origin analysis for a single product."""

import logging

from openai import AsyncOpenAI
from pydantic import BaseModel, Field, ValidationError

from src.config.settings import Settings
from src.filters.query_sanitizer import QuerySanitizer
from src.filters.response_parser import ResponseParser
from src.models.errors import AnalysisFailed, ProviderMalformedOutput

logger = logging.getLogger("canmade_search.analysis")

_SYSTEM_PROMPT = (
    "You are an expert in product analysis and manufacturing origins."
)

_PROMPT_TEMPLATE = """
Analyze manufacturing origins for product: {name}
Price: {price}
Description: {description}
URL: {url}

Output JSON format:
{{
  "countries": [{{
    "code": string,       // 2-letter country code
    "name": string,       // full country name
    "percentage": number  // percentage of the product made in this country
  }}],
  "canadianPercentage": number,  // percentage of the product made in Canada
  "confidence": number           // confidence of the analysis (0 to 1)
}}
"""


class AnalysisRequest(BaseModel):
    """Body of ``POST /analyze``."""

    productId: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    price: float = Field(ge=0)
    url: str = Field(pattern=r"^https?://\S+$")


class CountryOrigin(BaseModel):
    code: str = Field(min_length=2, max_length=2)
    name: str
    percentage: float = Field(ge=0, le=100)


class OriginAnalysis(BaseModel):
    """Validated model answer."""

    countries: list[CountryOrigin]
    canadianPercentage: float = Field(ge=0, le=100)
    confidence: float = Field(ge=0, le=1)


class OriginAnalyzer:
    """Ask a web-search-enabled model where a product is made."""

    def __init__(self, client: AsyncOpenAI | None = None) -> None:
        self.settings = Settings()
        self.client = client or AsyncOpenAI(
            api_key=self.settings.OPENAI_API_KEY or None,
        )

    @staticmethod
    def sanitize(request: AnalysisRequest) -> AnalysisRequest:
        """Strip control characters and extra whitespace from text fields."""
        return request.model_copy(
            update={
                "name": QuerySanitizer.sanitize(request.name, 500),
                "description": QuerySanitizer.sanitize(
                    request.description, 2000
                ),
                "url": QuerySanitizer.sanitize(request.url, 2000),
            }
        )

    async def analyze(self, request: AnalysisRequest) -> dict[str, object]:
        """Return the validated origin analysis for one product.

        Raises:
            AnalysisFailed: if the model answer is empty or off-schema.
        """
        clean = self.sanitize(request)
        prompt = _PROMPT_TEMPLATE.format(
            name=clean.name,
            price=clean.price,
            description=clean.description,
            url=clean.url,
        )
        completion = await self.client.chat.completions.create(
            model=self.settings.ANALYSIS_MODEL,
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            web_search_options={
                "user_location": {
                    "type": "approximate",
                    "approximate": {
                        "country": self.settings.PROVIDER_USER_COUNTRY,
                    },
                },
            },
        )
        raw = completion.choices[0].message.content if completion.choices else None
        if not raw:
            raise AnalysisFailed("No analysis content")

        try:
            payload = ResponseParser.load_json(raw)
            analysis = OriginAnalysis.model_validate(payload)
        except (ProviderMalformedOutput, ValidationError) as exc:
            logger.warning(
                "Discarding invalid analysis for %s: %s",
                clean.productId,
                exc,
            )
            raise AnalysisFailed("Product analysis failed") from exc

        logger.info(
            "Analysed %s: %.0f%% Canadian (confidence %.2f)",
            clean.productId,
            analysis.canadianPercentage,
            analysis.confidence,
        )
        return {
            **analysis.model_dump(),
            "source": completion.model,
            "productId": clean.productId,
        }
