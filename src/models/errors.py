# src/models/errors.py

"""Exception taxonomy for the search pipeline and rate limiter."""


class SearchError(Exception):
    """Base class for all canmade_search errors."""


class InvalidInput(SearchError):
    """The caller sent an empty or malformed query (HTTP 400)."""


class RateLimited(SearchError):
    """The client exceeded its sliding-window allowance (HTTP 429)."""


class StoreUnavailable(SearchError):
    """The shared rate-limit store could not be reached."""


class ProviderTimeout(SearchError):
    """The search provider did not answer before its deadline."""


class ProviderMalformedOutput(SearchError):
    """The provider returned text that holds no usable product list."""


class ProductRejected(SearchError):
    """A single candidate failed validation."""

    def __init__(self, reason: str, name: str = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.name = name


class AnalysisFailed(SearchError):
    """The origin-analysis model returned no usable answer."""
