# src/config/settings.py

"""Central configuration for the canmade_search service."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    """Read an integer from the environment, falling back to *default*."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, falling back to *default*."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag (1/true/yes/on) from the environment."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Central configuration for the canmade_search service."""

    # --- Search pipeline ---
    SEARCH_DEADLINE_MS: int = _env_int("SEARCH_DEADLINE_MS", 45_000)
    PROVIDER_MARGIN_MS: int = _env_int("PROVIDER_MARGIN_MS", 5_000)
    PROVIDER_MAX_RETRIES: int = _env_int("PROVIDER_MAX_RETRIES", 1)
    MAX_QUERY_LENGTH: int = 200         # Characters kept after sanitising

    # --- Search provider ---
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-5-mini")
    ANALYSIS_MODEL: str = os.getenv(
        "ANALYSIS_MODEL", "gpt-4o-mini-search-preview"
    )
    PROVIDER_MAX_OUTPUT_TOKENS: int = 2000
    PROVIDER_USER_COUNTRY: str = "CA"

    # --- Validation ---
    IMAGE_PROBE_ENABLED: bool = _env_bool("IMAGE_PROBE_ENABLED", False)
    IMAGE_PROBE_TIMEOUT: float = _env_float("IMAGE_PROBE_TIMEOUT", 3.0)
    PRODUCT_URL_PROBE_ENABLED: bool = _env_bool(
        "PRODUCT_URL_PROBE_ENABLED", False
    )
    REQUIRE_IMAGE_EXTENSION: bool = _env_bool(
        "REQUIRE_IMAGE_EXTENSION", False
    )
    IMAGE_EXTENSIONS: list[str] = [
        ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg",
    ]
    PLACEHOLDER_IMAGE_HOSTS: list[str] = [
        "placehold.co",
        "placehold.it",
        "placeholder.com",
        "via.placeholder.com",
        "placekitten.com",
        "picsum.photos",
        "dummyimage.com",
        "fakeimg.pl",
        "placeimg.com",
        "lorempixel.com",
    ]

    # --- Rate limiting ---
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    RATE_LIMIT_WINDOW_MS: int = _env_int("RATE_LIMIT_WINDOW_MS", 60_000)
    RATE_LIMIT_MAX_REQUESTS: int = _env_int("RATE_LIMIT_MAX_REQUESTS", 10)
    RATE_LIMIT_FAIL_OPEN: bool = _env_bool("RATE_LIMIT_FAIL_OPEN", False)
    RATE_LIMIT_KEY_PREFIX: str = "ratelimit:"
    STORE_SOCKET_TIMEOUT: float = 2.0   # Seconds per store round trip

    # --- Health ---
    HEALTH_SLOW_MS: float = 500.0       # Store latency considered slow

    # --- Browser Impersonation (image probes) ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    PROBE_HEADERS: dict[str, str] = {
        "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
        "Accept-Language": "en-CA,en;q=0.9",
    }

    # --- HTTP server ---
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = _env_int("PORT", 8000)

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Logging ---
    CONSOLE_LOG_LEVEL: str = os.getenv("CONSOLE_LOG_LEVEL", "WARNING").upper()
    # Third-party loggers whose warnings also go to the run file
    LIBRARY_LOGGERS: list[str] = ["uvicorn.error", "openai", "httpx", "redis"]
