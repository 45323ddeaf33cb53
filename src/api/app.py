# src/api/app.py

"""FastAPI application exposing search, analysis, and health endpoints."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.config.settings import Settings
from src.models.errors import (
    AnalysisFailed,
    InvalidInput,
    RateLimited,
    StoreUnavailable,
)
from src.services.health_checker import HealthChecker
from src.services.origin_analyzer import AnalysisRequest, OriginAnalyzer
from src.services.rate_limiter import (
    RateLimiter,
    client_key,
    create_redis,
    request_credential,
)
from src.services.search_orchestrator import SearchOrchestrator

logger = logging.getLogger("canmade_search.api")


def _error(status_code: int, message: str) -> JSONResponse:
    """Structured error body shared by every non-2xx response."""
    return JSONResponse(status_code=status_code, content={"error": message})


async def enforce_rate_limit(request: Request) -> None:
    """Reject the request with 429 once its client exceeds the window.

    A store outage fails closed (500) unless ``fail_open`` is set on
    the application, in which case the request is admitted.
    """
    state = request.app.state
    key = client_key(
        request.headers,
        request.client.host if request.client else None,
        request_credential(request.headers),
    )
    try:
        limited = await state.limiter.is_rate_limited(key)
    except StoreUnavailable:
        if not state.fail_open:
            raise
        logger.warning(
            "Rate-limit store down, admitting %s (fail-open)", key
        )
        return
    if limited:
        raise RateLimited("Rate limit exceeded")


def _register_handlers(app: FastAPI) -> None:
    """Map domain errors to structured JSON error responses."""

    @app.exception_handler(InvalidInput)
    async def invalid_input_handler(
        request: Request, exc: InvalidInput,
    ) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(RateLimited)
    async def rate_limited_handler(
        request: Request, exc: RateLimited,
    ) -> JSONResponse:
        return _error(429, str(exc))

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(
        request: Request, exc: StoreUnavailable,
    ) -> JSONResponse:
        logger.error("Rejecting %s: %s", request.url.path, exc)
        return _error(500, "Rate limiting is temporarily unavailable")

    @app.exception_handler(AnalysisFailed)
    async def analysis_failed_handler(
        request: Request, exc: AnalysisFailed,
    ) -> JSONResponse:
        return _error(502, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        fields = ", ".join(
            ".".join(str(p) for p in err.get("loc", ())[1:]) or "body"
            for err in exc.errors()
        )
        return _error(422, f"Invalid request: {fields}")

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception,
    ) -> JSONResponse:
        logger.error(
            "Unhandled error on %s: %s",
            request.url.path,
            exc,
            exc_info=exc,
        )
        return _error(500, "Internal server error")


def _register_routes(app: FastAPI) -> None:

    @app.get("/search", dependencies=[Depends(enforce_rate_limit)])
    async def search(
        request: Request,
        q: str | None = Query(default=None),
    ) -> JSONResponse:
        """Search Canadian-made products; degrades to ``[]``."""
        if q is None or not q.strip():
            raise InvalidInput("Query parameter 'q' is required")
        orchestrator: SearchOrchestrator = request.app.state.orchestrator
        products = await orchestrator.search(q)
        return JSONResponse(content=[p.to_dict() for p in products])

    @app.post("/analyze", dependencies=[Depends(enforce_rate_limit)])
    async def analyze(
        request: Request, body: AnalysisRequest,
    ) -> JSONResponse:
        """Estimate where one product is made."""
        analyzer: OriginAnalyzer = request.app.state.analyzer
        return JSONResponse(content=await analyzer.analyze(body))

    @app.get("/health")
    async def health(request: Request) -> JSONResponse:
        """Report dependency health; 503 if any dependency is down."""
        checker = HealthChecker(request.app.state.limiter)
        results = await checker.check_all()
        down = any(r.status == "down" for r in results)
        degraded = down or any(r.status != "ok" for r in results)
        return JSONResponse(
            status_code=503 if down else 200,
            content={
                "status": "degraded" if degraded else "ok",
                "checks": [r.to_dict() for r in results],
            },
        )


def create_app(
    orchestrator: SearchOrchestrator | None = None,
    limiter: RateLimiter | None = None,
    analyzer: OriginAnalyzer | None = None,
    fail_open: bool | None = None,
) -> FastAPI:
    """Build the application.

    Collaborators passed in are used as-is. Missing ones are built once
    in the lifespan: one Redis connection pool per process, shared by
    every request through ``app.state``.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned_redis = None
        if app.state.limiter is None:
            owned_redis = create_redis()
            app.state.limiter = RateLimiter(owned_redis)
        if app.state.orchestrator is None:
            app.state.orchestrator = SearchOrchestrator()
        if app.state.analyzer is None:
            app.state.analyzer = OriginAnalyzer()
        logger.info("canmade_search API started")
        try:
            yield
        finally:
            if owned_redis is not None:
                await owned_redis.aclose()
            logger.info("canmade_search API shutting down")

    app = FastAPI(
        title="canmade_search",
        description="Search for Canadian-made products.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator
    app.state.limiter = limiter
    app.state.analyzer = analyzer
    app.state.fail_open = (
        Settings.RATE_LIMIT_FAIL_OPEN if fail_open is None else fail_open
    )

    _register_handlers(app)
    _register_routes(app)
    return app
