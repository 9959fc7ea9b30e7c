# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import redis
import requests
import uvicorn

from storefront.api import api_router
from storefront.data.database import init_db
from storefront.domain.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RateLimitedError,
    StorefrontError,
    UpstreamError,
    ValidationError,
    WebhookProcessingError,
)
from storefront.utils.settings import Settings, load_settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# kolejnosc ma znaczenie: podklasy przed klasami bazowymi
ERROR_STATUS_CODES = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (RateLimitedError, 429),
    (WebhookProcessingError, 500),
    (UpstreamError, 502),
)


def status_for(exc: StorefrontError) -> int:
    for exc_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database tables")
    init_db()
    yield

    app.state.http_session.close()
    app.state.redis.close()
    logger.info("Outbound clients closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(
        title="Storefront Order Service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or load_settings()

    # jeden pool polaczen na proces, zamykany w lifespan
    app.state.http_session = requests.Session()
    app.state.redis = redis.Redis.from_url(app.state.settings.redis_url, decode_responses=True)

    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.include_router(api_router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
