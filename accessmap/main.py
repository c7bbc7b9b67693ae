from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from accessmap.core.config import settings
from accessmap.core.errors import AppError, AuthRequiredError, NetworkError, ValidationError
from accessmap.core.logging_config import configure_logging
from accessmap.db.base import Base
from accessmap.db.session import engine

import accessmap.models

from accessmap.routers import auth, users, places, reviews

configure_logging(log_dir=settings.log_dir, level=settings.log_level)
logger = logging.getLogger(__name__)


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    content: dict = {"detail": exc.message}
    headers: dict[str, str] = {}

    if isinstance(exc, ValidationError):
        content["field"] = exc.field
    elif isinstance(exc, AuthRequiredError):
        headers["WWW-Authenticate"] = "Bearer"
    elif isinstance(exc, NetworkError):
        logger.warning("%s %s failed upstream: %s", request.method, request.url.path, exc.message)
        # Upstream details stay in the log.
        content["detail"] = NetworkError.public_message

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers or None)


def create_app() -> FastAPI:
    app = FastAPI(title="AccessMap", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, _app_error_handler)

    @app.on_event("startup")
    async def on_startup() -> None:
        Base.metadata.create_all(bind=engine)
        logger.info("DB ready")
        if not settings.google_maps_api_key:
            logger.warning("GOOGLE_MAPS_API_KEY is not set; place search will return no results")

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error")
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})
        duration_ms = int((time.time() - start) * 1000)
        logger.info("%s %s -> %s (%sms)", request.method, request.url.path, response.status_code, duration_ms)
        return response

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(places.router)
    app.include_router(reviews.router)

    return app


app = create_app()
