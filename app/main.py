"""Application entry point and FastAPI app factory."""

from __future__ import annotations

import asyncio
import logging
from logging.handlers import RotatingFileHandler
import sys
from datetime import timedelta
from pathlib import Path

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .config.dependencies import build_worker_pool, get_upload_repository
from .config.settings import settings
from .controllers import auth, files, users, visualize
from .database import dispose_engine, init_models
from .middleware import StructuredLoggingMiddleware, TelemetryMiddleware
from .pipelines.lesson import run_stale_sweeper

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _rotating_handler(path: str, max_bytes: int, fmt: str) -> RotatingFileHandler:
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _configure_logging() -> None:
    """Stream application logs to stdout and file; pipeline logs get their own file."""

    logging.getLogger().handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(logging.Formatter(_LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(_rotating_handler(settings.log_file, 1_000_000, _LOG_FORMAT))
    root_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

    middleware_logger = logging.getLogger("app.middleware.structured")
    middleware_logger.handlers.clear()
    middleware_stdout = logging.StreamHandler(sys.stdout)
    middleware_stdout.setFormatter(logging.Formatter("%(message)s"))
    middleware_logger.addHandler(middleware_stdout)
    middleware_logger.setLevel(logging.INFO)
    middleware_logger.propagate = False

    # Pipeline records still reach the root handlers; the extra file keeps one
    # lesson's stages readable in sequence.
    pipeline_logger = logging.getLogger("app.pipelines.lesson")
    pipeline_logger.handlers.clear()
    pipeline_logger.addHandler(
        _rotating_handler(
            settings.pipeline_log_file,
            500_000,
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        )
    )
    pipeline_logger.setLevel(logging.INFO)

    noisy_loggers = [
        "botocore",
        "boto3",
        "urllib3",
        "httpx",
        "sqlalchemy.engine",
    ]
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    _configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        description="Accessible lesson generation backend: narration audio, transcripts and illustrated scenes",
    )

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(StructuredLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(files.router)
    app.include_router(visualize.router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint."""

        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "status": "operational",
        }

    @app.get("/health", include_in_schema=False)
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""

        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose application metrics for Prometheus scraping."""

        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    @app.on_event("startup")
    async def startup_event() -> None:
        await init_models()
        Path(settings.pipeline.upload_dir).mkdir(parents=True, exist_ok=True)

        worker_pool = build_worker_pool()
        worker_pool.start()
        app.state.worker_pool = worker_pool
        app.state.stale_sweeper = asyncio.create_task(
            run_stale_sweeper(
                get_upload_repository(),
                older_than=timedelta(minutes=settings.pipeline.stale_after_minutes),
                interval_seconds=settings.pipeline.sweep_interval_seconds,
            ),
            name="lesson-stale-sweeper",
        )

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        sweeper = getattr(app.state, "stale_sweeper", None)
        if sweeper is not None:
            sweeper.cancel()
            await asyncio.gather(sweeper, return_exceptions=True)
        worker_pool = getattr(app.state, "worker_pool", None)
        if worker_pool is not None:
            await worker_pool.stop()
        await dispose_engine()

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
