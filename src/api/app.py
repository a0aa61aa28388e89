"""FastAPI application factory"""

import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import SQLModel

import src.domain  # noqa: F401  registers tables on SQLModel.metadata
from src.api.error import ClientError
from src.api.routes import commissions, ledger

logger = logging.getLogger(__name__)


def _init_sentry(config) -> None:
    import sentry_sdk

    sentry_sdk.init(
        dsn=config.DSN_SENTRY,
        environment=config.SENTRY_ENVIRONMENT,
        traces_sample_rate=0.1,
    )
    logger.info("Sentry error reporting enabled")


def create_app(config) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if config.ENABLE_SENTRY and config.DSN_SENTRY:
        _init_sentry(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if config.AUTO_CREATE_TABLES:
            from src.depends import engine

            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            logger.info("Database tables ensured")
        yield

    app = FastAPI(
        title="Transaction Ledger Service",
        description="Pending transactions, commission records and payout reporting",
        version="1.0.0",
        lifespan=lifespan,
    )

    if config.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ORIGINS,
            allow_credentials=config.CORS_ALLOW_CREDENTIALS,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if config.ENABLE_LOGGING_MIDDLEWARE:

        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            start_time = time.time()
            response = await call_next(request)
            elapsed_ms = int((time.time() - start_time) * 1000)
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms}ms)"
            )
            return response

    @app.exception_handler(ClientError)
    async def client_error_handler(request: Request, exc: ClientError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": exc.error.code, "message": exc.error.message}},
        )

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    app.include_router(ledger.router, prefix=config.API_PREFIX)
    app.include_router(commissions.router, prefix=config.API_PREFIX)

    return app
