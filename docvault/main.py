"""FastAPI application for the document vault.

Run with ``uvicorn docvault.main:app``.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docvault import __version__
from docvault.api.errors import setup_error_handlers
from docvault.api.router import api_router
from docvault.config import settings
from docvault.database import engine, init_db
from docvault.middleware.logging import RequestLoggingMiddleware

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
)

logger = logging.getLogger("docvault")


def init_sentry() -> None:
    if not settings.sentry_dsn:
        return
    try:
        import sentry_sdk

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=0.1,
            environment=settings.environment,
            release=f"docvault@{__version__}",
        )
        logger.info("Sentry initialized (env=%s)", settings.environment)
    except Exception as e:
        logger.warning("Failed to initialize Sentry: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_sentry()

    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    seeded = await init_db()
    logger.info(
        "Document vault %s up (env=%s, storage=%s, new document types=%d)",
        __version__,
        settings.environment,
        settings.upload_dir,
        seeded,
    )
    yield
    await engine.dispose()
    logger.info("Document vault stopped")


app = FastAPI(
    title="Document Vault",
    description="Entity-linked KYC and business documents with dedup, access log and audit trail",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)
app.add_middleware(RequestLoggingMiddleware)

setup_error_handlers(app)
app.include_router(api_router, prefix="/api")
