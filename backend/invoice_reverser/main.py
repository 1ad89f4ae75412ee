"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from invoice_reverser.api.v1 import stages
from invoice_reverser.core.config import settings
from invoice_reverser.core.logging import get_logger, setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    setup_logging(settings.log_level, json_output=settings.APP_ENV != "development")
    logger = get_logger("startup")
    logger.info("Application starting", env=settings.APP_ENV, data_dir=settings.DATA_DIR)
    yield
    logger.info("Application shutting down")


app = FastAPI(
    title="TIMS Invoice Reverser API",
    description="Reverse and reissue fiscal invoices on tax-register devices",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(stages.router)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Public health-check endpoint."""
    return {"status": "ok", "env": settings.APP_ENV}
