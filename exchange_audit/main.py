# exchange_audit/main.py
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI

from exchange_audit.api.audit import router as audit_router
from exchange_audit.api.middleware import RequestContextMiddleware
from exchange_audit.config import settings, validate_audit_settings

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.root.setLevel(log_level)

    if not logging.root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logging.root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    configure_logging(settings.log_level)
    validate_audit_settings(settings)
    logger.info(f"Exchange audit service started (environment={settings.environment})")
    yield
    # Shutdown


app = FastAPI(title="Exchange Audit", version="0.1.0", lifespan=lifespan)

app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(audit_router)


@app.get("/health")
async def health():
    return {"status": "healthy"}
