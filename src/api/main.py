import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.deps import (
    get_settings,
    init_session_registry,
    load_app_rules,
    shutdown_session_registry,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = load_app_rules(settings.rules_path)
        logger.info("Rules loaded from %s", settings.rules_path)
        init_session_registry(settings, rules)
    except Exception as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    yield
    shutdown_session_registry()


app = FastAPI(
    title="Farm Magazine Engagement API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import ad_placement, engagement, tracking  # noqa: E402

app.include_router(ad_placement.router, prefix="/api/ads", tags=["Ads"])
app.include_router(engagement.router, prefix="/api/engagement", tags=["Engagement"])
app.include_router(tracking.router, prefix="/api/tracking", tags=["Tracking"])


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
