"""
artclaps.api.main — FastAPI application entry point
====================================================

Run with::

    uvicorn artclaps.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from artclaps import __version__  # noqa: E402
from artclaps.api.deps import get_config, get_engine  # noqa: E402
from artclaps.api.errors import install_error_handlers  # noqa: E402
from artclaps.api.routes.activities import router as activities_router  # noqa: E402
from artclaps.api.routes.admin import router as admin_router  # noqa: E402
from artclaps.api.routes.artists import router as artists_router  # noqa: E402
from artclaps.api.routes.leaderboard import router as leaderboard_router  # noqa: E402
from artclaps.api.routes.referrals import router as referrals_router  # noqa: E402
from artclaps.api.routes.social import router as social_router  # noqa: E402
from artclaps.api.routes.users import router as users_router  # noqa: E402
from artclaps.database.engine import init_db  # noqa: E402

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine and load config."""
    engine = get_engine()
    cfg = get_config()
    if os.getenv("DB_AUTO_CREATE", "").lower() in ("1", "true", "yes"):
        init_db(engine)
    if not cfg.admin_fids:
        logger.warning("No admin fids configured; the review queue is unreachable")
    logger.info("%s API started — engine ready (%s)", cfg.app_name, engine.url.database)
    yield
    logger.info("%s API shutting down", cfg.app_name)


app = FastAPI(
    title="Art Claps API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

# Mount routers
app.include_router(social_router, prefix="/api")
app.include_router(activities_router, prefix="/api")
app.include_router(artists_router, prefix="/api")
app.include_router(leaderboard_router, prefix="/api")
app.include_router(referrals_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(users_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
