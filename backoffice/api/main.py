"""
backoffice.api.main — FastAPI application entry point
=======================================================

Run with::

    uvicorn backoffice.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from backoffice.api.deps import get_engine  # noqa: E402
from backoffice.api.routes.content import router as content_router  # noqa: E402
from backoffice.api.routes.events import router as events_router  # noqa: E402
from backoffice.api.routes.settings import router as settings_router  # noqa: E402
from backoffice.api.routes.translations import router as translations_router  # noqa: E402
from backoffice.database.engine import init_db  # noqa: E402
from backoffice.errors import BackofficeError, ErrorKind  # noqa: E402
from backoffice.services.translation_service import failure_result  # noqa: E402

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
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
    """Startup/shutdown lifecycle: create tables and seed settings."""
    engine = get_engine()
    init_db(engine)
    logger.info("Backoffice API started, engine ready (%s)", engine.url.database)
    yield
    logger.info("Backoffice API shutting down")


app = FastAPI(
    title="Backoffice Admin API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


_STATUS_BY_KIND = {
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
}


@app.exception_handler(BackofficeError)
async def backoffice_error_handler(request: Request, exc: BackofficeError) -> JSONResponse:
    """Errors escaping a route become the structured failure body."""
    status_code = _STATUS_BY_KIND.get(exc.kind, 500)
    if status_code == 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content=failure_result(exc))


# Mount routers
app.include_router(events_router, prefix="/api")
app.include_router(translations_router, prefix="/api")
app.include_router(content_router, prefix="/api")
app.include_router(settings_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
