"""FastAPI application — the main entrypoint for IdeaFlow."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from backend.app.api.audit import router as audit_router
from backend.app.api.collaborations import router as collaborations_router
from backend.app.api.comments import router as comments_router
from backend.app.api.ideas import router as ideas_router
from backend.app.api.notifications import router as notifications_router
from backend.app.api.points import router as points_router
from backend.app.api.reviews import router as reviews_router
from backend.app.api.suggestions import router as suggestions_router
from backend.app.api.users import router as users_router
from backend.app.api.versions import router as versions_router
from backend.app.config import settings
from backend.app.db import engine, init_db
from backend.app.errors import OperationError

logger = logging.getLogger(__name__)

# Uvicorn's log_level only affects its own logger, not ours.
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(levelname)s:%(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    await init_db()
    logger.info("IdeaFlow ready on %s:%d", settings.host, settings.port)
    yield
    await engine.dispose()


app = FastAPI(
    title="IdeaFlow",
    description="Innovation portal: idea review pipeline, engagement and gamification",
    version="0.1.0",
    lifespan=lifespan,
)

# allow_origins=["*"] + allow_credentials=True is rejected by browsers,
# so we always use an explicit origin list.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", f"http://localhost:{settings.port}"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Exception handlers ---


@app.exception_handler(OperationError)
async def _operation_error_handler(request: Request, exc: OperationError) -> JSONResponse:
    """Map service-layer failures onto their HTTP status."""
    logger.info(
        "%s %s -> %d %s: %s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.code,
        exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
    )


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch unhandled exceptions and return a clean JSON 500 instead of a stack trace."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Include routers. The generic /{parent_type}/{parent_id}/... routers go last.
app.include_router(users_router, prefix="/api")
app.include_router(ideas_router, prefix="/api")
app.include_router(versions_router, prefix="/api")
app.include_router(reviews_router, prefix="/api")
app.include_router(collaborations_router, prefix="/api")
app.include_router(points_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")
app.include_router(audit_router, prefix="/api")
app.include_router(comments_router, prefix="/api")
app.include_router(suggestions_router, prefix="/api")


# --- Health check ---


@app.get("/api/health")
async def health() -> dict[str, str]:
    """Health check with DB connectivity verification."""
    db_ok = "ok"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        db_ok = "error"
        logger.exception("Health check: database connectivity failed")

    return {"status": "ok" if db_ok == "ok" else "degraded", "database": db_ok}
