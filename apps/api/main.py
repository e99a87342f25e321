"""
Article Studio - FastAPI Backend
Main application entry point with health check and API routing.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings, validate_security_settings
from database import Base, async_session_maker, engine
import models  # noqa: F401
from routers import (
    admin,
    auth,
    content,
    downloads,
    generation,
    health,
    research,
    session,
)
from services.accounts import sync_users_from_downloads
from services.session_store import run_session_sweep

logger = logging.getLogger(__name__)


async def _periodic_session_sweep() -> None:
    interval_minutes = max(int(settings.SESSION_SWEEP_INTERVAL_MINUTES), 0)
    if interval_minutes <= 0:
        return
    while True:
        await asyncio.sleep(interval_minutes * 60)
        try:
            await run_session_sweep()
        except Exception as exc:
            logger.error("Error cleaning up expired session content: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting Article Studio API...")
    validate_security_settings()
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    try:
        removed = await run_session_sweep()
        if removed:
            print(f"🧹 Removed {removed} expired session content items after startup.")
    except Exception as exc:
        print(f"⚠️ Startup session sweep skipped: {exc}")
    if settings.SYNC_USERS_ON_STARTUP:
        try:
            async with async_session_maker() as db:
                created = await sync_users_from_downloads(db)
            if created:
                print(f"👥 Created {created} users from download records.")
        except Exception as exc:
            print(f"⚠️ User sync skipped: {exc}")
    sweep_task = None
    if int(settings.SESSION_SWEEP_INTERVAL_MINUTES) > 0:
        sweep_task = asyncio.create_task(_periodic_session_sweep())
        print(
            "📅 Session content sweep enabled "
            f"(every {int(settings.SESSION_SWEEP_INTERVAL_MINUTES)} min)."
        )
    yield
    # Shutdown
    if sweep_task is not None:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass
    print("👋 Shutting down API...")


app = FastAPI(
    title="Article Studio API",
    description="Research a topic, generate an illustrated article and keep it",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]) or "body",
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "Validation error", "errors": errors})


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(research.router, prefix="/api", tags=["Research"])
app.include_router(generation.router, prefix="/api", tags=["Generation"])
app.include_router(downloads.router, prefix="/api", tags=["Downloads"])
app.include_router(content.router, prefix="/api", tags=["Content"])
app.include_router(session.router, prefix="/api", tags=["Session"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Article Studio API",
        "version": "0.1.0",
        "status": "running"
    }
