from contextlib import asynccontextmanager
from typing import AsyncGenerator
from functools import partial
import asyncio
import os
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from alembic.config import Config
from alembic import command

from taskboard.db import init_db, async_session_factory
from taskboard.core import get_settings
from taskboard.core.exceptions import AppError
from taskboard.api.v1 import api_router
from taskboard.core.middleware import RequestLoggingMiddleware
from taskboard.services.access_service import check_board_access
from taskboard.services.realtime_service import InMemoryRoomRegistry
from taskboard.logs.server_log import api_logger
from taskboard.logs.debug_log import debug_logger

# Get application settings
settings = get_settings()


def run_migrations():
    """Upgrade the database to the latest Alembic revision"""
    alembic_cfg = Config(os.path.join(Path(__file__).parent.parent, "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    command.upgrade(alembic_cfg, "head")


# Lifespan event handler
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    try:
        if settings.RUN_MIGRATIONS:
            # env.py drives its own event loop, so it runs off the main one
            await asyncio.to_thread(run_migrations)
        await init_db()
        api_logger.info("Database migrations applied and initialized successfully")
    except Exception as e:
        api_logger.error(f"Error applying migrations: {e}")
        raise

    yield

    api_logger.info(f"Shutting down, realtime state: {app.state.room_registry.get_stats()}")


# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API for collaborative Kanban boards with live updates",
    version="0.1.0",
    lifespan=lifespan,
)

# One room registry per process, shared by every websocket connection
app.state.room_registry = InMemoryRoomRegistry(
    access_check=partial(check_board_access, async_session_factory)
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        debug_logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": exc.status, "message": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "loc": list(err.get("loc", [])),
            "msg": str(err.get("msg", "")),
            "type": str(err.get("type", "unknown")),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={"status": "failed", "message": "Validation error", "errors": errors},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    api_logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    content = {"status": "error", "message": "Something went wrong"}
    if settings.is_development:
        content.update({"message": str(exc), "error": type(exc).__name__, "detail": repr(exc)})
    return JSONResponse(status_code=500, content=content)


# Include API router
app.include_router(api_router)


@app.get("/")
async def root(request: Request):
    """Health check endpoint"""
    api_logger.info(f"Received health check request: {request.method} {request.url}")
    return {"message": f"{settings.PROJECT_NAME} is running"}


if __name__ == "__main__":
    import uvicorn

    api_logger.info("Server starting on http://0.0.0.0:8000")

    uvicorn.run(
        "taskboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
