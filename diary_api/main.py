"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from diary_api.api import diaries, health, motd
from diary_api.config import get_settings
from diary_api.db.session import init_db
from diary_api.errors import (
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from diary_api.middleware.request_logger import log_requests

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logger.info("Starting Clan Diary API...")

    try:
        app.state.db = await init_db(settings.database_url, settings.database_path)
        logger.info(f"Connected to SQLite database at {settings.database_path}")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    logger.info(f"Clan Diary API started (environment: {settings.app_env})")

    yield

    # Shutdown
    logger.info("Shutting down Clan Diary API...")
    await app.state.db.close()


# Create FastAPI app
app = FastAPI(
    title="Clan Diary API",
    description="""
## Clan Achievement Diary API

Create and manage clan achievement diaries: named collections of tiers,
each holding an ordered list of tasks, plus a clan-wide message of the day.

### Authentication
All `/api` endpoints require an API key in the `Authorization` header:
```
Authorization: Bearer <api-key>
```

### Authorization
Write endpoints also need the acting clan member's name (`rsn`) in the body
or query string. The member must be on the clan roster with at least the
configured admin rank.

### Responses
Every response uses the same envelope:
`{"success": bool, "data": ..., "error": "...", "message": "..."}`
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    redirect_slashes=False,
    lifespan=lifespan,
)

# Access log
app.middleware("http")(log_requests)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.cors_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error envelopes
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Include routers
app.include_router(health.router)
app.include_router(diaries.router)
app.include_router(motd.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "diary_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
