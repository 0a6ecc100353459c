"""
MindBridge Circles API

Main entry point for the circles, friendships, direct messages and wellbeing API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Common library imports
from common.database import MongoDB, StoreUnavailable
from common.utils import APIException, ServiceUnavailableException, error_response, success_response

# App-specific imports
from mindbridge.config import settings
from mindbridge.models import MalformedDocumentError

# Import routers
from mindbridge.routers import (
    circles_router,
    friends_router,
    journals_router,
    messages_router,
    moods_router,
    posts_router,
)

# Import service initialization
from mindbridge.dependencies import ensure_all_indexes, init_all_services


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Database Instance
# =============================================================================
main_db = MongoDB()


# =============================================================================
# Application Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown tasks like database connections
    and service initialization.
    """
    # Startup
    logger.info("Starting MindBridge API...")
    settings.validate_required()

    await main_db.connect(
        uri=settings.MONGODB_URI,
        database_name=settings.MONGODB_DATABASE,
        timeout_ms=settings.MONGODB_TIMEOUT_MS,
    )

    init_all_services(db=main_db.db)
    await ensure_all_indexes()
    logger.info("All services initialized successfully")

    yield

    # Shutdown
    logger.info("Shutting down MindBridge API...")
    await main_db.disconnect()


# =============================================================================
# FastAPI Application
# =============================================================================
app = FastAPI(
    title="MindBridge API",
    description="Circles, friendships, direct messages, moods and journals for the MindBridge community",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development() else None,
    redoc_url="/redoc" if settings.is_development() else None,
)

# =============================================================================
# CORS Middleware
# =============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response(),
        headers=exc.headers,
    )


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return await api_exception_handler(
        request, ServiceUnavailableException(code="STORE_UNAVAILABLE")
    )


@app.exception_handler(MalformedDocumentError)
async def malformed_document_handler(request: Request, exc: MalformedDocumentError):
    logger.error(f"{request.method} {request.url.path} hit malformed data: {exc}")
    return JSONResponse(
        status_code=500,
        content=error_response("Stored data is invalid", code="MALFORMED_DOCUMENT"),
    )


# =============================================================================
# Include Routers (all under /api/v1 prefix)
# =============================================================================
API_PREFIX = "/api/v1"

app.include_router(circles_router, prefix=API_PREFIX, tags=["Circles"])
app.include_router(posts_router, prefix=API_PREFIX, tags=["Posts"])
app.include_router(friends_router, prefix=API_PREFIX, tags=["Friends"])
app.include_router(messages_router, prefix=API_PREFIX, tags=["Messages"])
app.include_router(moods_router, prefix=API_PREFIX, tags=["Moods"])
app.include_router(journals_router, prefix=API_PREFIX, tags=["Journals"])


# =============================================================================
# Health Check Endpoint
# =============================================================================
@app.get("/health", tags=["Health"])
async def health():
    """
    Health check endpoint.

    Reports "degraded" when the document store does not answer a ping.
    """
    database_ok = await main_db.ping()
    return success_response({
        "status": "ok" if database_ok else "degraded",
        "version": "1.0.0",
        "database": database_ok,
    })


# =============================================================================
# Run with Uvicorn
# =============================================================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development(),
    )
