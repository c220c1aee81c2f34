"""Main FastAPI application."""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from rapport.settings import settings
from rapport.api.relationships import router as relationships_router
from rapport.domain.common.errors import ConflictError, InvalidStateError, NotFoundError
from rapport.infra.db.base import Base, engine
# Import all models to ensure they're registered with Base
from rapport.infra.db import models  # noqa: F401

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (OSError, SQLAlchemyError) as e:
        # Database may not be reachable yet; migrations or the next restart will create tables.
        logger.warning("Could not connect to database during startup: %s", e)

    yield

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests and responses."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        logger.info("Request: %s %s", request.method, request.url.path)

        if logger.isEnabledFor(logging.DEBUG):
            headers = dict(request.headers)
            auth_header = headers.get("authorization")
            if auth_header and auth_header.startswith("Bearer "):
                headers["authorization"] = "Bearer ***"
            logger.debug("   Query params: %s", dict(request.query_params))
            logger.debug("   Headers: %s", headers)

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "Response: %s %s - %s (%.3fs)",
            request.method, request.url.path, response.status_code, process_time,
        )
        return response


# Add logging middleware AFTER CORS (CORS must be first)
app.add_middleware(LoggingMiddleware)


# Domain error handlers: map domain exceptions to HTTP status codes
@app.exception_handler(NotFoundError)
async def domain_not_found_handler(request: Request, exc: NotFoundError):
    """Return 404 when a resource is not found or not visible to the caller."""
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidStateError)
async def domain_invalid_state_handler(request: Request, exc: InvalidStateError):
    """Return 400 for operations not allowed in the current state."""
    return JSONResponse(
        status_code=400,
        content={
            "detail": exc.message,
            "current_status": exc.current_status,
            "requested_status": exc.requested_status,
        },
    )


@app.exception_handler(ConflictError)
async def domain_conflict_handler(request: Request, exc: ConflictError):
    """Return 409 for conflict errors."""
    return JSONResponse(status_code=409, content={"detail": exc.message})


app.include_router(relationships_router, prefix=settings.api_v1_prefix)


@app.get("/health")
@app.get(f"{settings.api_v1_prefix}/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": settings.app_version}
