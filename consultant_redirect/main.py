"""
FastAPI application entry point for the consultant redirect service.

Configures logging, CORS, the exception handlers that keep every failure in the
``{success: false, error}`` shape, and mounts the redirect router under both
public prefixes used by the landing-page scripts.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from consultant_redirect import __version__
from consultant_redirect.api.redirect import router as redirect_router
from consultant_redirect.core.database import close_db, init_db
from consultant_redirect.core.exceptions import RedirectError


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open the database pool on startup and close it on shutdown.

    A failed pool creation is logged and startup continues; requests then
    retry the pool lazily and answer 500 while the database stays down.
    """
    logger.info("Consultant redirect API starting")
    try:
        await init_db()
        logger.info("Database connection pool initialized")
    except RedirectError as e:
        logger.error(f"Failed to initialize database: {e}")

    yield

    logger.info("Consultant redirect API shutting down")
    await close_db()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="Consultant Redirect API",
    version=__version__,
    description=(
        "Routes landing-page visitors to a sales consultant on WhatsApp, "
        "balancing today's leads across active consultants."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:8080",  # admin dashboard dev server
        "https://sistema-educa.autoflixtreinamentos.com",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Same router on both prefixes: older embeds call /api/public, the v2 button
# script calls /api/public-v2.
app.include_router(redirect_router, prefix="/api/public", tags=["redirect"])
app.include_router(redirect_router, prefix="/api/public-v2", tags=["redirect"])


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(RedirectError)
async def redirect_error_handler(request: Request, exc: RedirectError) -> JSONResponse:
    """Raised outside a route's own handling, e.g. StoreUnavailable from a dependency."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {type(exc).__name__}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} rejected: malformed request")
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Requisição inválida"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Erro interno do servidor"},
    )


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer health checks.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """API name, version and documentation links."""
    return {
        "name": "Consultant Redirect API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "consultant_redirect.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
