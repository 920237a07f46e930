"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from libala.api import auth, gifts, memberships, weddings
from libala.api.errors import register_exception_handlers
from libala.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    # Startup: Initialize application resources here
    yield
    # Shutdown: Clean up resources here


app = FastAPI(
    title="Libala API",
    description="Wedding websites: accounts, sessions and per-wedding access control",
    version="0.1.0",
    lifespan=lifespan,
)

# The React client sends the session cookie cross-origin during development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_exception_handlers(app)

# Register routers
app.include_router(auth.router)
app.include_router(weddings.router)
app.include_router(memberships.router)
app.include_router(gifts.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
