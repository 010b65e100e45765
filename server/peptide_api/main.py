"""Peptide Tracker API - FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import db_manager
from .routes import (
    alerts_router,
    analytics_router,
    injections_router,
    peptides_router,
    preferences_router,
    protocols_router,
    users_router,
    wellness_router,
)

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db_manager.init_schema()
    log.info("Peptide Tracker API ready")
    yield


app = FastAPI(
    title="Peptide Tracker API",
    description="Peptide therapy tracking: dosing log, protocols, progress, alerts and analytics",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

# Include routers
app.include_router(users_router)
app.include_router(preferences_router)
app.include_router(peptides_router)
app.include_router(injections_router)
app.include_router(protocols_router)
app.include_router(wellness_router)
app.include_router(alerts_router)
app.include_router(analytics_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for the API."""
    return {"status": "healthy", "service": "peptide-api"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "server.peptide_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
