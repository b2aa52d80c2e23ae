"""
Main FastAPI application entrypoint.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from src.config import settings
from src.api.dependencies import build_services
from src.api.health import router as health_router, API_VERSION
from src.api.itineraries import router as itineraries_router
from src.api.safety import router as safety_router
from src.api.places import router as places_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan event handler for startup and shutdown.
    """
    # Startup
    logger.info(f"Starting Itinerary Planning API on {settings.host}:{settings.port}")
    logger.info(f"Debug mode: {settings.debug}")
    app.state.services = build_services(settings)

    yield

    # Shutdown
    logger.info("Shutting down Itinerary Planning API")


# Create FastAPI app
app = FastAPI(
    title="Itinerary Planning API",
    description="Personalized, safety-gated travel itinerary planning",
    version=API_VERSION,
    lifespan=lifespan,
)

# CORS middleware for the web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router, prefix="/api")
app.include_router(itineraries_router, prefix="/api")
app.include_router(safety_router, prefix="/api")
app.include_router(places_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Itinerary Planning API",
        "version": API_VERSION,
        "status": "running",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.main:app", host=settings.host, port=settings.port, reload=settings.debug)
