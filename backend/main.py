"""FastAPI main application."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from poker_circuit import __version__
from poker_circuit.aggregator import TournamentDataService
from poker_circuit.api import router as tournaments_router
from poker_circuit.config import Settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[TournamentDataService] = None
) -> FastAPI:
    """
    Create the API application.

    Args:
        settings: Settings used to build the service when none is given
        service: Pre-built service, mainly for tests

    Returns:
        FastAPI application
    """
    settings = settings or Settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        # Startup
        logger.info(f"Starting {settings.app_name}...")

        tournament_service = service or TournamentDataService.from_settings(settings)
        app.state.tournament_service = tournament_service
        await tournament_service.initialize()

        logger.info("Server started successfully")

        yield

        # Shutdown
        logger.info(f"Shutting down {settings.app_name}...")
        await tournament_service.close()
        logger.info("Server shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description="Aggregated poker tournament listings from multiple sources",
        version=__version__,
        lifespan=lifespan
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
        }

    app.include_router(tournaments_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
