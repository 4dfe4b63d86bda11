"""
Main FastAPI application entry point.
"""

import logging

import uvicorn
from fastapi import FastAPI

from pef_sim import __version__
from pef_sim.config import get_settings
from pef_sim.api import router as api_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Hurdle waterfall profit distribution across investment types",
    version=__version__,
    debug=settings.debug,
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": __version__}


def run():
    """Serve the app with uvicorn on the configured host and port."""
    uvicorn.run(
        "pef_sim.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
