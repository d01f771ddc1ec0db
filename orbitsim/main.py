"""FastAPI application for the orbit simulator."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orbitsim.api.routes import mission
from orbitsim.config import Config, get_config


def configure_logging(config: Config) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=config.logging.level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app = FastAPI(
    title="Orbit Simulator",
    description="SGP4 propagation with impulsive maneuvers and event detection",
    version="0.1.0",
)

# CORS configuration for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],  # Vite dev server
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(mission.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Orbit Simulator",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    configure_logging(get_config())
    uvicorn.run(app, host="0.0.0.0", port=8000)
