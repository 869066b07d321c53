"""
AirKit Backend Application

FastAPI application hosting the accessory API and the control loop.
"""

import os
from contextlib import asynccontextmanager

import log_config  # noqa: F401
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

import api
from api import router as api_router

from airkit import __version__
from airkit.bridge import create_managers, new_bridge
from airkit.control_loop import ControlLoop, read_initial_state
from airkit.myplace_client import MyPlaceClient
from airkit.settings import load_settings
from airkit.store import ControlStore

CONFIG_PATH = os.path.join(os.path.dirname(__file__), "..", "config.yaml")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan manager for startup/shutdown."""
    # Startup
    logger.info(f"AirKit v{__version__} starting")

    settings = load_settings(CONFIG_PATH)
    client = MyPlaceClient(
        settings.api_host, settings.api_port, timeout=settings.request_timeout
    )
    logger.info(f"Using MyPlace touch panel at {client.base_url}")

    system = await read_initial_state(client, read_timeout=settings.read_timeout)

    control_loop = ControlLoop(
        client,
        poll_interval=settings.poll_interval,
        debounce_window=settings.debounce_window,
        queue_size=settings.command_queue_size,
        read_timeout=settings.read_timeout,
    )
    control_loop.latest = system

    store = ControlStore(settings.db_path)
    control_loop.managers = create_managers(system, store, control_loop.submit, settings)

    # Make the accessories available to the API
    api.control_loop = control_loop
    api.bridge = new_bridge(__version__, system)
    api.managers = control_loop.managers

    await control_loop.start()

    yield

    # Shutdown
    logger.info("AirKit shutting down")
    await control_loop.stop()


# Create FastAPI application
app = FastAPI(
    title="AirKit API",
    description="Accessory bridge for MyPlace ducted air-conditioning",
    version=__version__,
    lifespan=lifespan,
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Handle all unhandled exceptions gracefully."""
    logger.opt(exception=exc).error(f"Unhandled exception on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
            "message": "Internal server error",
        },
    )


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


# For development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
