"""
AirKit API Endpoints

The accessory surface: lists accessories with their current values and
accepts remote writes to writable characteristics.
"""

from fastapi import APIRouter, HTTPException, Query
from loguru import logger
from pydantic import BaseModel

from airkit import __version__
from airkit.accessory import AccessoryManager
from airkit.control_loop import ControlLoop
from airkit.controls import Accessory
from airkit.exceptions import CharacteristicError
from airkit.history import history_tracker

router = APIRouter()

# Set by app.py during startup
control_loop: ControlLoop | None = None
bridge: Accessory | None = None
managers: list[AccessoryManager] = []


class CharacteristicWriteRequest(BaseModel):
    """Request body for a remote characteristic write."""
    value: float


def _all_accessories() -> list[Accessory]:
    accessories = [bridge] if bridge else []
    for manager in managers:
        accessories.extend(manager.accessories())
    return accessories


def _find_accessory(aid: int) -> Accessory:
    accessory = next((a for a in _all_accessories() if a.aid == aid), None)
    if not accessory:
        raise HTTPException(status_code=404, detail=f"Accessory not found: {aid}")
    return accessory


@router.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": "AirKit",
        "version": __version__,
        "running": control_loop is not None,
    }


@router.get("/api/status")
async def get_status():
    """Get the most recent snapshot of the MyPlace system."""
    if not control_loop or not control_loop.latest:
        raise HTTPException(status_code=503, detail="System state not read yet")

    return control_loop.latest.to_dict()


@router.get("/api/accessories")
async def get_accessories():
    """Get all accessories and their characteristic values."""
    return {"accessories": [a.to_dict() for a in _all_accessories()]}


@router.get("/api/accessories/{aid}")
async def get_accessory(aid: int):
    """Get a single accessory."""
    return _find_accessory(aid).to_dict()


@router.put("/api/accessories/{aid}/{service}/{characteristic}")
async def write_characteristic(
    aid: int, service: str, characteristic: str, request: CharacteristicWriteRequest
):
    """Deliver a remote write to a characteristic."""
    accessory = _find_accessory(aid)

    try:
        c = accessory.characteristic(service, characteristic)
    except KeyError:
        raise HTTPException(
            status_code=404,
            detail=f"Characteristic not found: {service}/{characteristic}",
        )

    try:
        c.remote_update(request.value)
    except CharacteristicError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.info(f"{accessory.info.name}: {service}/{characteristic} = {request.value}")
    return accessory.to_dict()


@router.get("/api/events")
async def get_events(limit: int = Query(50, ge=1, le=500)):
    """Get recent writes and poll failures."""
    return history_tracker.get_events(limit=limit)
