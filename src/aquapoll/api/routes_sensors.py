"""Telemetry upload and retrieval routes."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from ..control_service import ControlService
from .routes_control import get_control_service

router = APIRouter(prefix="/api/sensors", tags=["sensors"])


class SensorUpload(BaseModel):
    """Telemetry sample sent by the device."""

    temperature: float = Field(allow_inf_nan=False)
    water_level: Optional[float] = Field(default=None, allow_inf_nan=False)

    model_config = ConfigDict(extra="ignore")


@router.post("/upload")
async def upload_reading(
    body: SensorUpload, service: ControlService = Depends(get_control_service)
) -> Dict[str, Any]:
    """Store a reading; may switch the pump on if the water is too warm."""
    return service.ingest_telemetry(body.temperature, body.water_level)


@router.get("/latest")
async def latest_reading(service: ControlService = Depends(get_control_service)) -> Dict[str, Any]:
    """Return the latest reading together with the device state."""
    return service.dashboard()


@router.get("/history")
async def reading_history(
    range: Optional[str] = None, service: ControlService = Depends(get_control_service)
) -> Dict[str, Any]:
    """Return readings for the last 24h, 7d or 30d (default 24h)."""
    return service.history(range)
