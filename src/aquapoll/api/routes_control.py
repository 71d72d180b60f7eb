"""Control routes used by the operator UI and polled by the device.

Operator writes update device state and queue a command; the device drains
the queue one command per ``GET /api/control/latest`` call.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from ..control_service import ControlService
from .auth import require_admin

router = APIRouter(prefix="/api/control", tags=["control"])


def get_control_service(request: Request) -> ControlService:
    """Return the ControlService stored on the app state."""
    return request.app.state.service


class PumpRequest(BaseModel):
    """Request model for switching the pump."""

    state: bool

    model_config = ConfigDict(extra="ignore")


class BrightnessRequest(BaseModel):
    """Request model for setting light brightness."""

    value: int = Field(ge=0, le=100, description="Brightness in percent")

    model_config = ConfigDict(extra="ignore")


class FeedingSettingsRequest(BaseModel):
    """Request model for changing feeding settings; both fields optional."""

    interval: Optional[str] = Field(
        None, min_length=1, description="Feeding interval, e.g. '4h', '90m', '30s'"
    )
    quantity: Optional[int] = Field(None, ge=1, description="Portions per feeding")

    model_config = ConfigDict(extra="ignore")


@router.get("/latest")
async def latest_command(
    service: ControlService = Depends(get_control_service),
) -> Dict[str, Any]:
    """Device poll: record a heartbeat and return at most one pending command."""
    return service.poll()


@router.post("/pump", dependencies=[Depends(require_admin)])
async def set_pump(
    body: PumpRequest, service: ControlService = Depends(get_control_service)
) -> Dict[str, Any]:
    """Switch the pump on or off."""
    return service.set_pump(body.state)


@router.post("/brightness", dependencies=[Depends(require_admin)])
async def set_brightness(
    body: BrightnessRequest, service: ControlService = Depends(get_control_service)
) -> Dict[str, Any]:
    """Set the light brightness."""
    return service.set_brightness(body.value)


@router.post("/feed", dependencies=[Depends(require_admin)])
async def feed_now(service: ControlService = Depends(get_control_service)) -> Dict[str, Any]:
    """Dispense food now and restart the feeding schedule."""
    return service.feed_now()


@router.post("/feeding-settings", dependencies=[Depends(require_admin)])
async def update_feeding_settings(
    body: FeedingSettingsRequest, service: ControlService = Depends(get_control_service)
) -> Dict[str, Any]:
    """Change feeding interval and/or quantity."""
    return service.update_feeding_settings(interval=body.interval, quantity=body.quantity)


@router.post("/confirm-feed")
async def confirm_feed(service: ControlService = Depends(get_control_service)) -> Dict[str, Any]:
    """Device report that it dispensed food on its own schedule."""
    return service.confirm_feed()
