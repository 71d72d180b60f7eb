"""System status routes."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..control_service import ControlService
from .routes_control import get_control_service

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/status")
async def system_status(service: ControlService = Depends(get_control_service)) -> Dict[str, Any]:
    """Report whether the device polled within the liveness window."""
    return service.system_status()
