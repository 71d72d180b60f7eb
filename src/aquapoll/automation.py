"""Reactive automation rules evaluated on telemetry ingestion."""

from __future__ import annotations

import logging

from .command_queue import CommandQueue
from .constants import AUTO_PUMP_TEMPERATURE_THRESHOLD, CommandType
from .errors import ControlError
from .storage import BaseControlStore

logger = logging.getLogger(__name__)


class AutoPumpController:
    """Switch the pump on when the water temperature exceeds a threshold.

    The rule only acts on the off-to-on transition, so repeated hot readings
    while the pump is already running queue nothing. It never switches the
    pump back off.
    """

    def __init__(
        self,
        store: BaseControlStore,
        queue: CommandQueue,
        threshold: float = AUTO_PUMP_TEMPERATURE_THRESHOLD,
        enabled: bool = True,
    ) -> None:
        self._store = store
        self._queue = queue
        self.threshold = threshold
        self.enabled = enabled

    def evaluate(self, device_id: str, temperature: float) -> bool:
        """Apply the rule to a reading; return True if the pump was activated.

        Failures are logged and reported as False so the caller's ingestion
        is unaffected.
        """
        if not self.enabled or temperature <= self.threshold:
            return False

        try:
            state = self._store.read_device_state(device_id)
            if state.pump_active:
                return False

            logger.info(
                f"Temperature {temperature}°C > {self.threshold}°C on {device_id}. "
                "Auto-activating pump."
            )
            self._store.update_device_state(device_id, {"pump_active": True})
            self._queue.replace(device_id, CommandType.PUMP, True)
            return True
        except ControlError as exc:
            logger.error(f"Auto-pump check failed for {device_id}: {exc}")
            return False
        except Exception as exc:
            # Ingestion must succeed even if the rule itself is broken
            logger.error(f"Auto-pump check error for {device_id}: {exc}", exc_info=True)
            return False
