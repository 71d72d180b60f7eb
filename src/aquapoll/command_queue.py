"""Command queue delivered to the aquarium controller by polling.

The queue behaves like one mailbox slot per command type: issuing a new
command supersedes any pending command of the same type, while delivery
across types stays ordered by creation time. Each poll receives at most one
command, and commands older than the staleness window are discarded.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from .constants import COMMAND_STALENESS_WINDOW, CommandType
from .storage import BaseControlStore, Command
from .utils.time import Clock, utcnow

logger = logging.getLogger(__name__)


class CommandQueue:
    """Enqueue, supersede and dequeue commands for a device."""

    def __init__(
        self,
        store: BaseControlStore,
        clock: Clock = utcnow,
        staleness_window: timedelta = COMMAND_STALENESS_WINDOW,
    ) -> None:
        self._store = store
        self._clock = clock
        self._staleness_window = staleness_window

    @property
    def staleness_window(self) -> timedelta:
        return self._staleness_window

    def enqueue(self, device_id: str, command_type: CommandType | str, value: Any) -> Command:
        """Append a new unprocessed command stamped with the current time.

        Raises:
            StorageUnavailableError: If the store cannot be written
            ValueError: If ``value`` does not fit ``command_type``
        """
        command = self._store.insert_command(device_id, command_type, value, self._clock())
        logger.info(f"Queued {command.type} command {command.id} for {device_id}")
        return command

    def supersede(self, device_id: str, command_type: CommandType | str) -> int:
        """Mark pending commands of a type processed without delivering them."""
        count = self._store.update_commands_by_type(device_id, command_type, self._clock())
        if count:
            logger.info(
                f"Superseded {count} pending {CommandType(command_type).value} "
                f"command(s) for {device_id}"
            )
        return count

    def replace(self, device_id: str, command_type: CommandType | str, value: Any) -> Command:
        """Supersede pending commands of a type, then enqueue the new one.

        The two steps are independent storage calls; a poll between them
        simply sees no pending command of this type.
        """
        self.supersede(device_id, command_type)
        return self.enqueue(device_id, command_type, value)

    def dequeue_oldest_valid(self, device_id: str) -> Command | None:
        """Claim the oldest unprocessed command and return it if still fresh.

        The claim marks the command processed in one atomic storage call.
        An expired command is consumed without being returned; the next call
        considers the next-oldest entry.
        """
        now = self._clock()
        command = self._store.claim_oldest_unprocessed_command(device_id, now)
        if command is None:
            return None

        age = now - command.created_at
        if age > self._staleness_window:
            logger.warning(
                f"Discarded expired {command.type} command {command.id} for {device_id} "
                f"(age {age.total_seconds():.0f}s)"
            )
            return None

        logger.info(f"Delivering {command.type} command {command.id} to {device_id}")
        return command

    def pending(self, device_id: str) -> list[Command]:
        """Return unprocessed commands in insertion order."""
        return self._store.list_commands(device_id, unprocessed_only=True)
