"""
Notification channel - one error slot and one success slot.

Each slot holds at most one message and clears itself after a timeout.
Raising a message into a slot replaces the old one and restarts its timer.
"""

import logging
import threading
from enum import Enum
from typing import Dict, Optional

from .clock import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class NotificationKind(Enum):
    """Which slot a message goes into."""
    ERROR = "error"
    SUCCESS = "success"


class _Slot:
    """Message + expiry timer. The token identifies the current occupant."""

    def __init__(self):
        self.message: Optional[str] = None
        self.timer: Optional[TimerHandle] = None
        self.token = 0


class NotificationChannel:
    """Two independent auto-expiring message slots."""

    def __init__(self, scheduler: Scheduler, timeout: float = 5.0):
        self._scheduler = scheduler
        self._timeout = timeout
        self._lock = threading.Lock()
        self._slots: Dict[NotificationKind, _Slot] = {
            kind: _Slot() for kind in NotificationKind
        }

    def raise_(self, kind: NotificationKind, message: str) -> None:
        """Show `message` in the `kind` slot, replacing what was there."""
        with self._lock:
            slot = self._slots[kind]
            if slot.timer is not None:
                slot.timer.cancel()
            slot.token += 1
            slot.message = message
            token = slot.token
            slot.timer = self._scheduler.call_later(
                self._timeout, lambda: self._expire(kind, token)
            )
        log = logger.warning if kind is NotificationKind.ERROR else logger.info
        log(f"[{kind.value}] {message}")

    def error(self, message: str) -> None:
        self.raise_(NotificationKind.ERROR, message)

    def success(self, message: str) -> None:
        self.raise_(NotificationKind.SUCCESS, message)

    def clear(self) -> None:
        """Empty both slots and cancel their timers."""
        with self._lock:
            for slot in self._slots.values():
                if slot.timer is not None:
                    slot.timer.cancel()
                slot.timer = None
                slot.token += 1
                slot.message = None

    def _expire(self, kind: NotificationKind, token: int) -> None:
        with self._lock:
            slot = self._slots[kind]
            # A newer raise or a clear() owns the slot now
            if slot.token != token:
                return
            slot.message = None
            slot.timer = None

    @property
    def error_message(self) -> Optional[str]:
        with self._lock:
            return self._slots[NotificationKind.ERROR].message

    @property
    def success_message(self) -> Optional[str]:
        with self._lock:
            return self._slots[NotificationKind.SUCCESS].message

    def snapshot(self) -> Dict[str, Optional[str]]:
        with self._lock:
            return {
                kind.value: slot.message for kind, slot in self._slots.items()
            }
