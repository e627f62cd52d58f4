"""Live controller sessions and the integer handles that name them."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from ..drivers.arduino_driver import SerialLink

SLOT_BITS = 16
SLOT_MASK = (1 << SLOT_BITS) - 1
MAX_GENERATION = (1 << 31) - 1


@dataclass
class MicrowaveSession:
    """Owns the serial link to one keypad controller."""

    link: SerialLink
    port: str = ""
    baud_rate: int = 0
    opened_at: float = field(default_factory=time.monotonic)
    commands_sent: int = 0

    def is_open(self) -> bool:
        return self.link.is_open()

    def open_for_s(self, now: Optional[float] = None) -> float:
        return (time.monotonic() if now is None else now) - self.opened_at


@dataclass
class _Slot:
    generation: int = 0
    session: Optional[MicrowaveSession] = None


class SessionTable:
    """Generation-checked table of live sessions.

    A handle packs ``generation << SLOT_BITS | slot``. Every reuse of a slot bumps
    its generation, so a stale or forged handle never resolves to a
    session that reused the slot. Handle 0 is never issued.

    The lock guards slot bookkeeping only; commands on one session are not
    serialized here.
    """

    def __init__(self):
        self._slots: list[_Slot] = []
        self._free: list[int] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for s in self._slots if s.session is not None)

    def add(self, session: MicrowaveSession) -> int:
        with self._lock:
            if self._free:
                index = self._free.pop()
            else:
                if len(self._slots) > SLOT_MASK:
                    raise RuntimeError("session table is full")
                index = len(self._slots)
                self._slots.append(_Slot())
            slot = self._slots[index]
            slot.generation = slot.generation % MAX_GENERATION + 1
            slot.session = session
            return (slot.generation << SLOT_BITS) | index

    def _resolve(self, handle) -> Optional[_Slot]:
        if not isinstance(handle, int) or isinstance(handle, bool) or handle <= 0:
            return None
        index = handle & SLOT_MASK
        generation = handle >> SLOT_BITS
        if index >= len(self._slots):
            return None
        slot = self._slots[index]
        if slot.session is None or slot.generation != generation:
            return None
        return slot

    def get(self, handle) -> Optional[MicrowaveSession]:
        with self._lock:
            slot = self._resolve(handle)
            return slot.session if slot else None

    def remove(self, handle) -> Optional[MicrowaveSession]:
        with self._lock:
            slot = self._resolve(handle)
            if slot is None:
                return None
            session = slot.session
            slot.session = None
            self._free.append(handle & SLOT_MASK)
            return session
