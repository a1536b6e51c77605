"""
Room allocation rule: at most two active patients share a room number.
"""

from collections import Counter
from typing import Iterable, Protocol

from .patient import Patient

ROOM_CAPACITY = 2


class PatientSource(Protocol):
    def list_patients(self) -> Iterable[Patient]:
        ...


class RoomAllocator:
    """Read-only view over a patient collection answering room availability."""

    def __init__(self, source: PatientSource):
        self._source = source

    def occupants(self, room: int) -> int:
        return sum(1 for p in self._source.list_patients() if p.active and p.room == room)

    def is_room_available(self, room: int) -> bool:
        if not isinstance(room, int) or room <= 0:
            return False
        return self.occupants(room) < ROOM_CAPACITY

    def occupancy(self) -> dict[int, int]:
        """Active occupant count per room, rooms in ascending order."""
        counts = Counter(p.room for p in self._source.list_patients() if p.active)
        return dict(sorted(counts.items()))
