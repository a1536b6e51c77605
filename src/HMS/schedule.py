"""
Weekly shift grid.

Seven days by three shifts; each cell is either unassigned (None) or holds the
identifier of the doctor covering it. A cell is assigned at most once; there is
no public way to clear or reassign it. Each successful assignment also bumps the
doctor's weekly shift counter, so the counter always equals the number of cells
carrying that doctor's identifier.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Optional, Union

import pandas as pd

from .errors import (
    DayOutOfRangeError,
    DoctorAtCapacityError,
    ShiftOutOfRangeError,
    SlotTakenError,
)
from .records import RecordStore

logger = logging.getLogger(__name__)

DAYS_IN_WEEK = 7
SHIFTS_PER_DAY = 3

Cell = Optional[int]


class Day(IntEnum):
    """Days of the week, numbered 1 (Monday) to 7 (Sunday)."""
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

    @classmethod
    def from_label(cls, label: Union[int, str]) -> "Day":
        """
        Accept a 1-based number ("3", 3) or a day name / three letter
        abbreviation ("Wednesday", "wed").
        """
        text = str(label).strip().lower()
        if text.lstrip("-").isdigit():
            try:
                return cls(int(text))
            except ValueError:
                raise DayOutOfRangeError(f"The day must be between 1 and {DAYS_IN_WEEK}, got {label!r}") from None
        for day in cls:
            if text in (day.name.lower(), day.name.lower()[:3]):
                return day
        raise DayOutOfRangeError(f"Unknown day: {label!r}")

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Shift(IntEnum):
    """Daily time blocks, numbered 1 to 3."""
    MORNING = 1
    AFTERNOON = 2
    EVENING = 3

    @classmethod
    def from_label(cls, label: Union[int, str]) -> "Shift":
        text = str(label).strip().lower()
        if text.lstrip("-").isdigit():
            try:
                return cls(int(text))
            except ValueError:
                raise ShiftOutOfRangeError(
                    f"Invalid shift! Must be between 1 and {SHIFTS_PER_DAY}, got {label!r}"
                ) from None
        for shift in cls:
            if text == shift.name.lower():
                return shift
        raise ShiftOutOfRangeError(f"Unknown shift: {label!r}")

    @property
    def label(self) -> str:
        return self.name.capitalize()


class ScheduleGrid:
    def __init__(self, records: RecordStore):
        self._records = records
        self._cells: list[list[Cell]] = [[None] * SHIFTS_PER_DAY for _ in range(DAYS_IN_WEEK)]

    def assign_shift(self, doctor_id: int, day: Union[int, str, Day], shift: Union[int, str, Shift]) -> None:
        """
        Put a doctor on one (day, shift) slot.

        Every check runs before anything is written, so a failed call leaves
        both the grid and the doctor's counter untouched.
        """
        doctor = self._records.find_doctor(doctor_id)
        if doctor.at_capacity:
            raise DoctorAtCapacityError(
                f"Doctor {doctor_id} has reached the maximum number of shifts this week"
            )
        day = day if isinstance(day, Day) else Day.from_label(day)
        shift = shift if isinstance(shift, Shift) else Shift.from_label(shift)

        current = self._cells[day - 1][shift - 1]
        if current is not None:
            raise SlotTakenError(f"{day.label} {shift.label.lower()} is already assigned to doctor {current}")

        self._cells[day - 1][shift - 1] = doctor_id
        doctor.total_shifts += 1
        logger.info(f"Assigned doctor {doctor_id} to {day.label} {shift.label.lower()}")

    def place(self, day: Day, shift: Shift, doctor_id: int) -> None:
        """Fill a cell without touching counters; used when hydrating from disk."""
        if self._cells[day - 1][shift - 1] is not None:
            raise SlotTakenError(f"{day.label} {shift.label.lower()} is already assigned")
        self._cells[day - 1][shift - 1] = doctor_id

    def cell(self, day: Union[int, str, Day], shift: Union[int, str, Shift]) -> Cell:
        day = day if isinstance(day, Day) else Day.from_label(day)
        shift = shift if isinstance(shift, Shift) else Shift.from_label(shift)
        return self._cells[day - 1][shift - 1]

    def schedule(self) -> tuple[tuple[Cell, ...], ...]:
        """Read-only 7x3 snapshot, indexed [day - 1][shift - 1]."""
        return tuple(tuple(row) for row in self._cells)

    def assignments(self) -> list[tuple[Day, Shift, int]]:
        return [
            (Day(d + 1), Shift(s + 1), doctor_id)
            for d, row in enumerate(self._cells)
            for s, doctor_id in enumerate(row)
            if doctor_id is not None
        ]

    def shifts_for(self, doctor_id: int) -> list[tuple[Day, Shift]]:
        return [(day, shift) for day, shift, d in self.assignments() if d == doctor_id]

    def as_frame(self) -> pd.DataFrame:
        """Days as rows, shifts as columns, doctor ids (or None) as values."""
        return pd.DataFrame(
            [list(row) for row in self._cells],
            index=[d.label for d in Day],
            columns=[s.label for s in Shift],
            dtype=object,
        )
