"""
Doctor domain model.

Defines the Doctor dataclass and the weekly shift cap.
"""

from dataclasses import dataclass

from .errors import InvalidFieldError, InvalidIDError

MAX_NAME_LENGTH = 49
MAX_SHIFTS_PER_WEEK = 7


@dataclass
class Doctor:
    """
    Represents a doctor on staff.

    Attributes:
        doctor_id: Unique positive identifier.
        name: Doctor name (at most 49 characters).
        total_shifts: Shifts assigned this week, 0 to 7.
    """

    doctor_id: int
    name: str
    total_shifts: int = 0

    def __post_init__(self):
        if not isinstance(self.doctor_id, int) or self.doctor_id <= 0:
            raise InvalidIDError(f"Doctor ID must be a positive integer, got {self.doctor_id!r}")
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidFieldError("Doctor name must be a nonempty string")
        if len(self.name) > MAX_NAME_LENGTH:
            raise InvalidFieldError(f"Doctor name is longer than {MAX_NAME_LENGTH} characters")
        if not isinstance(self.total_shifts, int) or not 0 <= self.total_shifts <= MAX_SHIFTS_PER_WEEK:
            raise InvalidFieldError(
                f"total_shifts must be between 0 and {MAX_SHIFTS_PER_WEEK}, got {self.total_shifts!r}"
            )

    @property
    def at_capacity(self) -> bool:
        return self.total_shifts >= MAX_SHIFTS_PER_WEEK
