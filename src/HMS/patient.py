"""
Patient domain model.

Defines the Patient class for admitted (and historically discharged) patients.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .errors import InvalidAgeError, InvalidFieldError, InvalidIDError, InvalidRoomError

MAX_NAME_LENGTH = 49
MAX_DIAGNOSIS_LENGTH = 249
MIN_AGE = 0
MAX_AGE = 130

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class Patient:
    """
    Represents a single admission.

    Attributes:
        patient_id: Unique positive identifier, never reused after discharge.
        name: Patient name (at most 49 characters).
        age: Age in years, 0 to 130.
        diagnosis: Free text diagnosis (at most 249 characters, may be empty).
        room: Room number while active, None once discharged.
        admitted_at: Admission timestamp.
        discharged_at: Discharge timestamp, None while active.
        active: False once the patient has been discharged.
    """

    patient_id: int
    name: str
    age: int
    diagnosis: str
    room: Optional[int]
    admitted_at: datetime
    discharged_at: Optional[datetime] = None
    active: bool = True

    def __post_init__(self):
        # Validate identifier
        if not isinstance(self.patient_id, int) or self.patient_id <= 0:
            raise InvalidIDError(f"Patient ID must be a positive integer, got {self.patient_id!r}")

        # Validate name and diagnosis
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidFieldError("Patient name must be a nonempty string")
        if len(self.name) > MAX_NAME_LENGTH:
            raise InvalidFieldError(f"Patient name is longer than {MAX_NAME_LENGTH} characters")
        if not isinstance(self.diagnosis, str):
            raise InvalidFieldError("Diagnosis must be a string")
        if len(self.diagnosis) > MAX_DIAGNOSIS_LENGTH:
            raise InvalidFieldError(f"Diagnosis is longer than {MAX_DIAGNOSIS_LENGTH} characters")

        # Validate age
        if not isinstance(self.age, int) or not MIN_AGE <= self.age <= MAX_AGE:
            raise InvalidAgeError(f"Age must be between {MIN_AGE} and {MAX_AGE}, got {self.age!r}")

        # Validate lifecycle fields
        if not isinstance(self.admitted_at, datetime):
            raise InvalidFieldError(f"Invalid admission timestamp: {self.admitted_at!r}")
        if self.active:
            if not isinstance(self.room, int) or self.room <= 0:
                raise InvalidRoomError(f"Room number must be a positive integer, got {self.room!r}")
            if self.discharged_at is not None:
                raise InvalidFieldError("An active patient cannot have a discharge timestamp")
        else:
            if self.room is not None:
                raise InvalidRoomError("A discharged patient cannot hold a room")
            if not isinstance(self.discharged_at, datetime):
                raise InvalidFieldError(f"Invalid discharge timestamp: {self.discharged_at!r}")

    @property
    def status(self) -> str:
        return "Active" if self.active else "Discharged"

    def discharge(self, when: datetime) -> None:
        self.discharged_at = when
        self.active = False
        self.room = None
