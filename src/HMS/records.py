"""
In-memory record store for patients and doctors.

Records live in insertion-ordered lists with an identifier→position map beside
each list, so iteration follows admission order and lookups stay O(1).
Nothing here touches the filesystem; persisting after a mutation is the
caller's job (see HMS.hospital).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from .doctor import Doctor
from .errors import (
    DuplicateIDError,
    InvalidAgeError,
    InvalidIDError,
    InvalidRoomError,
    PatientNotFoundError,
    RoomUnavailableError,
    AlreadyDischargedError,
    UnknownDoctorError,
)
from .patient import MAX_AGE, MIN_AGE, Patient
from .rooms import RoomAllocator

logger = logging.getLogger(__name__)

NowFn = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now()


class RecordStore:
    def __init__(self, now_fn: NowFn = system_clock):
        self._now = now_fn
        self._patients: list[Patient] = []
        self._patient_index: dict[int, int] = {}
        self._doctors: list[Doctor] = []
        self._doctor_index: dict[int, int] = {}
        self.rooms = RoomAllocator(self)

    # -------
    # Patients
    # -------

    def add_patient(self, patient_id: int, name: str, age: int, diagnosis: str, room: int) -> Patient:
        """
        Admit a new patient.

        Checks run in this order: id positive, id unused, age in range,
        room positive, room has a free bed. The patient's name and diagnosis
        are validated by the Patient dataclass itself.
        """
        if patient_id <= 0:
            raise InvalidIDError(f"Patient ID must be a positive number, got {patient_id}")
        if patient_id in self._patient_index:
            raise DuplicateIDError(f"Patient ID {patient_id} already exists")
        if not MIN_AGE <= age <= MAX_AGE:
            raise InvalidAgeError(f"Age must be between {MIN_AGE} and {MAX_AGE}, got {age}")
        if room <= 0:
            raise InvalidRoomError(f"Room number must be a positive number, got {room}")
        if not self.rooms.is_room_available(room):
            raise RoomUnavailableError(f"Room {room} is full")

        patient = Patient(
            patient_id=patient_id,
            name=name.strip(),
            age=age,
            diagnosis=diagnosis.strip(),
            room=room,
            admitted_at=self.now(),
        )
        self.put_patient(patient)
        logger.info(f"Admitted patient {patient_id} to room {room}")
        return patient

    def put_patient(self, patient: Patient) -> None:
        """Append an already-built record, e.g. one read back from disk."""
        if patient.patient_id in self._patient_index:
            raise DuplicateIDError(f"Patient ID {patient.patient_id} already exists")
        self._patient_index[patient.patient_id] = len(self._patients)
        self._patients.append(patient)

    def find_patient(self, patient_id: int) -> Patient:
        try:
            return self._patients[self._patient_index[patient_id]]
        except KeyError:
            raise PatientNotFoundError(f"Patient {patient_id} not found") from None

    def discharge_patient(self, patient_id: int) -> Patient:
        patient = self.find_patient(patient_id)
        if not patient.active:
            raise AlreadyDischargedError(f"Patient {patient_id} has already been discharged")
        freed = patient.room
        patient.discharge(self.now())
        logger.info(f"Discharged patient {patient_id}, room {freed} freed")
        return patient

    def list_patients(self) -> list[Patient]:
        return list(self._patients)

    def active_patients(self) -> list[Patient]:
        return [p for p in self._patients if p.active]

    # -------
    # Doctors
    # -------

    def add_doctor(self, doctor_id: int, name: str) -> Doctor:
        if doctor_id <= 0:
            raise InvalidIDError(f"Doctor ID must be a positive number, got {doctor_id}")
        if doctor_id in self._doctor_index:
            raise DuplicateIDError(f"Doctor ID {doctor_id} already exists")
        doctor = Doctor(doctor_id=doctor_id, name=name.strip())
        self.put_doctor(doctor)
        logger.info(f"Added doctor {doctor_id}")
        return doctor

    def put_doctor(self, doctor: Doctor) -> None:
        if doctor.doctor_id in self._doctor_index:
            raise DuplicateIDError(f"Doctor ID {doctor.doctor_id} already exists")
        self._doctor_index[doctor.doctor_id] = len(self._doctors)
        self._doctors.append(doctor)

    def find_doctor(self, doctor_id: int) -> Doctor:
        try:
            return self._doctors[self._doctor_index[doctor_id]]
        except KeyError:
            raise UnknownDoctorError(f"Doctor {doctor_id} not found") from None

    def has_doctor(self, doctor_id: int) -> bool:
        return doctor_id in self._doctor_index

    def remove_doctor(self, doctor_id: int) -> Doctor:
        """Drop a doctor record; remaining doctors keep their relative order."""
        doctor = self.find_doctor(doctor_id)
        del self._doctors[self._doctor_index[doctor_id]]
        self._doctor_index = {d.doctor_id: i for i, d in enumerate(self._doctors)}
        logger.info(f"Removed doctor {doctor_id}")
        return doctor

    def list_doctors(self) -> list[Doctor]:
        return list(self._doctors)

    def now(self) -> datetime:
        # persisted timestamps carry one-second resolution, whatever the clock
        return self._now().replace(microsecond=0)

