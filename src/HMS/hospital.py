"""
Top-level application context: one record store and one shift grid.

The CLI builds a Hospital from Storage.load(), calls operations on it and
saves it again. Mutating operations fire the registered change hooks after
they succeed, which is where auto-save is attached.
"""

from __future__ import annotations

from typing import Callable

from .doctor import Doctor
from .errors import DoctorHasShiftsError
from .patient import Patient
from .records import NowFn, RecordStore, system_clock
from .schedule import ScheduleGrid

ChangeHook = Callable[["Hospital"], None]


class Hospital:
    def __init__(self, now_fn: NowFn = system_clock):
        self.records = RecordStore(now_fn)
        self.rooms = self.records.rooms
        self.schedule = ScheduleGrid(self.records)
        self._hooks: list[ChangeHook] = []

    def on_change(self, hook: ChangeHook) -> None:
        self._hooks.append(hook)

    def _changed(self) -> None:
        for hook in self._hooks:
            hook(self)

    def add_patient(self, patient_id: int, name: str, age: int, diagnosis: str, room: int) -> Patient:
        patient = self.records.add_patient(patient_id, name, age, diagnosis, room)
        self._changed()
        return patient

    def discharge_patient(self, patient_id: int) -> Patient:
        patient = self.records.discharge_patient(patient_id)
        self._changed()
        return patient

    def add_doctor(self, doctor_id: int, name: str) -> Doctor:
        doctor = self.records.add_doctor(doctor_id, name)
        self._changed()
        return doctor

    def remove_doctor(self, doctor_id: int) -> Doctor:
        self.records.find_doctor(doctor_id)
        held = self.schedule.shifts_for(doctor_id)
        if held:
            raise DoctorHasShiftsError(
                f"Doctor {doctor_id} still covers {len(held)} shift(s) and cannot be removed"
            )
        doctor = self.records.remove_doctor(doctor_id)
        self._changed()
        return doctor

    def assign_shift(self, doctor_id: int, day, shift) -> None:
        self.schedule.assign_shift(doctor_id, day, shift)
        self._changed()

    # read-only passthroughs
    def find_patient(self, patient_id: int) -> Patient:
        return self.records.find_patient(patient_id)

    def find_doctor(self, doctor_id: int) -> Doctor:
        return self.records.find_doctor(doctor_id)

    def list_patients(self) -> list[Patient]:
        return self.records.list_patients()

    def list_doctors(self) -> list[Doctor]:
        return self.records.list_doctors()

    def is_room_available(self, room: int) -> bool:
        return self.rooms.is_room_available(room)
