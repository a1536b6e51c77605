from datetime import datetime, timedelta

import pytest

from HMS.hospital import Hospital
from HMS.storage import Storage


class StepClock:
    """Deterministic clock: each call returns a time one minute after the last."""

    def __init__(self, start: datetime = datetime(2025, 4, 1, 9, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(minutes=1)
        return value


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def hospital(clock) -> Hospital:
    return Hospital(clock)


@pytest.fixture
def storage(tmp_path, clock) -> Storage:
    """
    Storage rooted in a throwaway folder: `tmp_path/data` and `tmp_path/backups`.
    """
    return Storage(tmp_path / "data", tmp_path / "backups", now_fn=clock)


@pytest.fixture
def populated(hospital) -> Hospital:
    hospital.add_patient(1, "Jane Doe", 40, "Flu", 101)
    hospital.add_patient(2, "John Roe", 61, "Fracture", 101)
    hospital.add_patient(3, "Ann Poe", 7, "", 102)
    hospital.discharge_patient(3)
    hospital.add_doctor(7, "Dr. Lee")
    hospital.add_doctor(8, "Dr. Kim")
    hospital.assign_shift(7, 1, 1)
    hospital.assign_shift(7, 3, 2)
    hospital.assign_shift(8, 7, 3)
    return hospital
