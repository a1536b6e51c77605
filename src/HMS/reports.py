"""
Reports over a Hospital, returned as pandas DataFrames.

Formatting is left to the caller: the CLI writes these to CSV or to an Excel
workbook.
"""

import pathlib
import re
from collections import Counter, namedtuple
from datetime import date

import pandas as pd

from .doctor import MAX_SHIFTS_PER_WEEK
from .errors import InvalidFieldError
from .hospital import Hospital
from .patient import TIMESTAMP_FORMAT
from .rooms import ROOM_CAPACITY
from .schedule import DAYS_IN_WEEK, SHIFTS_PER_DAY
from .storage import doctors_frame, patients_frame, schedule_frame

AuditEntry = namedtuple("AuditEntry", ["step", "subject", "message", "level"])

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

WEEKLY_SLOTS = DAYS_IN_WEEK * SHIFTS_PER_DAY


def patient_admission_report(hospital: Hospital) -> pd.DataFrame:
    """Every patient ever admitted, in admission order, with status."""
    return pd.DataFrame(
        [
            {
                "patient_id": p.patient_id,
                "name": p.name,
                "age": p.age,
                "diagnosis": p.diagnosis,
                "room": p.room,
                "admitted_at": p.admitted_at.strftime(TIMESTAMP_FORMAT),
                "status": p.status,
            }
            for p in hospital.list_patients()
        ],
        columns=["patient_id", "name", "age", "diagnosis", "room", "admitted_at", "status"],
    )


def parse_report_date(value: str) -> date:
    if not _DATE_PATTERN.match(value.strip()):
        raise InvalidFieldError(f"Invalid date format {value!r}! Please use YYYY-MM-DD format.")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise InvalidFieldError(f"Invalid date {value!r}: {e}") from e


def patient_discharge_report(hospital: Hospital, on: date) -> pd.DataFrame:
    """Patients whose discharge falls on the calendar day `on`."""
    return pd.DataFrame(
        [
            {
                "patient_id": p.patient_id,
                "name": p.name,
                "age": p.age,
                "diagnosis": p.diagnosis,
                "admitted_at": p.admitted_at.strftime(TIMESTAMP_FORMAT),
                "discharged_at": p.discharged_at.strftime(TIMESTAMP_FORMAT),
            }
            for p in hospital.list_patients()
            if not p.active and p.discharged_at.date() == on
        ],
        columns=["patient_id", "name", "age", "diagnosis", "admitted_at", "discharged_at"],
    )


def doctor_utilization_report(hospital: Hospital) -> pd.DataFrame:
    """Shifts per doctor and their share of the 21 weekly slots."""
    df = pd.DataFrame(
        [(d.doctor_id, d.name, d.total_shifts) for d in hospital.list_doctors()],
        columns=["doctor_id", "name", "total_shifts"],
    ).astype({"total_shifts": int})
    df["utilization_pct"] = (df["total_shifts"] / WEEKLY_SLOTS * 100).round(2)
    return df


def room_utilization_report(hospital: Hospital) -> pd.DataFrame:
    """Active occupants per room and occupancy against the two-bed capacity."""
    df = pd.DataFrame(
        list(hospital.rooms.occupancy().items()),
        columns=["room", "patients"],
    ).astype({"patients": int})
    df["occupancy_pct"] = (df["patients"] / ROOM_CAPACITY * 100).round(2)
    return df


REPORTS = {
    "admissions": patient_admission_report,
    "doctors": doctor_utilization_report,
    "rooms": room_utilization_report,
}


def audit(hospital: Hospital) -> list[AuditEntry]:
    """
    Run consistency checks over in-memory state:
      - record counts
      - doctor shift counters vs. schedule cells
      - schedule cells pointing at unknown doctors
      - rooms above capacity
    """
    entries: list[AuditEntry] = []

    # Step 1: counts
    patients = hospital.list_patients()
    active = sum(1 for p in patients if p.active)
    entries.append(AuditEntry("count-records", "patients", f"{len(patients)} total, {active} active", "info"))
    entries.append(AuditEntry("count-records", "doctors", f"{len(hospital.list_doctors())} total", "info"))

    # Step 2: counters
    cells = Counter(doctor_id for _, _, doctor_id in hospital.schedule.assignments())
    for doctor in hospital.list_doctors():
        held = cells.get(doctor.doctor_id, 0)
        if held != doctor.total_shifts:
            entries.append(AuditEntry(
                step="shift-counter",
                subject=f"doctor {doctor.doctor_id}",
                message=f"counter {doctor.total_shifts} but {held} cells assigned",
                level="error",
            ))
        elif held == MAX_SHIFTS_PER_WEEK:
            entries.append(AuditEntry("shift-counter", f"doctor {doctor.doctor_id}", "at weekly capacity", "warn"))

    # Step 3: dangling cells
    for day, shift, doctor_id in hospital.schedule.assignments():
        if not hospital.records.has_doctor(doctor_id):
            entries.append(AuditEntry(
                step="schedule-cell",
                subject=f"{day.label} {shift.label}",
                message=f"refers to unknown doctor {doctor_id}",
                level="error",
            ))

    # Step 4: rooms
    for room, count in hospital.rooms.occupancy().items():
        if count > ROOM_CAPACITY:
            entries.append(AuditEntry("room-capacity", f"room {room}", f"{count} active occupants", "error"))
        elif count == ROOM_CAPACITY:
            entries.append(AuditEntry("room-capacity", f"room {room}", "full", "info"))

    return entries


def export_workbook(hospital: Hospital, path: pathlib.Path) -> pathlib.Path:
    """Write records, schedule and reports to one workbook, one sheet each."""
    sheets = {
        "patients": patients_frame(hospital),
        "doctors": doctors_frame(hospital),
        "schedule": schedule_frame(hospital),
        "admissions": patient_admission_report(hospital),
        "doctor_utilization": doctor_utilization_report(hospital),
        "room_utilization": room_utilization_report(hospital),
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for name, df in sheets.items():
            df.to_excel(writer, sheet_name=name, index=False)
    return path
