"""
Turn artifact tables back into a Hospital.

Rows are validated one at a time. A malformed row is discarded and reported on
the notepad instead of aborting the load, so a damaged file costs only the
records that are actually broken.
"""

import logging
import typing
from collections import Counter
from datetime import datetime
from decimal import Decimal, InvalidOperation

import pandas as pd
from stairval.notepad import Notepad

from .doctor import MAX_SHIFTS_PER_WEEK, Doctor
from .errors import DuplicateIDError, SlotTakenError
from .hospital import Hospital
from .loader import ArtifactTables
from .patient import TIMESTAMP_FORMAT, Patient
from .records import NowFn, system_clock
from .rooms import ROOM_CAPACITY
from .schedule import Day, Shift

logger = logging.getLogger(__name__)

# Sanity bound on rows per table; anything larger is treated as corrupt
MAX_RECORDS = 1000

PATIENT_KEY_COLUMNS = {"patient_id", "name", "age", "diagnosis", "room", "admitted_at", "discharged_at", "active"}
DOCTOR_KEY_COLUMNS = {"doctor_id", "name", "total_shifts"}
SCHEDULE_KEY_COLUMNS = {"day", "shift", "doctor_id"}


def _discard(notepad: Notepad, message: str) -> None:
    logger.warning(f"Discarded: {message}")
    notepad.add_error(message)


class RecordMapper:
    def __init__(self, now_fn: NowFn = system_clock):
        self._now = now_fn

    def apply_mapping(self, tables: ArtifactTables, notepad: Notepad) -> Hospital:
        """
        Process:
        1) patients
        2) doctors
        3) schedule cells (need doctors)
        4) reconcile doctor counters with the grid
        5) flag rooms over capacity
        """
        hospital = Hospital(self._now)
        self._map_patients_table(tables.patients, hospital, notepad)
        self._map_doctors_table(tables.doctors, hospital, notepad)
        self._map_schedule_table(tables.schedule, hospital, notepad)
        self._reconcile_shift_counters(hospital, notepad)
        self._check_room_capacity(hospital, notepad)
        return hospital

    # -------
    # Helpers
    # -------

    @staticmethod
    def _to_bool(value: typing.Any) -> bool:
        """
        Robust boolean parsing:
        - True for: 1, '1', 'true', 't', 'yes', 'y' (case-insensitive)
        - False for: 0, '0', 'false', 'f', 'no', 'n', '', None
        """
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        s = str(value).strip().lower()
        if s in {"1", "true", "t", "yes", "y"}:
            return True
        if s in {"0", "false", "f", "no", "n", ""}:
            return False
        raise ValueError(f"Cannot interpret {value!r} as a boolean")

    @staticmethod
    def _to_int(value: typing.Any) -> int:
        """Integers may arrive as '12', '12.0' or 12; anything else is rejected."""
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("missing integer value")
        text = str(value).strip()
        try:
            return int(text)
        except ValueError:
            pass
        # "12.0" style cells; Decimal keeps ids beyond float precision exact
        try:
            number = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"{value!r} is not a number") from None
        if not number.is_finite() or number != number.to_integral_value():
            raise ValueError(f"{value!r} is not a whole number")
        return int(number)

    @staticmethod
    def _to_optional_int(value: typing.Any) -> int | None:
        if value is None or pd.isna(value) or (isinstance(value, str) and not value.strip()):
            return None
        return RecordMapper._to_int(value)

    @staticmethod
    def _to_timestamp(value: typing.Any) -> datetime | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return datetime.strptime(str(value).strip(), TIMESTAMP_FORMAT)

    @staticmethod
    def _check_table(df: pd.DataFrame, name: str, required: set[str], notepad: Notepad) -> bool:
        missing = required - set(df.columns)
        if missing:
            _discard(notepad, f"Table {name!r}: missing required columns: {sorted(missing)}")
            return False
        if len(df) > MAX_RECORDS:
            _discard(notepad, f"Table {name!r}: invalid record count {len(df)} (limit {MAX_RECORDS})")
            return False
        return True

    # ----------
    # Row parsers
    # ----------

    @staticmethod
    def parse_patient_row(row: pd.Series, notepad: Notepad) -> Patient | None:
        """
        Parse a single patient row. Returns None (and records an error)
        if any field fails validation.
        """
        try:
            return Patient(
                patient_id=RecordMapper._to_int(row["patient_id"]),
                name=str(row["name"]).strip(),
                age=RecordMapper._to_int(row["age"]),
                diagnosis=str(row["diagnosis"]).strip(),
                room=RecordMapper._to_optional_int(row["room"]),
                admitted_at=RecordMapper._to_timestamp(row["admitted_at"]),
                discharged_at=RecordMapper._to_timestamp(row["discharged_at"]),
                active=RecordMapper._to_bool(row["active"]),
            )
        except (ValueError, TypeError) as e:
            _discard(notepad, f"Table 'patients', row {row.name}: {e}")
            return None

    @staticmethod
    def parse_doctor_row(row: pd.Series, notepad: Notepad) -> Doctor | None:
        try:
            return Doctor(
                doctor_id=RecordMapper._to_int(row["doctor_id"]),
                name=str(row["name"]).strip(),
                total_shifts=RecordMapper._to_int(row["total_shifts"]),
            )
        except (ValueError, TypeError) as e:
            _discard(notepad, f"Table 'doctors', row {row.name}: {e}")
            return None

    # -----------------
    # Table-level mappers
    # -----------------

    def _map_patients_table(self, df: pd.DataFrame | None, hospital: Hospital, notepad: Notepad) -> None:
        if df is None or not self._check_table(df, "patients", PATIENT_KEY_COLUMNS, notepad):
            return
        for _, row in df.iterrows():
            patient = self.parse_patient_row(row, notepad)
            if patient is None:
                continue
            try:
                hospital.records.put_patient(patient)
            except DuplicateIDError as e:
                _discard(notepad, f"Table 'patients', row {row.name}: {e}; later copy discarded")
                continue
            logger.debug(f"Loaded patient ID: {patient.patient_id}")
        logger.info(f"Successfully loaded {len(hospital.records.list_patients())} patients")

    def _map_doctors_table(self, df: pd.DataFrame | None, hospital: Hospital, notepad: Notepad) -> None:
        if df is None or not self._check_table(df, "doctors", DOCTOR_KEY_COLUMNS, notepad):
            return
        for _, row in df.iterrows():
            doctor = self.parse_doctor_row(row, notepad)
            if doctor is None:
                continue
            try:
                hospital.records.put_doctor(doctor)
            except DuplicateIDError as e:
                _discard(notepad, f"Table 'doctors', row {row.name}: {e}; later copy discarded")
                continue
            logger.debug(f"Loaded doctor ID: {doctor.doctor_id}")
        logger.info(f"Successfully loaded {len(hospital.records.list_doctors())} doctors")

    def _map_schedule_table(self, df: pd.DataFrame | None, hospital: Hospital, notepad: Notepad) -> None:
        """
        Schedule rows are (day, shift, doctor_id); an empty doctor_id marks an
        unassigned cell. Cells naming an unknown doctor, a taken slot, or a
        doctor already holding the weekly maximum are dropped.
        """
        if df is None or not self._check_table(df, "schedule", SCHEDULE_KEY_COLUMNS, notepad):
            return
        placed: Counter[int] = Counter()
        for _, row in df.iterrows():
            where = f"Table 'schedule', row {row.name}"
            try:
                doctor_id = self._to_optional_int(row["doctor_id"])
                if doctor_id is None:
                    continue
                day = Day.from_label(row["day"])
                shift = Shift.from_label(row["shift"])
            except (ValueError, TypeError) as e:
                _discard(notepad, f"{where}: {e}")
                continue
            if not hospital.records.has_doctor(doctor_id):
                _discard(notepad, f"{where}: cell refers to unknown doctor {doctor_id}; cell cleared")
                continue
            if placed[doctor_id] >= MAX_SHIFTS_PER_WEEK:
                _discard(notepad, f"{where}: doctor {doctor_id} exceeds {MAX_SHIFTS_PER_WEEK} shifts; cell cleared")
                continue
            try:
                hospital.schedule.place(day, shift, doctor_id)
            except SlotTakenError as e:
                _discard(notepad, f"{where}: {e}; duplicate cell discarded")
                continue
            placed[doctor_id] += 1

    @staticmethod
    def _reconcile_shift_counters(hospital: Hospital, notepad: Notepad) -> None:
        """Each doctor's counter must match the number of cells carrying their id."""
        counts = Counter(doctor_id for _, _, doctor_id in hospital.schedule.assignments())
        for doctor in hospital.records.list_doctors():
            actual = counts.get(doctor.doctor_id, 0)
            if doctor.total_shifts != actual:
                logger.warning(f"Doctor {doctor.doctor_id}: shift counter reset to {actual}")
                notepad.add_warning(
                    f"Doctor {doctor.doctor_id}: stored shift count {doctor.total_shifts} "
                    f"does not match schedule ({actual}); using {actual}"
                )
                doctor.total_shifts = actual

    @staticmethod
    def _check_room_capacity(hospital: Hospital, notepad: Notepad) -> None:
        for room, count in hospital.rooms.occupancy().items():
            if count > ROOM_CAPACITY:
                logger.warning(f"Room {room} over capacity with {count} active patients")
                notepad.add_warning(f"Room {room} holds {count} active patients (capacity {ROOM_CAPACITY})")

