"""
Flat-file persistence for a Hospital.

Layout
------
<data_dir>/patients.csv     live artifacts, fully rewritten on every save
<data_dir>/doctors.csv
<data_dir>/schedule.csv
<backup_dir>/<YYYY-MM-DD_HH-MM-SS>/{patients,doctors,schedule}.csv
                            one directory per snapshot; a "-N" suffix is
                            appended when two snapshots share a second

Saving, backing up and restoring raise StorageError on filesystem failures.
Loading never raises: missing or damaged artifacts degrade to empty records,
and every discarded row is reported on the notepad passed in.
"""

from __future__ import annotations

import logging
import pathlib
import re
import shutil
from datetime import datetime
from typing import Callable, Iterable, Optional

import pandas as pd
from stairval.notepad import Notepad, create_notepad

from .errors import BackupNotFoundError, StorageError
from .hospital import Hospital
from .loader import ARTIFACTS, load_tables
from .mapper import RecordMapper
from .patient import TIMESTAMP_FORMAT
from .records import NowFn, system_clock
from .schedule import Day, Shift

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT = "%Y-%m-%d_%H-%M-%S"

DirLister = Callable[[pathlib.Path], Iterable[pathlib.Path]]

_SNAPSHOT_NAME = re.compile(r"^(\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2})(?:-(\d+))?$")


def _snapshot_order(name: str) -> tuple[str, int]:
    """Sort key: timestamp first, then the numeric collision suffix."""
    match = _SNAPSHOT_NAME.match(name)
    if match is None:
        return name, 0
    return match.group(1), int(match.group(2) or 0)


def list_directory(path: pathlib.Path) -> list[pathlib.Path]:
    if not path.is_dir():
        return []
    return list(path.iterdir())


def _format_time(value: Optional[datetime]) -> str:
    return value.strftime(TIMESTAMP_FORMAT) if value is not None else ""


def patients_frame(hospital: Hospital) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "patient_id": p.patient_id,
                "name": p.name,
                "age": p.age,
                "diagnosis": p.diagnosis,
                "room": "" if p.room is None else p.room,
                "admitted_at": _format_time(p.admitted_at),
                "discharged_at": _format_time(p.discharged_at),
                "active": p.active,
            }
            for p in hospital.list_patients()
        ],
        columns=["patient_id", "name", "age", "diagnosis", "room", "admitted_at", "discharged_at", "active"],
    )


def doctors_frame(hospital: Hospital) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"doctor_id": d.doctor_id, "name": d.name, "total_shifts": d.total_shifts}
            for d in hospital.list_doctors()
        ],
        columns=["doctor_id", "name", "total_shifts"],
    )


def schedule_frame(hospital: Hospital) -> pd.DataFrame:
    """All 21 cells in long form; unassigned cells carry an empty doctor_id."""
    grid = hospital.schedule.schedule()
    return pd.DataFrame(
        [
            {
                "day": day.label,
                "shift": shift.label,
                "doctor_id": "" if grid[day - 1][shift - 1] is None else grid[day - 1][shift - 1],
            }
            for day in Day
            for shift in Shift
        ],
        columns=["day", "shift", "doctor_id"],
    )


class Storage:
    def __init__(
        self,
        data_dir: pathlib.Path,
        backup_dir: pathlib.Path,
        *,
        now_fn: NowFn = system_clock,
        lister: DirLister = list_directory,
        auto_backup: bool = False,
    ):
        self.data_dir = pathlib.Path(data_dir)
        self.backup_dir = pathlib.Path(backup_dir)
        self._now = now_fn
        self._lister = lister
        self.auto_backup = auto_backup

    # ----
    # Save
    # ----

    def _write_artifacts(self, hospital: Hospital, directory: pathlib.Path) -> None:
        frames = {
            "patients": patients_frame(hospital),
            "doctors": doctors_frame(hospital),
            "schedule": schedule_frame(hospital),
        }
        try:
            directory.mkdir(parents=True, exist_ok=True)
            for kind, frame in frames.items():
                frame.to_csv(directory / ARTIFACTS[kind], index=False)
        except OSError as e:
            logger.error(f"Unable to write artifacts to {directory}: {e}")
            raise StorageError(f"Unable to write data to {directory}: {e}") from e

    def save(self, hospital: Hospital) -> None:
        """Overwrite the live artifacts with the current in-memory state."""
        self._write_artifacts(hospital, self.data_dir)
        logger.info(
            f"Data saved to {self.data_dir} "
            f"({len(hospital.list_patients())} patients, {len(hospital.list_doctors())} doctors)"
        )
        if self.auto_backup:
            self.backup(hospital)

    # ----
    # Load
    # ----

    def load(self, notepad: Optional[Notepad] = None) -> Hospital:
        """
        Hydrate a Hospital from the live artifacts.
        Problems are recorded on `notepad` (a fresh one when omitted).
        """
        notepad = notepad if notepad is not None else create_notepad("load")
        tables = load_tables(self.data_dir, notepad)
        hospital = RecordMapper(self._now).apply_mapping(tables, notepad)
        if notepad.has_errors(include_subsections=True):
            logger.warning(f"Loaded {self.data_dir} with discarded records")
        return hospital

    # ------
    # Backup
    # ------

    def _snapshot_name(self, timestamp: datetime) -> str:
        base = timestamp.strftime(SNAPSHOT_FORMAT)
        name, n = base, 0
        while (self.backup_dir / name).exists():
            n += 1
            name = f"{base}-{n}"
        return name

    def backup(self, hospital: Hospital, timestamp: Optional[datetime] = None) -> str:
        """
        Write a snapshot of `hospital` under the backup directory and return
        its name. The live artifacts are not touched.
        """
        name = self._snapshot_name(timestamp or self._now())
        self._write_artifacts(hospital, self.backup_dir / name)
        logger.info(f"Data backed up to {self.backup_dir / name}")
        return name

    def list_backups(self) -> list[str]:
        """Snapshot names, newest first."""
        names = [
            path.name
            for path in self._lister(self.backup_dir)
            if (path / ARTIFACTS["patients"]).is_file()
        ]
        return sorted(names, key=_snapshot_order, reverse=True)

    # -------
    # Restore
    # -------

    def restore(self, name: str, notepad: Optional[Notepad] = None) -> Hospital:
        """
        Copy a snapshot over the live artifacts, then safe-load them.

        The patients artifact must be present in the snapshot; a missing
        doctors or schedule artifact is reported and the live copy is kept.
        """
        notepad = notepad if notepad is not None else create_notepad("restore")
        snapshot = self.backup_dir / name
        if pathlib.Path(name).name != name or not (snapshot / ARTIFACTS["patients"]).is_file():
            raise BackupNotFoundError(f"No backup named {name!r} in {self.backup_dir}")

        logger.info(f"Starting data restoration from backup: {name}")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            for kind, filename in ARTIFACTS.items():
                source = snapshot / filename
                if not source.is_file():
                    logger.warning(f"Cannot open {kind} backup file {source}")
                    notepad.add_warning(f"Backup {name!r} has no {kind} artifact; live copy kept")
                    continue
                shutil.copyfile(source, self.data_dir / filename)
        except OSError as e:
            logger.error(f"Restoration from {name} failed: {e}")
            raise StorageError(f"Unable to restore backup {name!r}: {e}") from e

        hospital = self.load(notepad)
        logger.info(f"Data restored successfully from backup: {name}")
        return hospital
