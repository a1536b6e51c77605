import logging
import pathlib
from dataclasses import dataclass

import pandas as pd
from stairval.notepad import Notepad

logger = logging.getLogger(__name__)

# Artifact kind → file name inside a data or snapshot directory
ARTIFACTS = {
    "patients": "patients.csv",
    "doctors": "doctors.csv",
    "schedule": "schedule.csv",
}

# Columns that need renaming → target record fields
RENAME_MAP = {
    # patient columns
    "patientid": "patient_id",
    "patient_name": "name",
    "patient_age": "age",
    "room_number": "room",
    "roomnum": "room",
    "admission_date": "admitted_at",
    "discharge_date": "discharged_at",
    "is_active": "active",
    "isactive": "active",
    # doctor columns
    "doctorid": "doctor_id",
    "doctor_name": "name",
    "totalshifts": "total_shifts",
    # schedule columns
    "day_in_week": "day",
    "shift_in_day": "shift",
}


@dataclass
class ArtifactTables:
    """
    Raw tables read from one directory.
    Any field can be `None`, meaning the artifact is missing or unreadable.
    """
    patients: pd.DataFrame | None
    doctors: pd.DataFrame | None
    schedule: pd.DataFrame | None


def normalize_headers(df: pd.DataFrame) -> pd.DataFrame:
    """
    - normalize all headers to snake_case lowercase
    - apply renames from RENAME_MAP
    """
    df.columns = (
        df.columns.str.strip()
        .str.replace(r"\s*\(.*?\)", "", regex=True)  # drop any "(…)"
        .str.replace(r"\s+", "_", regex=True)  # spaces → underscore
        .str.replace(":", "", regex=False)  # drop colons
        .str.lower()
    )
    return df.rename(
        columns={
            orig: target
            for orig, target in RENAME_MAP.items()
            if orig in df.columns
        }
    )


def read_table(path: pathlib.Path, notepad: Notepad) -> pd.DataFrame | None:
    """
    Read one CSV artifact with every cell as a string.
    A missing file is normal on first run; an unreadable one is recorded
    as an error. Both return None instead of raising.
    """
    if not path.is_file():
        logger.info(f"No existing data found at {path}. Starting with empty records.")
        return None
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as e:
        logger.error(f"Failed to read '{path}': {e}")
        notepad.add_error(f"Unreadable artifact {path.name}: {e}")
        return None
    return normalize_headers(df)


def load_tables(directory: pathlib.Path, notepad: Notepad) -> ArtifactTables:
    tables = {
        kind: read_table(directory / name, notepad)
        for kind, name in ARTIFACTS.items()
    }
    logger.debug(f"Loaded artifacts from {directory}: {[k for k, v in tables.items() if v is not None]}")
    return ArtifactTables(**tables)
