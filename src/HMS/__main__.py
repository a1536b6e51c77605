"""
Command-line interface for HMS.
Each command loads the live records, performs one operation, and (for
mutating commands) saves them straight back.
"""

import functools
import json
import logging
import pathlib
import sys
import typing
from datetime import datetime

import click
import pandas as pd
from stairval.notepad import create_notepad

from .config import Settings
from .errors import HospitalError
from .hospital import Hospital
from .reports import (
    REPORTS,
    audit,
    export_workbook,
    parse_report_date,
    patient_discharge_report,
)
from .schedule import Day, Shift
from .storage import Storage


@click.group()
@click.option("--data-dir", type=click.Path(file_okay=False), help="directory holding the live records (default: ./data or $HMS_DATA_DIR)")
@click.option("--backup-dir", type=click.Path(file_okay=False), help="directory holding snapshots (default: ./backups or $HMS_BACKUP_DIR)")
@click.option("--auto-backup/--no-auto-backup", default=None, help="also write a snapshot on every save")
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
@click.option("--log-file-path", type=click.Path(dir_okay=False, writable=True), help="Append timestamped logs to this file")
@click.pass_context
def main(
    ctx: click.Context,
    data_dir: typing.Optional[str],
    backup_dir: typing.Optional[str],
    auto_backup: typing.Optional[bool],
    verbose_logging: bool,
    log_file_path: typing.Optional[str],
):
    """HMS: patient admissions, doctor shifts and backups."""
    _configure_logging(verbose_logging, log_file_path)
    ctx.obj = Settings.from_env(data_dir, backup_dir, auto_backup)


def _configure_logging(verbose_logging: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
            force=True,
        )


def _handle_errors(command):
    # render domain errors as one line on stderr and exit non-zero
    @functools.wraps(command)
    def wrapper(*args, **kwargs):
        try:
            return command(*args, **kwargs)
        except HospitalError as e:
            logging.error(f"{type(e).__name__}: {e}")
            click.echo(click.style(f"Error: {e}", fg="red"), err=True)
            sys.exit(1)
    return wrapper


def _storage(settings: Settings) -> Storage:
    return Storage(settings.data_dir, settings.backup_dir, auto_backup=settings.auto_backup)


def _open(settings: Settings) -> tuple[Storage, Hospital]:
    """Load the live records and arrange for every mutation to be saved."""
    storage = _storage(settings)
    notepad = create_notepad("load")
    hospital = storage.load(notepad)
    _report_issues(notepad)
    hospital.on_change(storage.save)
    return storage, hospital


def _report_issues(notepad) -> None:
    # discarded records are errors, repaired state is a warning; neither stops the command
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found while loading records:", err=True)
        for err in notepad.errors():
            click.echo(f"- {err}", err=True)
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found while loading records:", err=True)
        for w in notepad.warnings():
            click.echo(f"- {w}", err=True)


def _prepare_output_dir(root: pathlib.Path) -> pathlib.Path:
    # use YYYY-MM-DD_HH-MM-SS for human-readable timestamps
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    output_dir = root / timestamp
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def _echo_frame(df: pd.DataFrame, empty_message: str) -> None:
    if df.empty:
        click.echo(empty_message)
    else:
        click.echo(df.to_string(index=False))


# --------
# Patients
# --------


@main.command(name="add-patient")
@click.option("-i", "--patient-id", required=True, type=int, help="positive patient ID")
@click.option("-n", "--name", required=True, help="patient name")
@click.option("-a", "--age", required=True, type=int, help="age in years (0-130)")
@click.option("-d", "--diagnosis", default="", help="diagnosis text")
@click.option("-r", "--room", required=True, type=int, help="room number to assign")
@click.pass_obj
@_handle_errors
def add_patient(settings: Settings, patient_id: int, name: str, age: int, diagnosis: str, room: int):
    """Admit a patient into a room with a free bed."""
    _, hospital = _open(settings)
    patient = hospital.add_patient(patient_id, name, age, diagnosis, room)
    click.echo(f"Patient record {patient.patient_id} added successfully!")


@main.command(name="list-patients")
@click.option("--all", "show_all", is_flag=True, help="include discharged patients")
@click.pass_obj
@_handle_errors
def list_patients(settings: Settings, show_all: bool):
    """Show active patients (or every patient with --all)."""
    _, hospital = _open(settings)
    rows = [
        {
            "ID": p.patient_id,
            "Name": p.name,
            "Age": p.age,
            "Diagnosis": p.diagnosis,
            "Room": p.room if p.room is not None else "-",
            "Admitted": p.admitted_at,
            "Status": p.status,
        }
        for p in hospital.list_patients()
        if show_all or p.active
    ]
    _echo_frame(pd.DataFrame(rows), "No patients in the system.")


@main.command(name="find-patient")
@click.argument("patient_id", type=int)
@click.pass_obj
@_handle_errors
def find_patient(settings: Settings, patient_id: int):
    """Show one patient's details."""
    _, hospital = _open(settings)
    p = hospital.find_patient(patient_id)
    click.echo(f"ID:         {p.patient_id}")
    click.echo(f"Name:       {p.name}")
    click.echo(f"Age:        {p.age}")
    click.echo(f"Diagnosis:  {p.diagnosis}")
    click.echo(f"Room:       {p.room if p.room is not None else '-'}")
    click.echo(f"Admitted:   {p.admitted_at}")
    if p.discharged_at is not None:
        click.echo(f"Discharged: {p.discharged_at}")
    click.echo(f"Status:     {p.status}")


@main.command(name="discharge")
@click.argument("patient_id", type=int)
@click.pass_obj
@_handle_errors
def discharge(settings: Settings, patient_id: int):
    """Discharge an active patient and free their bed."""
    _, hospital = _open(settings)
    hospital.discharge_patient(patient_id)
    click.echo(f"Patient {patient_id} discharged successfully!")


# -------
# Doctors
# -------


@main.command(name="add-doctor")
@click.option("-i", "--doctor-id", required=True, type=int, help="positive doctor ID")
@click.option("-n", "--name", required=True, help="doctor name")
@click.pass_obj
@_handle_errors
def add_doctor(settings: Settings, doctor_id: int, name: str):
    """Add a doctor to the staff list."""
    _, hospital = _open(settings)
    hospital.add_doctor(doctor_id, name)
    click.echo(f"Doctor record {doctor_id} added successfully!")


@main.command(name="list-doctors")
@click.pass_obj
@_handle_errors
def list_doctors(settings: Settings):
    """Show all doctors with their weekly shift totals."""
    _, hospital = _open(settings)
    rows = [
        {"ID": d.doctor_id, "Name": d.name, "Total Shifts": d.total_shifts}
        for d in hospital.list_doctors()
    ]
    _echo_frame(pd.DataFrame(rows), "No doctors in the system.")


@main.command(name="remove-doctor")
@click.argument("doctor_id", type=int)
@click.pass_obj
@_handle_errors
def remove_doctor(settings: Settings, doctor_id: int):
    """Remove a doctor who holds no shifts."""
    _, hospital = _open(settings)
    hospital.remove_doctor(doctor_id)
    click.echo(f"Doctor {doctor_id} removed.")


# --------
# Schedule
# --------


@main.command(name="assign-shift")
@click.option("-i", "--doctor-id", required=True, type=int, help="doctor to assign")
@click.option("-d", "--day", required=True, help="day 1-7 or name (Monday..Sunday)")
@click.option("-s", "--shift", required=True, help="shift 1-3 or name (morning, afternoon, evening)")
@click.pass_obj
@_handle_errors
def assign_shift(settings: Settings, doctor_id: int, day: str, shift: str):
    """Put a doctor on an unassigned (day, shift) slot."""
    _, hospital = _open(settings)
    hospital.assign_shift(doctor_id, day, shift)
    click.echo(
        f"Shift assigned successfully! {Day.from_label(day).label} "
        f"{Shift.from_label(shift).label.lower()}: doctor {doctor_id}"
    )


@main.command(name="schedule")
@click.pass_obj
@_handle_errors
def schedule(settings: Settings):
    """Show the weekly schedule grid."""
    _, hospital = _open(settings)
    names = {d.doctor_id: d.name for d in hospital.list_doctors()}
    grid = hospital.schedule.as_frame().map(
        lambda doctor_id: "Not Assigned" if doctor_id is None else f"Dr. {names.get(doctor_id, 'Unknown')}"
    )
    click.echo(grid.to_string())


# -------
# Reports
# -------


@main.command(name="report")
@click.argument("kind", type=click.Choice(sorted([*REPORTS, "discharges"])))
@click.option("--date", "on_date", help="discharge date (YYYY-MM-DD), required for 'discharges'")
@click.option(
    "-o",
    "--output-dir",
    default="reports",
    type=click.Path(file_okay=False),
    help="where to write the report CSV (a timestamped subfolder is created)",
)
@click.pass_obj
@_handle_errors
def report(settings: Settings, kind: str, on_date: typing.Optional[str], output_dir: str):
    """Generate a report and write it as CSV."""
    _, hospital = _open(settings)
    if kind == "discharges":
        if not on_date:
            raise click.UsageError("--date is required for the discharges report")
        df = patient_discharge_report(hospital, parse_report_date(on_date))
    else:
        df = REPORTS[kind](hospital)

    _echo_frame(df, "Nothing to report.")
    out = _prepare_output_dir(pathlib.Path(output_dir)) / f"{kind}_report.csv"
    df.to_csv(out, index=False)
    click.echo(f"Report generated successfully: {out}")


@main.command(name="audit")
@click.option("-r", "--raw", is_flag=True, help="emit JSON instead of a table")
@click.pass_obj
@_handle_errors
def audit_records(settings: Settings, raw: bool):
    """Check shift counters, schedule cells and room capacity."""
    _, hospital = _open(settings)
    entries = audit(hospital)
    if raw:
        click.echo(json.dumps([e._asdict() for e in entries], indent=2))
        return

    click.echo(f"{'STEP':<16}  {'SUBJECT':<20}  {'LEVEL':<6}  MESSAGE")
    for entry in entries:
        line = f"{entry.step:<16}  {entry.subject:<20}  {entry.level:<6}  {entry.message}"
        # color by level
        if entry.level == "error":
            colored = click.style(line, fg="red")
        elif entry.level in ("warn", "warning"):
            colored = click.style(line, fg="yellow")
        else:
            colored = click.style(line, fg="cyan")
        click.echo(colored)


@main.command(name="export-excel")
@click.option("-o", "--output", "output_path", default="hms_export.xlsx", type=click.Path(dir_okay=False), help="workbook to write")
@click.pass_obj
@_handle_errors
def export_excel(settings: Settings, output_path: str):
    """Write records, schedule and reports into one Excel workbook."""
    _, hospital = _open(settings)
    path = export_workbook(hospital, pathlib.Path(output_path))
    click.echo(f"Exported workbook to {path}")


# -------
# Backups
# -------


@main.command(name="backup")
@click.pass_obj
@_handle_errors
def backup(settings: Settings):
    """Write a timestamped snapshot of the live records."""
    storage, hospital = _open(settings)
    name = storage.backup(hospital)
    click.echo(f"Data backed up successfully: {name}")


@main.command(name="list-backups")
@click.pass_obj
@_handle_errors
def list_backups(settings: Settings):
    """List available snapshots, newest first."""
    names = _storage(settings).list_backups()
    if not names:
        click.echo("No backups found.")
        return
    for i, name in enumerate(names, start=1):
        click.echo(f"{i}. {name}")


@main.command(name="restore")
@click.argument("name", required=False)
@click.option("--latest", is_flag=True, help="restore the newest snapshot")
@click.pass_obj
@_handle_errors
def restore(settings: Settings, name: typing.Optional[str], latest: bool):
    """Copy a snapshot over the live records and reload them."""
    storage = _storage(settings)
    if latest:
        names = storage.list_backups()
        if not names:
            click.echo("No backups found.", err=True)
            sys.exit(1)
        name = names[0]
    if not name:
        raise click.UsageError("give a backup NAME or --latest")

    notepad = create_notepad("restore")
    hospital = storage.restore(name, notepad)
    _report_issues(notepad)
    click.echo(
        f"Data restored successfully from backup: {name} "
        f"({len(hospital.list_patients())} patients, {len(hospital.list_doctors())} doctors)"
    )


if __name__ == "__main__":
    main()
