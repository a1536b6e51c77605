"""
Safe-load rules: malformed rows are discarded one by one and reported,
never raised.
"""

import logging

import pandas as pd
from stairval.notepad import create_notepad

from HMS.loader import ArtifactTables
from HMS.mapper import MAX_RECORDS, RecordMapper

PATIENT_COLUMNS = ["patient_id", "name", "age", "diagnosis", "room", "admitted_at", "discharged_at", "active"]


def patient_row(pid="1", name="Jane Doe", age="40", diagnosis="Flu", room="101",
                admitted="2025-04-01 09:00:00", discharged="", active="True"):
    return [pid, name, age, diagnosis, room, admitted, discharged, active]


def tables(patients=None, doctors=None, schedule=None) -> ArtifactTables:
    return ArtifactTables(
        patients=None if patients is None else pd.DataFrame(patients, columns=PATIENT_COLUMNS),
        doctors=None if doctors is None else pd.DataFrame(doctors, columns=["doctor_id", "name", "total_shifts"]),
        schedule=None if schedule is None else pd.DataFrame(schedule, columns=["day", "shift", "doctor_id"]),
    )


def test_valid_rows_are_loaded(clock):
    notepad = create_notepad("load")
    h = RecordMapper(clock).apply_mapping(
        tables(
            patients=[
                patient_row(),
                patient_row(pid="2", room="", active="False", discharged="2025-04-02 10:00:00"),
            ],
            doctors=[["7", "Dr. Lee", "1"]],
            schedule=[["Monday", "Morning", "7"], ["Monday", "Afternoon", ""]],
        ),
        notepad,
    )
    assert not notepad.has_errors(include_subsections=True)
    assert not notepad.has_warnings(include_subsections=True)
    assert [p.patient_id for p in h.list_patients()] == [1, 2]
    assert not h.find_patient(2).active
    assert h.schedule.cell(1, 1) == 7
    assert h.schedule.cell(1, 2) is None


def test_malformed_patient_rows_are_discarded_individually(clock):
    notepad = create_notepad("load")
    h = RecordMapper(clock).apply_mapping(
        tables(patients=[
            patient_row(pid="0"),
            patient_row(pid="2", age="150"),
            patient_row(pid="3", admitted="yesterday"),
            patient_row(pid="abc"),
            patient_row(pid="5"),
        ]),
        notepad,
    )
    assert [p.patient_id for p in h.list_patients()] == [5]
    assert notepad.has_errors(include_subsections=True)
    assert len(list(notepad.errors())) == 4


def test_duplicate_ids_keep_first_copy(clock):
    notepad = create_notepad("load")
    h = RecordMapper(clock).apply_mapping(
        tables(
            patients=[patient_row(name="First"), patient_row(name="Second", room="102")],
            doctors=[["7", "Dr. Lee", "0"], ["7", "Dr. Copy", "0"]],
        ),
        notepad,
    )
    assert h.find_patient(1).name == "First"
    assert [d.name for d in h.list_doctors()] == ["Dr. Lee"]
    assert len(list(notepad.errors())) == 2


def test_missing_columns_skip_table(clock):
    notepad = create_notepad("load")
    bad = ArtifactTables(patients=pd.DataFrame({"patient_id": ["1"]}), doctors=None, schedule=None)
    h = RecordMapper(clock).apply_mapping(bad, notepad)
    assert h.list_patients() == []
    assert notepad.has_errors(include_subsections=True)


def test_oversized_table_is_rejected(clock):
    notepad = create_notepad("load")
    rows = [[str(i), f"Dr. {i}", "0"] for i in range(1, MAX_RECORDS + 2)]
    h = RecordMapper(clock).apply_mapping(tables(doctors=rows), notepad)
    assert h.list_doctors() == []
    assert notepad.has_errors(include_subsections=True)


def test_schedule_cells_for_unknown_doctors_are_cleared(clock):
    notepad = create_notepad("load")
    h = RecordMapper(clock).apply_mapping(
        tables(
            doctors=[["7", "Dr. Lee", "1"]],
            schedule=[["Monday", "Morning", "7"], ["Tuesday", "Morning", "99"], ["Funday", "Morning", "7"]],
        ),
        notepad,
    )
    assert h.schedule.assignments() == [(1, 1, 7)]
    assert len(list(notepad.errors())) == 2


def test_shift_counters_are_reconciled_with_grid(clock):
    notepad = create_notepad("load")
    h = RecordMapper(clock).apply_mapping(
        tables(
            doctors=[["7", "Dr. Lee", "5"], ["8", "Dr. Kim", "0"]],
            schedule=[["Monday", "Morning", "7"], ["Monday", "Evening", "8"]],
        ),
        notepad,
    )
    assert h.find_doctor(7).total_shifts == 1
    assert h.find_doctor(8).total_shifts == 1
    assert notepad.has_warnings(include_subsections=True)
    assert not notepad.has_errors(include_subsections=True)


def test_cells_beyond_weekly_cap_are_dropped(clock):
    notepad = create_notepad("load")
    schedule = [[day, "Morning", "7"] for day in range(1, 8)] + [["1", "Evening", "7"]]
    h = RecordMapper(clock).apply_mapping(tables(doctors=[["7", "Dr. Lee", "7"]], schedule=schedule), notepad)
    assert len(h.schedule.shifts_for(7)) == 7
    assert h.find_doctor(7).total_shifts == 7
    assert notepad.has_errors(include_subsections=True)


def test_over_full_room_is_warned(clock):
    notepad = create_notepad("load")
    h = RecordMapper(clock).apply_mapping(
        tables(patients=[patient_row(pid=str(i)) for i in (1, 2, 3)]),
        notepad,
    )
    assert len(h.list_patients()) == 3
    assert notepad.has_warnings(include_subsections=True)


def test_loaded_hospital_uses_given_clock(clock):
    h = RecordMapper(clock).apply_mapping(tables(), create_notepad("load"))
    p = h.add_patient(1, "Jane Doe", 40, "Flu", 101)
    assert p.admitted_at.year == 2025


def test_discarded_rows_are_logged(clock, caplog):
    notepad = create_notepad("load")
    with caplog.at_level(logging.WARNING, logger="HMS.mapper"):
        RecordMapper(clock).apply_mapping(
            tables(
                patients=[patient_row(pid="0"), patient_row(pid="5")],
                doctors=[["7", "Dr. Lee", "0"]],
                schedule=[["Monday", "Morning", "99"]],
            ),
            notepad,
        )
    discarded = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Discarded:")]
    assert len(discarded) == len(list(notepad.errors())) == 2
    assert any("unknown doctor 99" in message for message in discarded)
