import pandas as pd
import pytest

from HMS.doctor import MAX_SHIFTS_PER_WEEK
from HMS.errors import (
    ConflictError,
    DayOutOfRangeError,
    DoctorAtCapacityError,
    NotFoundError,
    ShiftOutOfRangeError,
    SlotTakenError,
    UnknownDoctorError,
)
from HMS.records import RecordStore
from HMS.schedule import Day, ScheduleGrid, Shift


@pytest.fixture
def store(clock) -> RecordStore:
    s = RecordStore(clock)
    s.add_doctor(7, "Dr. Lee")
    s.add_doctor(8, "Dr. Kim")
    return s


@pytest.fixture
def grid(store) -> ScheduleGrid:
    return ScheduleGrid(store)


def test_new_grid_is_unassigned(grid):
    snapshot = grid.schedule()
    assert len(snapshot) == 7
    assert all(len(row) == 3 for row in snapshot)
    assert all(cell is None for row in snapshot for cell in row)


def test_assign_shift_scenario(grid, store):
    grid.assign_shift(7, 1, 1)
    assert store.find_doctor(7).total_shifts == 1
    assert grid.cell(1, 1) == 7
    assert grid.schedule()[0][0] == 7

    with pytest.raises(SlotTakenError):
        grid.assign_shift(7, 1, 1)

    with pytest.raises(UnknownDoctorError) as exc:
        grid.assign_shift(99, 1, 2)
    assert isinstance(exc.value, NotFoundError)
    assert grid.cell(1, 2) is None


def test_taken_slot_conflicts_for_any_doctor(grid, store):
    grid.assign_shift(7, 4, 3)
    with pytest.raises(ConflictError):
        grid.assign_shift(8, 4, 3)
    assert grid.cell(4, 3) == 7
    assert store.find_doctor(8).total_shifts == 0


def test_eighth_shift_is_rejected(grid, store):
    for day in range(1, 8):
        grid.assign_shift(7, day, 1)
    assert store.find_doctor(7).total_shifts == MAX_SHIFTS_PER_WEEK
    with pytest.raises(DoctorAtCapacityError):
        grid.assign_shift(7, 1, 2)
    assert grid.cell(1, 2) is None
    assert store.find_doctor(7).total_shifts == MAX_SHIFTS_PER_WEEK


@pytest.mark.parametrize("day", [0, 8, -1])
def test_day_out_of_range(grid, store, day):
    with pytest.raises(DayOutOfRangeError):
        grid.assign_shift(7, day, 1)
    assert store.find_doctor(7).total_shifts == 0


@pytest.mark.parametrize("shift", [0, 4])
def test_shift_out_of_range(grid, store, shift):
    with pytest.raises(ShiftOutOfRangeError):
        grid.assign_shift(7, 1, shift)
    assert store.find_doctor(7).total_shifts == 0


def test_counter_matches_assigned_cells(grid, store):
    grid.assign_shift(7, 1, 1)
    grid.assign_shift(8, 1, 2)
    grid.assign_shift(7, 2, 3)
    for doctor in store.list_doctors():
        assert doctor.total_shifts == len(grid.shifts_for(doctor.doctor_id))


def test_day_and_shift_labels():
    assert Day.from_label("3") is Day.WEDNESDAY
    assert Day.from_label("Sunday") is Day.SUNDAY
    assert Day.from_label("mon") is Day.MONDAY
    assert Shift.from_label(2) is Shift.AFTERNOON
    assert Shift.from_label("Evening") is Shift.EVENING
    with pytest.raises(DayOutOfRangeError):
        Day.from_label("someday")
    with pytest.raises(ShiftOutOfRangeError):
        Shift.from_label("night")


def test_assign_accepts_names(grid):
    grid.assign_shift(8, "friday", "evening")
    assert grid.cell(Day.FRIDAY, Shift.EVENING) == 8


def test_as_frame_layout(grid):
    grid.assign_shift(7, 2, 3)
    frame = grid.as_frame()
    assert isinstance(frame, pd.DataFrame)
    assert list(frame.index) == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
    assert list(frame.columns) == ["Morning", "Afternoon", "Evening"]
    assert frame.loc["Tuesday", "Evening"] == 7
    assert frame.loc["Monday", "Morning"] is None


def test_place_does_not_touch_counters(grid, store):
    grid.place(Day.MONDAY, Shift.MORNING, 7)
    assert grid.cell(1, 1) == 7
    assert store.find_doctor(7).total_shifts == 0
    with pytest.raises(SlotTakenError):
        grid.place(Day.MONDAY, Shift.MORNING, 8)
