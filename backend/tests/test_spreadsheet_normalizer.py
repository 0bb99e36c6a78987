import pytest

from timegrid.core.exceptions import StructuralError
from timegrid.schemas.timetable import TeacherAvailabilityWindow
from timegrid.services.spreadsheet import normalize_workbook
from timegrid.services.timeslot_grid import ensure_availability_coverage


def test_normalizes_sample_workbook(sample_sheets, make_workbook):
    result = normalize_workbook(make_workbook(sample_sheets))
    timetable = result.timetable

    assert [slot.id for slot in timetable.timeslots] == ["MONDAY_09:00", "MONDAY_10:00", "TUESDAY_09:00"]
    assert timetable.timeslots[2].endTime == "10:00"

    assert [(room.id, room.link) for room in timetable.rooms] == [
        ("Room A", "https://meet.example.com/room-a"),
        ("Room B", None),
    ]
    assert [lesson.id for lesson in timetable.lessons] == ["1", "2", "3"]
    assert all(lesson.timeslot is None and lesson.room is None for lesson in timetable.lessons)

    window = timetable.teacherAvailabilities[0]
    assert (window.id, window.teacher, window.dayOfWeek, window.startTime, window.endTime) == (
        "1",
        "Bob",
        "MONDAY",
        "09:00",
        "12:00",
    )

    assert result.teachers == ["Alice", "Bob"]
    assert result.student_groups == ["Grade 9", "Grade 10"]
    assert result.courses == ["Math", "Physics", "Chemistry"]


def test_teacher_without_availability_is_kept_with_warning(sample_sheets, make_workbook):
    result = normalize_workbook(make_workbook(sample_sheets))

    alice_lessons = [lesson for lesson in result.timetable.lessons if lesson.teacher == "Alice"]
    assert len(alice_lessons) == 1
    coverage = [warning for warning in result.warnings if "Alice" in warning]
    assert len(coverage) == 1
    assert "treated as available in every timeslot" in coverage[0]
    assert not any("Bob" in warning for warning in result.warnings)


def test_normalization_is_deterministic(sample_sheets, make_workbook):
    content = make_workbook(sample_sheets)

    first = normalize_workbook(content)
    second = normalize_workbook(content)

    assert first.timetable.model_dump_json() == second.timetable.model_dump_json()
    assert first.warnings == second.warnings


def test_sheets_are_found_by_columns_and_aliases(make_workbook):
    content = make_workbook(
        {
            "Classes": [
                ["Lesson ID", "Course", "Teacher Name", "Group", "Meeting Link"],
                ["L1", "History", "Carol", "7B", "https://meet.example.com/l1"],
            ],
            "Slots": [
                ["Day", "From", "To"],
                ["wed", "1:00 PM", "2:00 PM"],
            ],
            "Spaces": [
                ["Room Name", "Room Link"],
                ["Lab 1", "https://meet.example.com/lab-1"],
            ],
        }
    )

    result = normalize_workbook(content)

    assert result.timetable.timeslots[0].id == "WEDNESDAY_13:00"
    assert result.timetable.rooms[0].link == "https://meet.example.com/lab-1"
    lesson = result.timetable.lessons[0]
    assert (lesson.id, lesson.subject, lesson.teacher, lesson.studentGroup) == ("L1", "History", "Carol", "7B")
    assert lesson.meetingLink == "https://meet.example.com/l1"
    assert result.timetable.teacherAvailabilities == []


def test_sheet_title_wins_among_qualifying_sheets(sample_sheets, make_workbook):
    sheets = {
        "Spare rooms": [["Name"], ["Overflow"]],
        **sample_sheets,
    }

    result = normalize_workbook(make_workbook(sheets))

    assert [room.name for room in result.timetable.rooms] == ["Room A", "Room B"]


def test_missing_mandatory_sheet_reports_headers(sample_sheets, make_workbook):
    del sample_sheets["Lessons"]

    with pytest.raises(StructuralError) as exc_info:
        normalize_workbook(make_workbook(sample_sheets))

    error = exc_info.value
    assert error.status_code == 400
    assert "Lessons" in error.message
    assert error.details["role"] == "Lessons"
    assert "StudentGroup" in error.details["required_columns"]
    assert error.details["found_headers"]["Rooms"] == ["Name", "Link"]


def test_invalid_timeslot_day_is_fatal(sample_sheets, make_workbook):
    sample_sheets["Timeslots"].append(["Someday", "11:00", "12:00"])

    with pytest.raises(StructuralError) as exc_info:
        normalize_workbook(make_workbook(sample_sheets))

    assert exc_info.value.message == "Invalid DayOfWeek 'Someday'"


def test_invalid_availability_day_is_fatal(sample_sheets, make_workbook):
    sample_sheets["TeacherAvailability"].append(["Alice", "Sunday", "09:00", "10:00"])

    with pytest.raises(StructuralError):
        normalize_workbook(make_workbook(sample_sheets))


def test_defective_rows_are_skipped_with_warnings(sample_sheets, make_workbook):
    sample_sheets["Lessons"].append([4, "Art", None, "Grade 9"])
    sample_sheets["Rooms"].append([None, "https://meet.example.com/orphan"])
    sample_sheets["TeacherAvailability"].append(["Bob", "Tuesday", None, "12:00"])
    sample_sheets["Timeslots"].append(["Friday", "15:00", "14:00"])
    sample_sheets["Timeslots"].append([None, None, None])

    result = normalize_workbook(make_workbook(sample_sheets))

    assert [lesson.id for lesson in result.timetable.lessons] == ["1", "2", "3"]
    assert len(result.timetable.rooms) == 2
    assert len(result.timetable.teacherAvailabilities) == 1
    assert not any(slot.dayOfWeek == "FRIDAY" for slot in result.timetable.timeslots)
    assert any("Lessons row 5" in warning and "Teacher" in warning for warning in result.warnings)
    assert any("Rooms row 4" in warning for warning in result.warnings)
    assert any("TeacherAvailability row 3" in warning for warning in result.warnings)
    assert any("Timeslots row 5" in warning for warning in result.warnings)


def test_duplicate_timeslots_collapse_to_first(sample_sheets, make_workbook):
    sample_sheets["Timeslots"].append(["MON", "9:00 AM", "9:45 AM"])

    result = normalize_workbook(make_workbook(sample_sheets))

    monday_nine = [slot for slot in result.timetable.timeslots if slot.id == "MONDAY_09:00"]
    assert len(monday_nine) == 1
    assert monday_nine[0].endTime == "10:00"


def test_unreadable_upload_is_a_structural_error():
    with pytest.raises(StructuralError):
        normalize_workbook(b"not a workbook at all")


def test_uncovered_availability_start_gets_a_timeslot(sample_sheets, make_workbook):
    sample_sheets["TeacherAvailability"].append(["Alice", "Thursday", "13:30", "16:00"])
    sample_sheets["TeacherAvailability"].append(["Alice", "Friday", "08:00", "08:40"])

    result = normalize_workbook(make_workbook(sample_sheets))

    slots = {slot.id: slot for slot in result.timetable.timeslots}
    assert slots["THURSDAY_13:30"].endTime == "14:30"
    assert slots["FRIDAY_08:00"].endTime == "08:40"
    assert "MONDAY_09:00" in slots
    assert len(result.timetable.timeslots) == 5


def test_inverted_availability_window_is_skipped(sample_sheets, make_workbook):
    sample_sheets["TeacherAvailability"].append(["Bob", "Wednesday", "14:00", "11:00"])

    result = normalize_workbook(make_workbook(sample_sheets))

    assert [window.dayOfWeek for window in result.timetable.teacherAvailabilities] == ["MONDAY"]
    assert not any(slot.dayOfWeek == "WEDNESDAY" for slot in result.timetable.timeslots)
    assert all(slot.startTime < slot.endTime for slot in result.timetable.timeslots)
    assert any("TeacherAvailability row 3" in warning and "not after" in warning for warning in result.warnings)


def test_coverage_never_synthesizes_an_inverted_slot():
    window = TeacherAvailabilityWindow(id="1", teacher="Bob", dayOfWeek="WEDNESDAY", startTime="14:00", endTime="11:00")

    assert ensure_availability_coverage([], [window]) == []


def test_availability_teacher_names_match_lessons_case_insensitively(sample_sheets, make_workbook):
    sample_sheets["TeacherAvailability"].append(["alice", "Tuesday", "09:00", "10:00"])

    result = normalize_workbook(make_workbook(sample_sheets))

    assert not any("Alice" in warning for warning in result.warnings)
    assert [window.teacher for window in result.timetable.teacherAvailabilities] == ["Bob", "alice"]
