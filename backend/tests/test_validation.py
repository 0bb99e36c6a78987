from timegrid.schemas.timetable import Lesson, TeacherAvailabilityWindow, Timeslot, Timetable
from timegrid.services.validation import build_validation


def _timetable(lessons, windows=()):
    return Timetable(
        timeslots=[
            Timeslot(id="MONDAY_09:00", dayOfWeek="MONDAY", startTime="09:00", endTime="10:00"),
            Timeslot(id="MONDAY_10:00", dayOfWeek="MONDAY", startTime="10:00", endTime="11:00"),
            Timeslot(id="TUESDAY_09:00", dayOfWeek="TUESDAY", startTime="09:00", endTime="10:00"),
        ],
        lessons=[
            Lesson(id=str(index), subject="Math", teacher=teacher, studentGroup="Grade 9")
            for index, teacher in enumerate(lessons, start=1)
        ],
        teacherAvailabilities=list(windows),
    )


def _window(teacher, day, start, end, id="1"):
    return TeacherAvailabilityWindow(id=id, teacher=teacher, dayOfWeek=day, startTime=start, endTime=end)


def test_teacher_without_windows_gets_warning_only():
    report = build_validation(_timetable(["Alice"]))

    assert report.warnings == ["Teacher Alice has 0 available slots defined"]
    assert report.conflicts == []
    assert report.suggestions == {}


def test_demand_above_capacity_is_warned():
    report = build_validation(_timetable(["Bob", "Bob"], [_window("Bob", "MONDAY", "09:00", "10:00")]))

    assert report.warnings == ["Required hours (2) exceed available timeslots (1) for Bob"]
    assert report.conflicts == []
    assert [slot.start_time for slot in report.suggestions["Bob"]] == ["09:00"]


def test_windows_matching_no_timeslot_become_conflicts():
    windows = [
        _window("Bob", "FRIDAY", "13:00", "15:00", id="1"),
        _window("Bob", "THURSDAY", "13:00", "14:00", id="2"),
    ]

    report = build_validation(_timetable(["Bob"], windows))

    assert len(report.conflicts) == 1
    conflict = report.conflicts[0]
    assert (conflict.lesson_id, conflict.teacher) == ("1", "Bob")
    assert conflict.reason == "No available timeslots for Bob"
    assert [item.day_of_week for item in conflict.suggestions] == ["FRIDAY", "THURSDAY"]
    assert report.suggestions["Bob"] == []


def test_suggestions_are_sorted_by_day_then_time():
    windows = [
        _window("Carol", "TUESDAY", "08:00", "12:00", id="1"),
        _window("Carol", "MONDAY", "09:00", "11:00", id="2"),
    ]

    report = build_validation(_timetable(["Carol"], windows))

    assert [(slot.day_of_week, slot.start_time, slot.end_time) for slot in report.suggestions["Carol"]] == [
        ("MONDAY", "09:00", "10:00"),
        ("MONDAY", "10:00", "11:00"),
        ("TUESDAY", "09:00", "10:00"),
    ]
    assert report.warnings == []


def test_windows_match_lesson_teacher_names_case_insensitively():
    report = build_validation(_timetable(["Bob"], [_window("BOB", "MONDAY", "09:00", "10:00")]))

    assert report.warnings == []
    assert report.conflicts == []
    assert [slot.start_time for slot in report.suggestions["BOB"]] == ["09:00"]
