from timegrid.schemas.timetable import Lesson, Room, TeacherAvailabilityWindow, Timeslot, Timetable
from timegrid.services.greedy_scheduler import schedule_greedy


def _slot(day, start, end=None):
    return Timeslot(id=f"{day}_{start}", dayOfWeek=day, startTime=start, endTime=end)


def _lesson(id, teacher="Alice", group="Grade 9", subject="Math"):
    return Lesson(id=id, subject=subject, teacher=teacher, studentGroup=group)


def test_single_compatible_slot_places_only_one_lesson():
    timetable = Timetable(
        timeslots=[_slot("MONDAY", "09:00", "10:00")],
        rooms=[Room(id="R1", name="R1")],
        lessons=[_lesson("1", group="Grade 9"), _lesson("2", group="Grade 10")],
    )

    result = schedule_greedy(timetable)

    assert result.assigned_count == 1
    assert result.unassigned == ["2"]
    first, second = result.solution.lessons
    assert (first.timeslot, first.room) == ("MONDAY_09:00", "R1")
    assert (second.timeslot, second.room) == (None, None)


def test_no_teacher_group_or_room_is_double_booked():
    timetable = Timetable(
        timeslots=[_slot("MONDAY", "09:00", "10:00"), _slot("MONDAY", "10:00", "11:00")],
        rooms=[Room(id="R1", name="R1"), Room(id="R2", name="R2")],
        lessons=[
            _lesson("1", teacher="Alice", group="Grade 9"),
            _lesson("2", teacher="Bob", group="Grade 9"),
            _lesson("3", teacher="Alice", group="Grade 10"),
            _lesson("4", teacher="Carol", group="Grade 11"),
            _lesson("5", teacher="Dan", group="Grade 12"),
        ],
    )

    result = schedule_greedy(timetable)

    placed = [lesson for lesson in result.solution.lessons if lesson.timeslot]
    teacher_slots = [(lesson.teacher, lesson.timeslot) for lesson in placed]
    group_slots = [(lesson.studentGroup, lesson.timeslot) for lesson in placed]
    room_slots = [(lesson.room, lesson.timeslot) for lesson in placed]
    assert len(teacher_slots) == len(set(teacher_slots))
    assert len(group_slots) == len(set(group_slots))
    assert len(room_slots) == len(set(room_slots))
    assert result.assigned_count == 4
    assert result.unassigned == ["5"]


def test_overlapping_slots_with_different_ids_are_respected():
    timetable = Timetable(
        timeslots=[_slot("MONDAY", "09:00", "10:00"), _slot("MONDAY", "09:30", "10:30")],
        rooms=[Room(id="R1", name="R1"), Room(id="R2", name="R2")],
        lessons=[_lesson("1", group="Grade 9"), _lesson("2", group="Grade 10")],
    )

    result = schedule_greedy(timetable)

    assert result.unassigned == ["2"]


def test_placements_stay_inside_availability_windows():
    timetable = Timetable(
        timeslots=[
            _slot("MONDAY", "08:00", "09:00"),
            _slot("MONDAY", "13:00", "14:00"),
            _slot("TUESDAY", "09:00", "10:00"),
        ],
        rooms=[Room(id="R1", name="R1")],
        lessons=[_lesson("1", teacher="Bob"), _lesson("2", teacher="Bob", group="Grade 10")],
        teacherAvailabilities=[
            TeacherAvailabilityWindow(id="1", teacher="Bob", dayOfWeek="MONDAY", startTime="12:00", endTime="15:00"),
        ],
    )

    result = schedule_greedy(timetable)

    assert result.solution.lessons[0].timeslot == "MONDAY_13:00"
    assert result.solution.lessons[1].timeslot is None


def test_lighter_days_are_preferred_for_a_teacher():
    timetable = Timetable(
        timeslots=[
            _slot("MONDAY", "08:00", "09:00"),
            _slot("MONDAY", "09:00", "10:00"),
            _slot("TUESDAY", "10:00", "11:00"),
        ],
        rooms=[Room(id="R1", name="R1")],
        lessons=[_lesson("1", group="Grade 9"), _lesson("2", group="Grade 10")],
    )

    result = schedule_greedy(timetable)

    assert [lesson.timeslot for lesson in result.solution.lessons] == ["MONDAY_08:00", "TUESDAY_10:00"]


def test_missing_end_time_defaults_to_one_hour():
    timetable = Timetable(
        timeslots=[_slot("WEDNESDAY", "14:00")],
        rooms=[Room(id="R1", name="R1")],
        lessons=[_lesson("1")],
    )

    result = schedule_greedy(timetable)

    assert result.solution.timeslots[0].endTime == "15:00"
    assert result.solution.lessons[0].timeslot == "WEDNESDAY_14:00"


def test_unreadable_timeslot_is_never_used():
    timetable = Timetable(
        timeslots=[_slot("MONDAY", "after lunch")],
        rooms=[Room(id="R1", name="R1")],
        lessons=[_lesson("1")],
    )

    result = schedule_greedy(timetable)

    assert result.unassigned == ["1"]


def test_no_rooms_leaves_everything_unassigned():
    timetable = Timetable(timeslots=[_slot("MONDAY", "09:00", "10:00")], lessons=[_lesson("1")])

    result = schedule_greedy(timetable)

    assert result.assigned_count == 0


def test_input_timetable_is_not_mutated():
    timetable = Timetable(
        timeslots=[_slot("MONDAY", "09:00")],
        rooms=[Room(id="R1", name="R1")],
        lessons=[_lesson("1")],
    )
    before = timetable.model_dump()

    schedule_greedy(timetable)

    assert timetable.model_dump() == before


def test_availability_windows_match_teacher_names_case_insensitively():
    timetable = Timetable(
        timeslots=[_slot("MONDAY", "09:00", "10:00"), _slot("TUESDAY", "09:00", "10:00")],
        rooms=[Room(id="R1", name="R1")],
        lessons=[_lesson("1", teacher="Alice")],
        teacherAvailabilities=[
            TeacherAvailabilityWindow(id="1", teacher="alice", dayOfWeek="TUESDAY", startTime="09:00", endTime="10:00"),
        ],
    )

    result = schedule_greedy(timetable)

    assert result.solution.lessons[0].timeslot == "TUESDAY_09:00"
