from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from timegrid.db.repository import ScheduleRepository
from timegrid.schemas.timetable import Room, Solution, add_minutes, day_key_to_name, parse_time_to_minutes
from timegrid.schemas.upload import PersistenceReport, SkippedLesson
from timegrid.services.timeslot_grid import DEFAULT_SLOT_MINUTES, is_clock_time, teacher_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedSlot:
    day: str
    start_time: str
    end_time: str

    @property
    def minutes(self) -> tuple[int, int]:
        return parse_time_to_minutes(self.start_time), parse_time_to_minutes(self.end_time)

    def label(self) -> str:
        return f"{self.day} {self.start_time}-{self.end_time}"


def resolve_timeslot(slot_id: str, end_times: dict[str, str]) -> ResolvedSlot | None:
    """Decode a `DAY_HH:MM` slot id; the end comes from the solution or defaults to one hour later."""
    day_key, _, start = str(slot_id).partition("_")
    start = start or "09:00"
    if not is_clock_time(start):
        return None
    end = end_times.get(str(slot_id)) or add_minutes(start, DEFAULT_SLOT_MINUTES)
    if not is_clock_time(end) or end <= start:
        return None
    return ResolvedSlot(day=day_key_to_name(day_key), start_time=start, end_time=end)


def _overlaps(first: tuple[int, int], second: tuple[int, int]) -> bool:
    return first[0] < second[1] and second[0] < first[1]


def persist_solution(solution: Solution, rooms: list[Room], repository: ScheduleRepository) -> PersistenceReport:
    """Store only the placements of `solution` that respect every hard constraint.

    Lessons are checked in order against what this pass has already accepted,
    so the first of two clashing lessons wins. Every rejection is reported
    with its reason.
    """
    end_times = {slot.id: slot.endTime or "" for slot in solution.timeslots}
    room_links = {room.id: room.link for room in rooms}
    teachers = {teacher.name: teacher for teacher in repository.list_teachers()}
    groups = {group.name: group for group in repository.list_student_groups()}
    courses = {course.name: course for course in repository.list_courses()}

    windows: dict[tuple[str, str], list[tuple[str, str]]] = defaultdict(list)
    for window in repository.list_teacher_availabilities():
        windows[(teacher_key(window.teacher), window.day)].append((window.start_time, window.end_time))

    teacher_busy: dict[tuple[str, str], list[tuple[int, int]]] = defaultdict(list)
    group_busy: dict[tuple[str, str], list[tuple[int, int]]] = defaultdict(list)
    rooms_used: dict[tuple[str, str, str], set[str]] = defaultdict(set)

    report = PersistenceReport()
    created_by_teacher: dict[str, list[str]] = defaultdict(list)

    def reject(lesson_id: str, teacher: str, reason: str, detail: str | None = None) -> None:
        report.skipped_lessons.append(SkippedLesson(lessonId=lesson_id, teacher=teacher, reason=reason, detail=detail))

    for lesson in solution.lessons:
        if not lesson.timeslot:
            report.unscheduled += 1
            continue
        slot = resolve_timeslot(lesson.timeslot, end_times)
        if slot is None:
            logger.warning("PERSIST UNREADABLE TIMESLOT | lesson_id=%s | timeslot=%s", lesson.id, lesson.timeslot)
            report.unscheduled += 1
            continue

        course = courses.get(lesson.subject)
        teacher = teachers.get(lesson.teacher)
        group = groups.get(lesson.studentGroup)
        if course is None or teacher is None or group is None:
            missing = [
                label
                for label, found in (("course", course), ("teacher", teacher), ("studentGroup", group))
                if found is None
            ]
            reject(lesson.id, lesson.teacher, "missing entity", ",".join(missing))
            continue

        teacher_windows = windows.get((teacher_key(teacher.name), slot.day), [])
        if teacher_windows and not any(
            slot.start_time >= start and slot.end_time <= end for start, end in teacher_windows
        ):
            reject(lesson.id, teacher.name, "outside availability", slot.label())
            continue

        interval = slot.minutes
        if any(_overlaps(interval, busy) for busy in teacher_busy[(teacher.id, slot.day)]):
            reject(lesson.id, teacher.name, "teacher double-booked", slot.label())
            continue
        if any(_overlaps(interval, busy) for busy in group_busy[(group.id, slot.day)]):
            reject(lesson.id, teacher.name, "group overlap", group.name)
            continue

        if not lesson.room:
            reject(lesson.id, teacher.name, "no room assigned")
            continue
        room_key = (slot.day, slot.start_time, slot.end_time)
        if lesson.room in rooms_used[room_key]:
            reject(lesson.id, teacher.name, "room overlap", lesson.room)
            continue

        meeting_link = room_links.get(lesson.room)
        repository.create_class(
            course_id=course.id,
            teacher_id=teacher.id,
            student_group_id=group.id,
            day=slot.day,
            start_time=slot.start_time,
            end_time=slot.end_time,
            has_conflict=False,
            meeting_link=meeting_link,
        )
        rooms_used[room_key].add(lesson.room)
        teacher_busy[(teacher.id, slot.day)].append(interval)
        group_busy[(group.id, slot.day)].append(interval)
        report.created += 1
        link_text = f" [{meeting_link}]" if meeting_link else ""
        created_by_teacher[teacher.name].append(f"{slot.label()} {course.name} ({group.name}){link_text}")

    report.skipped = len(report.skipped_lessons)

    if created_by_teacher:
        for teacher_name, entries in created_by_teacher.items():
            logger.info("PERSISTED CLASSES | teacher=%s | classes=%s", teacher_name, "; ".join(entries))
    else:
        logger.info("PERSISTED CLASSES | none accepted after availability and conflict checks")
    for skipped in report.skipped_lessons:
        logger.warning(
            "PERSIST SKIPPED | lesson_id=%s | teacher=%s | reason=%s | detail=%s",
            skipped.lesson_id,
            skipped.teacher,
            skipped.reason,
            skipped.detail,
        )
    logger.info(
        "PERSIST SUMMARY | created=%s | skipped=%s | unscheduled=%s",
        report.created,
        report.skipped,
        report.unscheduled,
    )
    return report
