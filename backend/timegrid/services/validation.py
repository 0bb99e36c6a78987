from __future__ import annotations

import logging
from collections import Counter

from timegrid.schemas.timetable import Timetable
from timegrid.schemas.upload import ValidationConflict, ValidationReport, WindowSuggestion
from timegrid.services.timeslot_grid import (
    allowed_timeslots,
    slot_end,
    sort_by_day_and_time,
    teacher_key,
    windows_by_teacher,
)

logger = logging.getLogger(__name__)

CONFLICT_SUGGESTION_LIMIT = 3
TEACHER_SUGGESTION_LIMIT = 5


def build_validation(timetable: Timetable) -> ValidationReport:
    """Pre-solve report on teacher capacity; it never blocks an upload."""
    grouped = windows_by_teacher(timetable.teacherAvailabilities)
    allowed_by_teacher = {
        key: sort_by_day_and_time(allowed_timeslots(timetable.timeslots, windows)) for key, windows in grouped.items()
    }

    warnings: list[str] = []
    lesson_counts = Counter(lesson.teacher for lesson in timetable.lessons)
    for teacher, count in lesson_counts.items():
        key = teacher_key(teacher)
        if key in grouped:
            available = len(allowed_by_teacher[key])
        else:
            warnings.append(f"Teacher {teacher} has 0 available slots defined")
            available = len(timetable.timeslots)
        if available < count:
            warnings.append(f"Required hours ({count}) exceed available timeslots ({available}) for {teacher}")

    conflicts: list[ValidationConflict] = []
    for lesson in timetable.lessons:
        key = teacher_key(lesson.teacher)
        windows = grouped.get(key)
        if not windows or allowed_by_teacher[key]:
            continue
        conflicts.append(
            ValidationConflict(
                lessonId=lesson.id,
                teacher=lesson.teacher,
                reason=f"No available timeslots for {lesson.teacher}",
                suggestions=[
                    WindowSuggestion(dayOfWeek=window.dayOfWeek, startTime=window.startTime, endTime=window.endTime)
                    for window in windows[:CONFLICT_SUGGESTION_LIMIT]
                ],
            )
        )

    suggestions = {
        grouped[key][0].teacher: [
            WindowSuggestion(dayOfWeek=slot.dayOfWeek, startTime=slot.startTime, endTime=slot_end(slot))
            for slot in slots[:TEACHER_SUGGESTION_LIMIT]
        ]
        for key, slots in allowed_by_teacher.items()
    }

    if warnings or conflicts:
        logger.warning(
            "UPLOAD VALIDATION | warnings=%s | conflicts=%s",
            len(warnings),
            len(conflicts),
        )
    return ValidationReport(warnings=warnings, conflicts=conflicts, suggestions=suggestions)
