from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

from timegrid.schemas.conflict import ConflictDetail, ConflictInfo, SuggestedSlot
from timegrid.schemas.timetable import DAY_NAMES, DAY_ORDER, add_minutes, parse_time_to_minutes

TEACHER_CONFLICT_MESSAGE = "Teacher is already scheduled for another class at this time"
GROUP_CONFLICT_MESSAGE = "Student group is already scheduled for another class at this time"

SUGGESTION_START_TIMES = (
    "08:00", "09:00", "10:00", "11:00", "12:00",
    "13:00", "14:00", "15:00", "16:00", "17:00",
)
SUGGESTION_LIMIT = 10


class PlacedInterval(Protocol):
    id: Optional[str]
    day: str
    start_time: str
    end_time: str
    teacher_id: str
    student_group_id: str


@dataclass
class Placement:
    day: str
    start_time: str
    end_time: str
    teacher_id: str
    student_group_id: str
    id: Optional[str] = None


def has_time_overlap(first: PlacedInterval, second: PlacedInterval) -> bool:
    if first.day != second.day:
        return False
    start1, end1 = parse_time_to_minutes(first.start_time), parse_time_to_minutes(first.end_time)
    start2, end2 = parse_time_to_minutes(second.start_time), parse_time_to_minutes(second.end_time)
    return start1 < end2 and start2 < end1


def detect_conflicts(candidate: PlacedInterval, existing: Iterable[PlacedInterval]) -> ConflictInfo:
    conflicts: List[ConflictDetail] = []
    for placed in existing:
        if candidate.id and placed.id == candidate.id:
            continue
        if not has_time_overlap(candidate, placed):
            continue
        if placed.teacher_id == candidate.teacher_id:
            conflicts.append(
                ConflictDetail(type="teacher", message=TEACHER_CONFLICT_MESSAGE, conflictingClassId=placed.id)
            )
        if placed.student_group_id == candidate.student_group_id:
            conflicts.append(
                ConflictDetail(type="studentGroup", message=GROUP_CONFLICT_MESSAGE, conflictingClassId=placed.id)
            )
    return ConflictInfo(hasConflict=bool(conflicts), conflicts=conflicts)


def generate_smart_suggestions(
    teacher_id: str,
    student_group_id: str,
    existing: Iterable[PlacedInterval],
    exclude_class_id: Optional[str] = None,
) -> List[SuggestedSlot]:
    """Rank the fixed Monday-Friday hourly grid for a teacher/group pair.

    Free slots come first, then weekday order, then start time; only the top
    ten are returned.
    """
    placed = list(existing)
    suggestions: List[SuggestedSlot] = []
    for day in DAY_NAMES:
        for start in SUGGESTION_START_TIMES:
            end = add_minutes(start, 60)
            proposal = Placement(
                day=day,
                start_time=start,
                end_time=end,
                teacher_id=teacher_id,
                student_group_id=student_group_id,
                id=exclude_class_id,
            )
            info = detect_conflicts(proposal, placed)
            suggestions.append(
                SuggestedSlot(
                    day=day,
                    startTime=start,
                    endTime=end,
                    available=not info.has_conflict,
                    conflicts=[conflict.message for conflict in info.conflicts],
                )
            )

    suggestions.sort(
        key=lambda slot: (
            not slot.available,
            DAY_ORDER[slot.day],
            parse_time_to_minutes(slot.start_time),
        )
    )
    return suggestions[:SUGGESTION_LIMIT]
