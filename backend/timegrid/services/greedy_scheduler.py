from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from timegrid.schemas.timetable import Lesson, Room, Solution, TeacherAvailabilityWindow, Timeslot, Timetable
from timegrid.services.timeslot_grid import allowed_timeslots, is_clock_time, slot_end, teacher_key, windows_by_teacher

logger = logging.getLogger(__name__)


@dataclass
class GreedyResult:
    solution: Solution
    unassigned: list[str] = field(default_factory=list)

    @property
    def assigned_count(self) -> int:
        return len(self.solution.lessons) - len(self.unassigned)


def _overlaps(start: str, end: str, other_start: str, other_end: str) -> bool:
    return start < other_end and other_start < end


class GreedyScheduler:
    """Single pass, no backtracking placement of lessons onto timeslots and rooms.

    Lessons are handled in input order; every placement immediately updates the
    slot, interval, room and day-load trackers seen by the next lesson.
    """

    def __init__(self, timetable: Timetable):
        self.rooms: list[Room] = list(timetable.rooms)
        self.timeslots: list[Timeslot] = [
            slot.model_copy(update={"endTime": slot_end(slot)}) for slot in timetable.timeslots
        ]
        self.windows_by_teacher: dict[str, list[TeacherAvailabilityWindow]] = windows_by_teacher(
            timetable.teacherAvailabilities
        )
        self.lessons: list[Lesson] = list(timetable.lessons)

        self.teachers_by_slot: dict[str, set[str]] = defaultdict(set)
        self.groups_by_slot: dict[str, set[str]] = defaultdict(set)
        self.rooms_by_slot: dict[str, set[str]] = defaultdict(set)
        self.teacher_intervals: dict[tuple[str, str], list[tuple[str, str]]] = defaultdict(list)
        self.group_intervals: dict[tuple[str, str], list[tuple[str, str]]] = defaultdict(list)
        self.teacher_day_load: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))

    def _candidates(self, lesson: Lesson) -> list[Timeslot]:
        windows = self.windows_by_teacher.get(teacher_key(lesson.teacher), [])
        allowed = [
            slot
            for slot in allowed_timeslots(self.timeslots, windows)
            if is_clock_time(slot.startTime) and is_clock_time(slot.endTime)
        ]
        loads = self.teacher_day_load[lesson.teacher]
        return sorted(allowed, key=lambda slot: (loads[slot.dayOfWeek], slot.startTime))

    def _pick_free_room(self, slot_id: str) -> str | None:
        used = self.rooms_by_slot[slot_id]
        for room in self.rooms:
            if room.id not in used:
                return room.id
        return None

    def _interval_taken(self, lesson: Lesson, slot: Timeslot) -> bool:
        booked = self.teacher_intervals[(lesson.teacher, slot.dayOfWeek)] + self.group_intervals[
            (lesson.studentGroup, slot.dayOfWeek)
        ]
        return any(_overlaps(slot.startTime, slot.endTime, start, end) for start, end in booked)

    def _commit(self, lesson: Lesson, slot: Timeslot, room_id: str) -> None:
        self.teachers_by_slot[slot.id].add(lesson.teacher)
        self.groups_by_slot[slot.id].add(lesson.studentGroup)
        self.rooms_by_slot[slot.id].add(room_id)
        self.teacher_intervals[(lesson.teacher, slot.dayOfWeek)].append((slot.startTime, slot.endTime))
        self.group_intervals[(lesson.studentGroup, slot.dayOfWeek)].append((slot.startTime, slot.endTime))
        self.teacher_day_load[lesson.teacher][slot.dayOfWeek] += 1

    def _place(self, lesson: Lesson) -> tuple[str, str] | None:
        for slot in self._candidates(lesson):
            if lesson.teacher in self.teachers_by_slot[slot.id]:
                continue
            if lesson.studentGroup in self.groups_by_slot[slot.id]:
                continue
            if self._interval_taken(lesson, slot):
                continue
            room_id = self._pick_free_room(slot.id)
            if room_id is None:
                continue
            self._commit(lesson, slot, room_id)
            return slot.id, room_id
        return None

    def run(self) -> GreedyResult:
        placed: list[Lesson] = []
        unassigned: list[str] = []
        for lesson in self.lessons:
            assignment = self._place(lesson)
            if assignment is None:
                unassigned.append(lesson.id)
                placed.append(lesson.model_copy(update={"timeslot": None, "room": None}))
                continue
            slot_id, room_id = assignment
            placed.append(lesson.model_copy(update={"timeslot": slot_id, "room": room_id}))

        logger.info(
            "GREEDY SCHEDULE | lessons=%s | assigned=%s | unassigned=%s | timeslots=%s | rooms=%s",
            len(placed),
            len(placed) - len(unassigned),
            len(unassigned),
            len(self.timeslots),
            len(self.rooms),
        )
        return GreedyResult(solution=Solution(timeslots=self.timeslots, lessons=placed), unassigned=unassigned)


def schedule_greedy(timetable: Timetable) -> GreedyResult:
    return GreedyScheduler(timetable).run()
