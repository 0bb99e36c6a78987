from __future__ import annotations

import logging

from timegrid.schemas.timetable import (
    DAY_KEY_ORDER,
    DAY_KEYS,
    TIME_PATTERN,
    TeacherAvailabilityWindow,
    Timeslot,
    Timetable,
    add_minutes,
    minutes_to_time,
    timeslot_id,
)

logger = logging.getLogger(__name__)

GRID_START_HOUR = 8
GRID_END_HOUR = 17
DEFAULT_SLOT_MINUTES = 60
MIN_GRID_SLOTS = 9

GRID_START = minutes_to_time(GRID_START_HOUR * 60)
GRID_END = minutes_to_time(GRID_END_HOUR * 60)


def slot_end(slot: Timeslot) -> str:
    if slot.endTime:
        return slot.endTime
    if not is_clock_time(slot.startTime):
        return ""
    return add_minutes(slot.startTime, DEFAULT_SLOT_MINUTES)


def is_clock_time(value: str | None) -> bool:
    return bool(value) and bool(TIME_PATTERN.match(value))


def teacher_key(name: str) -> str:
    """Teacher names from Lessons and TeacherAvailability match case-insensitively."""
    return name.strip().casefold()


def windows_by_teacher(windows: list[TeacherAvailabilityWindow]) -> dict[str, list[TeacherAvailabilityWindow]]:
    grouped: dict[str, list[TeacherAvailabilityWindow]] = {}
    for window in windows:
        grouped.setdefault(teacher_key(window.teacher), []).append(window)
    return grouped


def generate_default_timeslots() -> list[Timeslot]:
    slots: list[Timeslot] = []
    for day in DAY_KEYS:
        for hour in range(GRID_START_HOUR, GRID_END_HOUR):
            start = minutes_to_time(hour * 60)
            slots.append(
                Timeslot(
                    id=timeslot_id(day, start),
                    dayOfWeek=day,
                    startTime=start,
                    endTime=minutes_to_time((hour + 1) * 60),
                )
            )
    return slots


def clamp_availabilities(windows: list[TeacherAvailabilityWindow]) -> list[TeacherAvailabilityWindow]:
    """Pull every window inside the default 08:00-17:00 grid."""
    clamped: list[TeacherAvailabilityWindow] = []
    for window in windows:
        update: dict[str, str] = {}
        if is_clock_time(window.startTime) and window.startTime < GRID_START:
            update["startTime"] = GRID_START
        if is_clock_time(window.endTime) and window.endTime > GRID_END:
            update["endTime"] = GRID_END
        clamped.append(window.model_copy(update=update) if update else window)
    return clamped


def needs_default_grid(timeslots: list[Timeslot]) -> bool:
    has_morning_slot = any(slot.startTime == GRID_START for slot in timeslots)
    return not has_morning_slot or len(timeslots) < MIN_GRID_SLOTS


def prepare_for_solve(timetable: Timetable, *, default_grid_enabled: bool = True) -> Timetable:
    """Return the timetable that is actually handed to a solver.

    Sparse uploads (no 08:00 slot, or fewer than nine slots) are widened to the
    default weekly grid and availability windows are clamped to it.
    """
    if not default_grid_enabled or not needs_default_grid(timetable.timeslots):
        return timetable
    logger.info(
        "SOLVE GRID REPLACED | uploaded_timeslots=%s | default_timeslots=%s",
        len(timetable.timeslots),
        len(DAY_KEYS) * (GRID_END_HOUR - GRID_START_HOUR),
    )
    return timetable.model_copy(
        update={
            "timeslots": generate_default_timeslots(),
            "teacherAvailabilities": clamp_availabilities(timetable.teacherAvailabilities),
        }
    )


def ensure_availability_coverage(
    timeslots: list[Timeslot],
    windows: list[TeacherAvailabilityWindow],
) -> list[Timeslot]:
    """Add a slot for every window start that the grid does not cover yet."""
    result = list(timeslots)
    known = {(slot.dayOfWeek, slot.startTime) for slot in result}
    for window in windows:
        key = (window.dayOfWeek, window.startTime)
        if key in known:
            continue
        if is_clock_time(window.startTime) and is_clock_time(window.endTime) and window.endTime <= window.startTime:
            logger.warning(
                "TIMESLOT NOT SYNTHESIZED | teacher=%s | day=%s | start=%s | end=%s",
                window.teacher,
                window.dayOfWeek,
                window.startTime,
                window.endTime,
            )
            continue
        end = window.endTime
        if is_clock_time(window.startTime) and is_clock_time(window.endTime):
            one_hour = add_minutes(window.startTime, DEFAULT_SLOT_MINUTES)
            end = min(one_hour, window.endTime)
        result.append(
            Timeslot(
                id=timeslot_id(window.dayOfWeek, window.startTime),
                dayOfWeek=window.dayOfWeek,
                startTime=window.startTime,
                endTime=end,
            )
        )
        known.add(key)
        logger.info(
            "TIMESLOT SYNTHESIZED | teacher=%s | day=%s | start=%s | end=%s",
            window.teacher,
            window.dayOfWeek,
            window.startTime,
            end,
        )
    return result


def window_covers(window: TeacherAvailabilityWindow, day_key: str, start: str, end: str) -> bool:
    if window.dayOfWeek != day_key:
        return False
    if not all(is_clock_time(value) for value in (start, end, window.startTime, window.endTime)):
        return False
    return start >= window.startTime and end <= window.endTime


def allowed_timeslots(
    timeslots: list[Timeslot],
    windows: list[TeacherAvailabilityWindow],
) -> list[Timeslot]:
    """Slots fully inside one of the teacher's windows; no windows means every slot."""
    if not windows:
        return list(timeslots)
    return [
        slot
        for slot in timeslots
        if any(window_covers(window, slot.dayOfWeek, slot.startTime, slot_end(slot)) for window in windows)
    ]


def sort_by_day_and_time(timeslots: list[Timeslot]) -> list[Timeslot]:
    return sorted(timeslots, key=lambda slot: (DAY_KEY_ORDER.get(slot.dayOfWeek, len(DAY_KEY_ORDER)), slot.startTime))
