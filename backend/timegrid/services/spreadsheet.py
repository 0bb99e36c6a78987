from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from io import BytesIO
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from timegrid.core.exceptions import StructuralError
from timegrid.schemas.timetable import (
    Lesson,
    Room,
    TeacherAvailabilityWindow,
    Timeslot,
    Timetable,
    timeslot_id,
)
from timegrid.services.timeslot_grid import ensure_availability_coverage, is_clock_time, teacher_key

logger = logging.getLogger(__name__)

DAY_PREFIXES = {
    "MON": "MONDAY",
    "TUE": "TUESDAY",
    "WED": "WEDNESDAY",
    "THU": "THURSDAY",
    "FRI": "FRIDAY",
}

DAY_ALIASES = ("dayofweek", "day", "weekday")
START_ALIASES = ("starttime", "start", "from", "preferredstart")
END_ALIASES = ("endtime", "end", "to", "preferredend")
ROOM_NAME_ALIASES = ("name", "roomname", "nameofroom", "room")
ROOM_LINK_ALIASES = ("link", "meetinglink", "roomlink")
LESSON_ID_ALIASES = ("id", "lessonid")
SUBJECT_ALIASES = ("subject", "course", "subjectname")
TEACHER_ALIASES = ("teacher", "teachername")
GROUP_ALIASES = ("studentgroup", "group")
MEETING_LINK_ALIASES = ("meetinglink", "link")

ROLE_TITLES = {
    "Timeslots": {"timeslot", "timeslots"},
    "Rooms": {"room", "rooms"},
    "Lessons": {"lesson", "lessons"},
    "TeacherAvailability": {"teacheravailability", "teacheravailabilities", "availability"},
}

REQUIRED_COLUMNS = {
    "Timeslots": {"DayOfWeek": DAY_ALIASES, "StartTime": START_ALIASES, "EndTime": END_ALIASES},
    "Rooms": {"Name": ROOM_NAME_ALIASES},
    "Lessons": {
        "Id": LESSON_ID_ALIASES,
        "Subject": SUBJECT_ALIASES,
        "Teacher": TEACHER_ALIASES,
        "StudentGroup": GROUP_ALIASES,
    },
    "TeacherAvailability": {
        "Teacher": TEACHER_ALIASES,
        "DayOfWeek": DAY_ALIASES,
        "StartTime": START_ALIASES,
        "EndTime": END_ALIASES,
    },
}

HMS_PATTERN = re.compile(r"^(\d{1,2}):(\d{2}):\d{2}$")
HM_MERIDIEM_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$", re.IGNORECASE)
H_MERIDIEM_PATTERN = re.compile(r"^(\d{1,2})\s*(AM|PM)$", re.IGNORECASE)
EMBEDDED_TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})(?::\d{2})?\s*(AM|PM)?", re.IGNORECASE)
DOTTED_PATTERN = re.compile(r"^(\d{1,2})\.(\d{2})$")
BARE_HOUR_PATTERN = re.compile(r"^(\d{1,2})\s*(AM|PM)?$", re.IGNORECASE)


@dataclass
class SheetTable:
    title: str
    headers: list[str]
    rows: list[tuple[int, tuple]]
    columns: dict[str, int] = field(default_factory=dict)

    def has_any(self, aliases: tuple[str, ...]) -> bool:
        return any(alias in self.columns for alias in aliases)

    def column_for(self, aliases: tuple[str, ...]) -> int | None:
        for alias in aliases:
            if alias in self.columns:
                return self.columns[alias]
        return None

    def cell(self, row: tuple, aliases: tuple[str, ...]) -> object:
        index = self.column_for(aliases)
        if index is None or index >= len(row):
            return None
        return row[index]


@dataclass
class NormalizedWorkbook:
    timetable: Timetable
    teachers: list[str]
    student_groups: list[str]
    courses: list[str]
    warnings: list[str] = field(default_factory=list)


def normalize_header(value: object) -> str:
    return re.sub(r"[^a-z0-9]", "", str(value or "").lower())


def _pad(hours: int, minutes: int) -> str:
    return f"{hours:02d}:{minutes:02d}"


def _apply_meridiem(hours: int, meridiem: str | None) -> int:
    marker = (meridiem or "").upper()
    if marker == "PM" and hours < 12:
        return hours + 12
    if marker == "AM" and hours == 12:
        return 0
    return hours


def _clock(raw: str, hours: int, minutes: int, meridiem: str | None = None) -> str:
    """HH:MM for an in-range reading, otherwise the raw text."""
    if meridiem and not 1 <= hours <= 12:
        return raw
    hours = _apply_meridiem(hours, meridiem)
    if hours > 23 or minutes > 59:
        return raw
    return _pad(hours, minutes)


def normalize_time_cell(value: object) -> str:
    """Coerce a spreadsheet time cell to HH:MM; unknown shapes come back untouched."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return _pad(value.hour, value.minute)
    if isinstance(value, time):
        return _pad(value.hour, value.minute)
    if isinstance(value, timedelta):
        seconds = value.total_seconds() % 86400
        total_minutes = int(math.floor(seconds / 60 + 0.5))
        return _pad(total_minutes // 60, total_minutes % 60)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if math.isnan(value):
            return ""
        fraction = value - math.floor(value) if value >= 1 else value
        total_minutes = int(math.floor(fraction * 24 * 60 + 0.5))
        return _pad(total_minutes // 60, total_minutes % 60)

    raw = str(value).strip()
    if not raw:
        return ""

    match = HMS_PATTERN.match(raw)
    if match:
        return _clock(raw, int(match.group(1)), int(match.group(2)))

    match = HM_MERIDIEM_PATTERN.match(raw)
    if match:
        return _clock(raw, int(match.group(1)), int(match.group(2)), match.group(3))

    match = H_MERIDIEM_PATTERN.match(raw)
    if match:
        return _clock(raw, int(match.group(1)), 0, match.group(2))

    match = EMBEDDED_TIME_PATTERN.search(raw)
    if match:
        return _clock(raw, int(match.group(1)), int(match.group(2)), match.group(3))

    match = DOTTED_PATTERN.match(raw)
    if match:
        return _clock(raw, int(match.group(1)), int(match.group(2)))

    match = BARE_HOUR_PATTERN.match(raw)
    if match:
        return _clock(raw, int(match.group(1)), 0, match.group(2))

    return raw


def normalize_day(value: object) -> str:
    token = str(value if value is not None else "").strip().upper()
    for prefix, day in DAY_PREFIXES.items():
        if token.startswith(prefix):
            return day
    raise StructuralError(
        f"Invalid DayOfWeek '{value if value is not None else ''}'",
        details={"value": "" if value is None else str(value)},
    )


def _clean_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _is_blank_row(row: tuple) -> bool:
    return all(_clean_text(cell) == "" for cell in row)


def _read_sheets(content: bytes) -> list[SheetTable]:
    try:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, ValueError, OSError) as exc:
        raise StructuralError(
            "Uploaded file is not a readable .xlsx workbook",
            details={"error": str(exc)},
        ) from exc

    sheets: list[SheetTable] = []
    try:
        for worksheet in workbook.worksheets:
            rows = [tuple(row) for row in worksheet.iter_rows(values_only=True)]
            header_row = rows[0] if rows else ()
            headers = [_clean_text(cell) for cell in header_row]
            columns: dict[str, int] = {}
            for index, header in enumerate(headers):
                key = normalize_header(header)
                if key and key not in columns:
                    columns[key] = index
            body = [(number, row) for number, row in enumerate(rows[1:], start=2) if not _is_blank_row(row)]
            sheets.append(SheetTable(title=worksheet.title, headers=headers, rows=body, columns=columns))
    finally:
        workbook.close()
    return sheets


def _qualifies(role: str, sheet: SheetTable) -> bool:
    if role == "Timeslots":
        return (
            sheet.has_any(DAY_ALIASES)
            and sheet.has_any(START_ALIASES)
            and sheet.has_any(END_ALIASES)
            and not sheet.has_any(TEACHER_ALIASES)
        )
    if role == "Rooms":
        return (
            sheet.has_any(ROOM_NAME_ALIASES)
            and not sheet.has_any(LESSON_ID_ALIASES)
            and not sheet.has_any(SUBJECT_ALIASES)
        )
    if role == "Lessons":
        return (
            sheet.has_any(LESSON_ID_ALIASES)
            and sheet.has_any(SUBJECT_ALIASES)
            and sheet.has_any(TEACHER_ALIASES)
            and sheet.has_any(GROUP_ALIASES)
        )
    return (
        sheet.has_any(TEACHER_ALIASES)
        and sheet.has_any(DAY_ALIASES)
        and sheet.has_any(START_ALIASES)
        and sheet.has_any(END_ALIASES)
    )


def _find_sheet(role: str, sheets: list[SheetTable], *, required: bool = True) -> SheetTable | None:
    candidates = [sheet for sheet in sheets if _qualifies(role, sheet)]
    for sheet in candidates:
        if normalize_header(sheet.title) in ROLE_TITLES[role]:
            return sheet
    if candidates:
        return candidates[0]
    if not required:
        return None

    required_columns = REQUIRED_COLUMNS[role]
    raise StructuralError(
        f"Workbook format error: missing {role} sheet. "
        f"Required columns: {', '.join(required_columns)}.",
        details={
            "role": role,
            "required_columns": {name: list(aliases) for name, aliases in required_columns.items()},
            "found_headers": {sheet.title: sheet.headers for sheet in sheets},
        },
    )


def _parse_timeslots(sheet: SheetTable, warnings: list[str]) -> list[Timeslot]:
    timeslots: list[Timeslot] = []
    seen: set[str] = set()
    for row_number, row in sheet.rows:
        day = normalize_day(sheet.cell(row, DAY_ALIASES))
        start = normalize_time_cell(sheet.cell(row, START_ALIASES))
        end = normalize_time_cell(sheet.cell(row, END_ALIASES))
        if is_clock_time(start) and is_clock_time(end) and end <= start:
            message = f"Timeslots row {row_number}: end time {end} is not after start time {start}; row skipped"
            logger.warning("TIMESLOT ROW SKIPPED | sheet=%s | row=%s | start=%s | end=%s", sheet.title, row_number, start, end)
            warnings.append(message)
            continue
        slot_id = timeslot_id(day, start)
        if slot_id in seen:
            logger.info("TIMESLOT DUPLICATE IGNORED | sheet=%s | row=%s | id=%s", sheet.title, row_number, slot_id)
            continue
        seen.add(slot_id)
        timeslots.append(Timeslot(id=slot_id, dayOfWeek=day, startTime=start, endTime=end))
    return timeslots


def _parse_rooms(sheet: SheetTable, warnings: list[str]) -> list[Room]:
    rooms: list[Room] = []
    for row_number, row in sheet.rows:
        name = _clean_text(sheet.cell(row, ROOM_NAME_ALIASES))
        if not name:
            logger.warning("ROOM ROW SKIPPED | sheet=%s | row=%s | reason=missing name", sheet.title, row_number)
            warnings.append(f"Rooms row {row_number}: missing room name; row skipped")
            continue
        link = _clean_text(sheet.cell(row, ROOM_LINK_ALIASES)) or None
        rooms.append(Room(id=name, name=name, link=link))
    return rooms


def _parse_lessons(sheet: SheetTable, warnings: list[str]) -> list[Lesson]:
    lessons: list[Lesson] = []
    for row_number, row in sheet.rows:
        lesson_id = _clean_text(sheet.cell(row, LESSON_ID_ALIASES))
        subject = _clean_text(sheet.cell(row, SUBJECT_ALIASES))
        teacher = _clean_text(sheet.cell(row, TEACHER_ALIASES))
        group = _clean_text(sheet.cell(row, GROUP_ALIASES))
        missing = [
            label
            for label, value in (("Id", lesson_id), ("Subject", subject), ("Teacher", teacher), ("StudentGroup", group))
            if not value
        ]
        if missing:
            logger.warning(
                "LESSON ROW SKIPPED | sheet=%s | row=%s | missing=%s",
                sheet.title,
                row_number,
                ",".join(missing),
            )
            warnings.append(f"Lessons row {row_number}: missing {', '.join(missing)}; row skipped")
            continue
        meeting_link = _clean_text(sheet.cell(row, MEETING_LINK_ALIASES)) or None
        lessons.append(
            Lesson(
                id=lesson_id,
                subject=subject,
                teacher=teacher,
                studentGroup=group,
                meetingLink=meeting_link,
            )
        )
    return lessons


def _parse_availabilities(sheet: SheetTable | None, warnings: list[str]) -> list[TeacherAvailabilityWindow]:
    if sheet is None:
        return []
    windows: list[TeacherAvailabilityWindow] = []
    for row_number, row in sheet.rows:
        teacher = _clean_text(sheet.cell(row, TEACHER_ALIASES))
        raw_day = _clean_text(sheet.cell(row, DAY_ALIASES))
        start = normalize_time_cell(sheet.cell(row, START_ALIASES))
        end = normalize_time_cell(sheet.cell(row, END_ALIASES))
        if not teacher or not raw_day or not start or not end:
            logger.warning("AVAILABILITY ROW SKIPPED | sheet=%s | row=%s | reason=missing field", sheet.title, row_number)
            warnings.append(f"TeacherAvailability row {row_number}: missing Teacher, DayOfWeek, StartTime or EndTime; row skipped")
            continue
        if is_clock_time(start) and is_clock_time(end) and end <= start:
            logger.warning(
                "AVAILABILITY ROW SKIPPED | sheet=%s | row=%s | start=%s | end=%s", sheet.title, row_number, start, end
            )
            warnings.append(
                f"TeacherAvailability row {row_number}: end time {end} is not after start time {start}; row skipped"
            )
            continue
        windows.append(
            TeacherAvailabilityWindow(
                id=str(row_number - 1),
                teacher=teacher,
                dayOfWeek=normalize_day(raw_day),
                startTime=start,
                endTime=end,
            )
        )
    return windows


def _distinct(values: list[str]) -> list[str]:
    return list(dict.fromkeys(value for value in values if value))


def normalize_workbook(content: bytes) -> NormalizedWorkbook:
    """Turn an uploaded .xlsx workbook into the canonical timetable.

    Timeslots, Rooms and Lessons sheets are mandatory and are located by their
    columns rather than their titles; TeacherAvailability is optional. Bad rows
    are dropped with a warning, while a missing sheet or an unreadable day
    aborts the import with a StructuralError.
    """
    sheets = _read_sheets(content)
    logger.info("WORKBOOK OPENED | sheets=%s", [sheet.title for sheet in sheets])

    timeslot_sheet = _find_sheet("Timeslots", sheets)
    room_sheet = _find_sheet("Rooms", sheets)
    lesson_sheet = _find_sheet("Lessons", sheets)
    availability_sheet = _find_sheet("TeacherAvailability", sheets, required=False)

    for role, sheet in (
        ("Timeslots", timeslot_sheet),
        ("Rooms", room_sheet),
        ("Lessons", lesson_sheet),
        ("TeacherAvailability", availability_sheet),
    ):
        if sheet is not None:
            logger.info("SHEET MATCHED | role=%s | sheet=%s | headers=%s", role, sheet.title, sheet.headers)

    warnings: list[str] = []
    timeslots = _parse_timeslots(timeslot_sheet, warnings)
    rooms = _parse_rooms(room_sheet, warnings)
    lessons = _parse_lessons(lesson_sheet, warnings)
    availabilities = _parse_availabilities(availability_sheet, warnings)

    timeslots = ensure_availability_coverage(timeslots, availabilities)

    declared = {teacher_key(window.teacher) for window in availabilities}
    teachers = _distinct([lesson.teacher for lesson in lessons])
    for teacher in teachers:
        if teacher_key(teacher) not in declared:
            message = f"Teacher {teacher} has no TeacherAvailability rows and is treated as available in every timeslot"
            logger.warning("AVAILABILITY COVERAGE | teacher=%s | windows=0", teacher)
            warnings.append(message)

    logger.info(
        "UPLOAD PARSED | timeslots=%s | rooms=%s | lessons=%s | availabilities=%s | warnings=%s",
        len(timeslots),
        len(rooms),
        len(lessons),
        len(availabilities),
        len(warnings),
    )

    return NormalizedWorkbook(
        timetable=Timetable(
            timeslots=timeslots,
            rooms=rooms,
            lessons=lessons,
            teacherAvailabilities=availabilities,
        ),
        teachers=teachers,
        student_groups=_distinct([lesson.studentGroup for lesson in lessons]),
        courses=_distinct([lesson.subject for lesson in lessons]),
        warnings=warnings,
    )
