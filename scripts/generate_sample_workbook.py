"""Write a small demo workbook that the /api/upload endpoint accepts.

Run:
  PYTHONPATH=backend python scripts/generate_sample_workbook.py [output.xlsx]
"""

from __future__ import annotations

import sys
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font

DEFAULT_OUTPUT = Path("sample-timetable.xlsx")

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
START_HOURS = range(8, 17)

ROOMS = [
    ("Room 101", "https://meet.example.com/room-101"),
    ("Room 102", "https://meet.example.com/room-102"),
    ("Science Lab", "https://meet.example.com/science-lab"),
]

TEACHING_LOAD = {
    "Ms. Rivera": [("Algebra", "Grade 9A"), ("Algebra", "Grade 9B"), ("Geometry", "Grade 10A")],
    "Mr. Okafor": [("Biology", "Grade 9A"), ("Chemistry", "Grade 10A"), ("Chemistry", "Grade 10B")],
    "Dr. Lindqvist": [("Physics", "Grade 10B"), ("Physics", "Grade 9B")],
    "Mrs. Tanaka": [("English", "Grade 9A"), ("English", "Grade 9B"), ("English", "Grade 10A")],
}

AVAILABILITY = [
    ("Mr. Okafor", "Monday", "09:00", "12:00"),
    ("Mr. Okafor", "Wednesday", "13:00", "16:00"),
    ("Dr. Lindqvist", "Tuesday", "10:30", "14:00"),
    ("Dr. Lindqvist", "Thursday", "08:00", "11:00"),
]


def _write_sheet(workbook: Workbook, title: str, header: list[str], rows: list[list]) -> None:
    sheet = workbook.create_sheet(title)
    sheet.append(header)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in rows:
        sheet.append(row)


def build_sample_workbook() -> Workbook:
    workbook = Workbook()
    workbook.remove(workbook.active)

    timeslots = [[day, f"{hour:02d}:00", f"{hour + 1:02d}:00"] for day in WEEKDAYS for hour in START_HOURS]
    _write_sheet(workbook, "Timeslots", ["DayOfWeek", "StartTime", "EndTime"], timeslots)
    _write_sheet(workbook, "Rooms", ["Name", "Link"], [list(room) for room in ROOMS])

    lessons: list[list] = []
    for teacher, load in TEACHING_LOAD.items():
        for subject, group in load:
            lessons.append([len(lessons) + 1, subject, teacher, group])
    _write_sheet(workbook, "Lessons", ["Id", "Subject", "Teacher", "StudentGroup"], lessons)

    _write_sheet(
        workbook,
        "TeacherAvailability",
        ["Teacher", "DayOfWeek", "PreferredStart", "PreferredEnd"],
        [list(window) for window in AVAILABILITY],
    )
    return workbook


def main() -> None:
    output = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_OUTPUT
    build_sample_workbook().save(output)
    print(f"Sample workbook written to {output.resolve()}")


if __name__ == "__main__":
    main()
