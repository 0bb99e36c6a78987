from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DayKey = Literal["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY"]

DAY_KEYS: tuple[str, ...] = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY")
DAY_NAMES: tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")
DAY_KEY_TO_NAME: dict[str, str] = dict(zip(DAY_KEYS, DAY_NAMES))
DAY_ORDER: dict[str, int] = {name: index for index, name in enumerate(DAY_NAMES)}
DAY_KEY_ORDER: dict[str, int] = {key: index for index, key in enumerate(DAY_KEYS)}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def add_minutes(value: str, minutes: int) -> str:
    hours, mins = value.split(":")
    return minutes_to_time(int(hours) * 60 + int(mins) + minutes)


def timeslot_id(day_key: str, start_time: str) -> str:
    return f"{day_key}_{start_time}"


def day_key_to_name(day_key: str) -> str:
    return DAY_KEY_TO_NAME.get(day_key, day_key)


def _reference_id(value: object) -> object:
    # Solvers may echo planning variables back as nested objects.
    if isinstance(value, dict):
        return value.get("id")
    return value


class Timeslot(BaseModel):
    id: str = Field(min_length=1)
    dayOfWeek: DayKey
    startTime: str
    endTime: str | None = None


class Room(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    link: str | None = None


class Lesson(BaseModel):
    id: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    teacher: str = Field(min_length=1)
    studentGroup: str = Field(min_length=1)
    meetingLink: str | None = None
    timeslot: str | None = None
    room: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: object) -> object:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value

    @field_validator("timeslot", "room", mode="before")
    @classmethod
    def reduce_reference(cls, value: object) -> object:
        value = _reference_id(value)
        return None if value is None else str(value)


class TeacherAvailabilityWindow(BaseModel):
    id: str = Field(min_length=1)
    teacher: str = Field(min_length=1)
    dayOfWeek: DayKey
    startTime: str
    endTime: str


class Timetable(BaseModel):
    timeslots: list[Timeslot] = Field(default_factory=list)
    rooms: list[Room] = Field(default_factory=list)
    lessons: list[Lesson] = Field(default_factory=list)
    teacherAvailabilities: list[TeacherAvailabilityWindow] = Field(default_factory=list)


class Solution(BaseModel):
    timeslots: list[Timeslot] = Field(default_factory=list)
    lessons: list[Lesson] = Field(default_factory=list)
