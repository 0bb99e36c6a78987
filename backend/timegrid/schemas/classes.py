from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from timegrid.schemas.conflict import ConflictInfo
from timegrid.schemas.timetable import DAY_NAMES, TIME_PATTERN, parse_time_to_minutes

ALIASED = {"populate_by_name": True, "from_attributes": True}


def _validate_day(value: str) -> str:
    day = value.strip()
    if day not in DAY_NAMES:
        raise ValueError("Invalid day value")
    return day


def _validate_time(value: str) -> str:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


class ClassCreate(BaseModel):
    course_id: str = Field(alias="courseId", min_length=1, max_length=36)
    teacher_id: str = Field(alias="teacherId", min_length=1, max_length=36)
    student_group_id: str = Field(alias="studentGroupId", min_length=1, max_length=36)
    day: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    meeting_link: str | None = Field(default=None, alias="meetingLink", max_length=500)

    model_config = ALIASED

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return _validate_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return _validate_time(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "ClassCreate":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class ClassUpdate(BaseModel):
    course_id: str | None = Field(default=None, alias="courseId", min_length=1, max_length=36)
    teacher_id: str | None = Field(default=None, alias="teacherId", min_length=1, max_length=36)
    student_group_id: str | None = Field(default=None, alias="studentGroupId", min_length=1, max_length=36)
    day: str | None = None
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")
    meeting_link: str | None = Field(default=None, alias="meetingLink", max_length=500)

    model_config = ALIASED

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str | None) -> str | None:
        return None if value is None else _validate_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        return None if value is None else _validate_time(value)


class ClassOut(BaseModel):
    id: str
    course_id: str = Field(alias="courseId")
    teacher_id: str = Field(alias="teacherId")
    student_group_id: str = Field(alias="studentGroupId")
    day: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    has_conflict: bool = Field(default=False, alias="hasConflict")
    meeting_link: str | None = Field(default=None, alias="meetingLink")

    model_config = ALIASED


class ClassUpdateOut(ClassOut):
    conflict_info: ConflictInfo = Field(alias="conflictInfo")


class EnrichedClassOut(BaseModel):
    id: str
    course_name: str = Field(alias="courseName")
    course_code: str = Field(alias="courseCode")
    teacher_name: str = Field(alias="teacherName")
    student_group: str = Field(alias="studentGroup")
    day: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    has_conflict: bool = Field(alias="hasConflict")
    meeting_link: str = Field(default="", alias="meetingLink")
    course_id: str = Field(alias="courseId")
    teacher_id: str = Field(alias="teacherId")
    student_group_id: str = Field(alias="studentGroupId")

    model_config = ALIASED
