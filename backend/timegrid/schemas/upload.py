from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from timegrid.schemas.timetable import Timetable

ALIASED = {"populate_by_name": True, "from_attributes": True}

RejectionReason = Literal[
    "missing entity",
    "outside availability",
    "teacher double-booked",
    "group overlap",
    "room overlap",
    "no room assigned",
]

SolveJobState = Literal["SUBMITTED", "POLLING", "SOLVED", "FAILED"]


class WindowSuggestion(BaseModel):
    day_of_week: str = Field(alias="dayOfWeek")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    model_config = ALIASED


class ValidationConflict(BaseModel):
    lesson_id: str = Field(alias="lessonId")
    teacher: str
    reason: str
    suggestions: list[WindowSuggestion] = Field(default_factory=list)

    model_config = ALIASED


class ValidationReport(BaseModel):
    warnings: list[str] = Field(default_factory=list)
    conflicts: list[ValidationConflict] = Field(default_factory=list)
    suggestions: dict[str, list[WindowSuggestion]] = Field(default_factory=dict)


class SkippedLesson(BaseModel):
    lesson_id: str = Field(alias="lessonId")
    teacher: str
    reason: RejectionReason
    detail: str | None = None

    model_config = ALIASED


class PersistenceReport(BaseModel):
    created: int = 0
    skipped: int = 0
    unscheduled: int = 0
    skipped_lessons: list[SkippedLesson] = Field(default_factory=list, alias="skippedLessons")

    model_config = ALIASED


class UploadSummary(BaseModel):
    teachers: int
    student_groups: int = Field(alias="studentGroups")
    courses: int
    lessons: int
    timeslots: int
    rooms: int
    teacher_availabilities: int = Field(alias="teacherAvailabilities")

    model_config = ALIASED


class UploadResponse(BaseModel):
    message: str
    summary: UploadSummary
    data: Timetable
    job_id: str = Field(alias="jobId")
    job_state: SolveJobState = Field(alias="jobState")
    warnings: list[str] = Field(default_factory=list)
    conflicts: list[ValidationConflict] = Field(default_factory=list)
    suggestions: dict[str, list[WindowSuggestion]] = Field(default_factory=dict)

    model_config = ALIASED


class SolveAccepted(BaseModel):
    job_id: str = Field(alias="jobId")

    model_config = ALIASED


class SolveJobOut(BaseModel):
    job_id: str = Field(alias="jobId")
    state: SolveJobState
    mode: Literal["remote", "greedy"]
    attempts: int = 0
    error: str | None = None
    report: PersistenceReport | None = None
    created_at: datetime = Field(alias="createdAt")
    finished_at: datetime | None = Field(default=None, alias="finishedAt")

    model_config = ALIASED
