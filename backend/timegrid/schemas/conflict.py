from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Literal, List, Optional

from timegrid.schemas.timetable import TIME_PATTERN, parse_time_to_minutes

ALIASED = {"populate_by_name": True, "from_attributes": True}


class ConflictDetail(BaseModel):
    type: Literal["teacher", "studentGroup"]
    message: str
    conflicting_class_id: str = Field(alias="conflictingClassId")

    model_config = ALIASED


class ConflictInfo(BaseModel):
    has_conflict: bool = Field(alias="hasConflict")
    conflicts: List[ConflictDetail] = Field(default_factory=list)

    model_config = ALIASED


class SuggestedSlot(BaseModel):
    day: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    available: bool
    conflicts: List[str] = Field(default_factory=list)

    model_config = ALIASED


class ConflictCheckRequest(BaseModel):
    teacher_id: str = Field(alias="teacherId", min_length=1)
    student_group_id: str = Field(alias="studentGroupId", min_length=1)
    day: str = Field(min_length=1)
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    exclude_class_id: Optional[str] = Field(default=None, alias="excludeClassId")

    model_config = ALIASED

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "ConflictCheckRequest":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class SuggestionRequest(BaseModel):
    teacher_id: str = Field(alias="teacherId", min_length=1)
    student_group_id: str = Field(alias="studentGroupId", min_length=1)
    exclude_class_id: Optional[str] = Field(default=None, alias="excludeClassId")

    model_config = ALIASED
