from pydantic import BaseModel, EmailStr, Field, field_validator

ALIASED = {"populate_by_name": True, "from_attributes": True}


class TeacherOut(BaseModel):
    id: str
    name: str
    email: str | None = None
    department: str | None = None

    model_config = ALIASED


class TeacherUpdate(BaseModel):
    email: EmailStr | None = None
    department: str | None = Field(default=None, max_length=200)

    @field_validator("department")
    @classmethod
    def normalize_department(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class StudentGroupOut(BaseModel):
    id: str
    name: str
    department: str | None = None
    year_level: int | None = Field(default=None, alias="yearLevel")

    model_config = ALIASED


class CourseOut(BaseModel):
    id: str
    name: str
    code: str
    department: str | None = None
    duration: int = 1

    model_config = ALIASED


class TeacherAvailabilityOut(BaseModel):
    id: str
    teacher: str
    day: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    model_config = ALIASED
