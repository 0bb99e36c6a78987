from fastapi import APIRouter, Depends, HTTPException, status

from timegrid.api.deps import get_repository
from timegrid.db.repository import ScheduleRepository
from timegrid.schemas.entities import (
    CourseOut,
    StudentGroupOut,
    TeacherAvailabilityOut,
    TeacherOut,
    TeacherUpdate,
)

router = APIRouter()


@router.get("/teachers", response_model=list[TeacherOut])
def list_teachers(repository: ScheduleRepository = Depends(get_repository)) -> list[TeacherOut]:
    return repository.list_teachers()


@router.patch("/teachers/{teacher_id}", response_model=TeacherOut)
def update_teacher(
    teacher_id: str,
    payload: TeacherUpdate,
    repository: ScheduleRepository = Depends(get_repository),
) -> TeacherOut:
    teacher = repository.update_teacher(teacher_id, **payload.model_dump(exclude_unset=True))
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    return teacher


@router.get("/student-groups", response_model=list[StudentGroupOut])
def list_student_groups(repository: ScheduleRepository = Depends(get_repository)) -> list[StudentGroupOut]:
    return repository.list_student_groups()


@router.get("/courses", response_model=list[CourseOut])
def list_courses(repository: ScheduleRepository = Depends(get_repository)) -> list[CourseOut]:
    return repository.list_courses()


@router.get("/teacher-availabilities", response_model=list[TeacherAvailabilityOut])
def list_teacher_availabilities(
    repository: ScheduleRepository = Depends(get_repository),
) -> list[TeacherAvailabilityOut]:
    return repository.list_teacher_availabilities()
