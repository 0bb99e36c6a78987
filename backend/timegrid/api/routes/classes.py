import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from timegrid.api.deps import get_repository
from timegrid.db.repository import ScheduleRepository
from timegrid.schemas.classes import ClassCreate, ClassOut, ClassUpdate, ClassUpdateOut, EnrichedClassOut
from timegrid.schemas.conflict import ConflictCheckRequest, ConflictInfo, SuggestedSlot, SuggestionRequest
from timegrid.schemas.timetable import parse_time_to_minutes
from timegrid.services.conflict_service import Placement, detect_conflicts, generate_smart_suggestions
from timegrid.services.schedule_view import enrich_classes

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_references(repository: ScheduleRepository, course_id: str, teacher_id: str, group_id: str) -> None:
    if repository.get_course(course_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    if repository.get_teacher(teacher_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    if repository.get_student_group(group_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student group not found")


@router.get("/classes", response_model=list[ClassOut])
def list_classes(
    day: str | None = Query(default=None),
    teacher_id: str | None = Query(default=None, alias="teacherId"),
    student_group_id: str | None = Query(default=None, alias="studentGroupId"),
    repository: ScheduleRepository = Depends(get_repository),
) -> list[ClassOut]:
    if day:
        classes = repository.list_classes_by_day(day)
    elif teacher_id:
        classes = repository.list_classes_by_teacher(teacher_id)
    elif student_group_id:
        classes = repository.list_classes_by_student_group(student_group_id)
    else:
        classes = repository.list_classes()
    return classes


@router.get("/classes/enriched", response_model=list[EnrichedClassOut])
def list_enriched_classes(repository: ScheduleRepository = Depends(get_repository)) -> list[EnrichedClassOut]:
    return enrich_classes(repository)


@router.post("/classes/check-conflicts", response_model=ConflictInfo)
def check_conflicts(
    payload: ConflictCheckRequest,
    repository: ScheduleRepository = Depends(get_repository),
) -> ConflictInfo:
    candidate = Placement(
        day=payload.day,
        start_time=payload.start_time,
        end_time=payload.end_time,
        teacher_id=payload.teacher_id,
        student_group_id=payload.student_group_id,
        id=payload.exclude_class_id,
    )
    return detect_conflicts(candidate, repository.list_classes())


@router.post("/classes/smart-suggestions", response_model=list[SuggestedSlot])
def smart_suggestions(
    payload: SuggestionRequest,
    repository: ScheduleRepository = Depends(get_repository),
) -> list[SuggestedSlot]:
    return generate_smart_suggestions(
        payload.teacher_id,
        payload.student_group_id,
        repository.list_classes(),
        exclude_class_id=payload.exclude_class_id,
    )


@router.get("/classes/{class_id}", response_model=ClassOut)
def get_class(class_id: str, repository: ScheduleRepository = Depends(get_repository)) -> ClassOut:
    item = repository.get_class(class_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    return item


@router.post("/classes", response_model=ClassOut, status_code=status.HTTP_201_CREATED)
def create_class(payload: ClassCreate, repository: ScheduleRepository = Depends(get_repository)) -> ClassOut:
    _ensure_references(repository, payload.course_id, payload.teacher_id, payload.student_group_id)
    candidate = Placement(
        day=payload.day,
        start_time=payload.start_time,
        end_time=payload.end_time,
        teacher_id=payload.teacher_id,
        student_group_id=payload.student_group_id,
    )
    conflict_info = detect_conflicts(candidate, repository.list_classes())
    if conflict_info.has_conflict:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": "Class conflicts with existing schedule",
                "conflictInfo": conflict_info.model_dump(by_alias=True),
            },
        )
    item = repository.create_class(**payload.model_dump(), has_conflict=False)
    logger.info("CLASS CREATED | class_id=%s | day=%s | start=%s", item.id, item.day, item.start_time)
    return item


@router.patch("/classes/{class_id}", response_model=ClassUpdateOut)
def update_class(
    class_id: str,
    payload: ClassUpdate,
    repository: ScheduleRepository = Depends(get_repository),
) -> ClassUpdateOut:
    existing = repository.get_class(class_id)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")

    changes = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key == "meeting_link"
    }
    merged = ClassOut.model_validate(existing).model_dump()
    merged.update(changes)
    if parse_time_to_minutes(merged["end_time"]) <= parse_time_to_minutes(merged["start_time"]):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="End time must be after start time")
    _ensure_references(repository, merged["course_id"], merged["teacher_id"], merged["student_group_id"])

    candidate = Placement(
        day=merged["day"],
        start_time=merged["start_time"],
        end_time=merged["end_time"],
        teacher_id=merged["teacher_id"],
        student_group_id=merged["student_group_id"],
        id=class_id,
    )
    conflict_info = detect_conflicts(candidate, repository.list_classes())
    item = repository.update_class(class_id, **changes, has_conflict=conflict_info.has_conflict)
    if conflict_info.has_conflict:
        logger.warning(
            "CLASS UPDATED WITH CONFLICT | class_id=%s | conflicts=%s",
            class_id,
            len(conflict_info.conflicts),
        )
    return ClassUpdateOut.model_validate(
        {**ClassOut.model_validate(item).model_dump(), "conflict_info": conflict_info}
    )


@router.delete("/classes/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_class(class_id: str, repository: ScheduleRepository = Depends(get_repository)) -> None:
    if not repository.delete_class(class_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
