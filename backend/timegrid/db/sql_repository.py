from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from timegrid.db.repository import CLASS_FIELDS, TEACHER_FIELDS, ScheduleRepository
from timegrid.models.course import Course
from timegrid.models.scheduled_class import ScheduledClass
from timegrid.models.student_group import StudentGroup
from timegrid.models.teacher import Teacher
from timegrid.models.teacher_availability import TeacherAvailability


class SqlAlchemyScheduleRepository(ScheduleRepository):
    """Repository over a SQLAlchemy session; every write commits."""

    def __init__(self, session: Session):
        self.session = session

    def _add(self, item):
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def list_teachers(self) -> list[Teacher]:
        return list(self.session.execute(select(Teacher).order_by(Teacher.name)).scalars().all())

    def get_teacher(self, teacher_id: str) -> Teacher | None:
        return self.session.get(Teacher, teacher_id)

    def create_teacher(self, name: str, email: str | None = None, department: str | None = None) -> Teacher:
        return self._add(Teacher(name=name, email=email, department=department))

    def update_teacher(self, teacher_id: str, **changes) -> Teacher | None:
        teacher = self.session.get(Teacher, teacher_id)
        if teacher is None:
            return None
        for key, value in changes.items():
            if key in TEACHER_FIELDS:
                setattr(teacher, key, value)
        self.session.commit()
        self.session.refresh(teacher)
        return teacher

    def list_student_groups(self) -> list[StudentGroup]:
        return list(self.session.execute(select(StudentGroup).order_by(StudentGroup.name)).scalars().all())

    def get_student_group(self, group_id: str) -> StudentGroup | None:
        return self.session.get(StudentGroup, group_id)

    def create_student_group(
        self, name: str, department: str | None = None, year_level: int | None = None
    ) -> StudentGroup:
        return self._add(StudentGroup(name=name, department=department, year_level=year_level))

    def list_courses(self) -> list[Course]:
        return list(self.session.execute(select(Course).order_by(Course.code)).scalars().all())

    def get_course(self, course_id: str) -> Course | None:
        return self.session.get(Course, course_id)

    def create_course(
        self, name: str, code: str, department: str | None = None, duration: int = 1
    ) -> Course:
        return self._add(Course(name=name, code=code, department=department, duration=duration))

    def list_classes(self) -> list[ScheduledClass]:
        return list(self.session.execute(select(ScheduledClass)).scalars().all())

    def list_classes_by_day(self, day: str) -> list[ScheduledClass]:
        return list(self.session.execute(select(ScheduledClass).where(ScheduledClass.day == day)).scalars().all())

    def list_classes_by_teacher(self, teacher_id: str) -> list[ScheduledClass]:
        query = select(ScheduledClass).where(ScheduledClass.teacher_id == teacher_id)
        return list(self.session.execute(query).scalars().all())

    def list_classes_by_student_group(self, group_id: str) -> list[ScheduledClass]:
        query = select(ScheduledClass).where(ScheduledClass.student_group_id == group_id)
        return list(self.session.execute(query).scalars().all())

    def get_class(self, class_id: str) -> ScheduledClass | None:
        return self.session.get(ScheduledClass, class_id)

    def create_class(self, **fields) -> ScheduledClass:
        values = {key: fields[key] for key in CLASS_FIELDS if key in fields}
        values.setdefault("has_conflict", False)
        return self._add(ScheduledClass(**values))

    def update_class(self, class_id: str, **changes) -> ScheduledClass | None:
        item = self.session.get(ScheduledClass, class_id)
        if item is None:
            return None
        for key, value in changes.items():
            if key in CLASS_FIELDS:
                setattr(item, key, value)
        self.session.commit()
        self.session.refresh(item)
        return item

    def delete_class(self, class_id: str) -> bool:
        item = self.session.get(ScheduledClass, class_id)
        if item is None:
            return False
        self.session.delete(item)
        self.session.commit()
        return True

    def list_teacher_availabilities(self) -> list[TeacherAvailability]:
        return list(self.session.execute(select(TeacherAvailability)).scalars().all())

    def create_teacher_availability(
        self, teacher: str, day: str, start_time: str, end_time: str
    ) -> TeacherAvailability:
        return self._add(TeacherAvailability(teacher=teacher, day=day, start_time=start_time, end_time=end_time))

    def clear_classes(self) -> int:
        result = self.session.execute(delete(ScheduledClass))
        self.session.commit()
        return result.rowcount or 0

    def clear_all(self) -> None:
        for model in (ScheduledClass, TeacherAvailability, Course, StudentGroup, Teacher):
            self.session.execute(delete(model))
        self.session.commit()
