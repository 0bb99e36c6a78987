from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod

from timegrid.models.course import Course
from timegrid.models.scheduled_class import ScheduledClass
from timegrid.models.student_group import StudentGroup
from timegrid.models.teacher import Teacher
from timegrid.models.teacher_availability import TeacherAvailability

CLASS_FIELDS = (
    "course_id",
    "teacher_id",
    "student_group_id",
    "day",
    "start_time",
    "end_time",
    "has_conflict",
    "meeting_link",
)
TEACHER_FIELDS = ("email", "department")


class ScheduleRepository(ABC):
    """Storage operations the scheduling pipeline and the API rely on."""

    @abstractmethod
    def list_teachers(self) -> list[Teacher]: ...

    @abstractmethod
    def get_teacher(self, teacher_id: str) -> Teacher | None: ...

    @abstractmethod
    def create_teacher(self, name: str, email: str | None = None, department: str | None = None) -> Teacher: ...

    @abstractmethod
    def update_teacher(self, teacher_id: str, **changes) -> Teacher | None: ...

    @abstractmethod
    def list_student_groups(self) -> list[StudentGroup]: ...

    @abstractmethod
    def get_student_group(self, group_id: str) -> StudentGroup | None: ...

    @abstractmethod
    def create_student_group(
        self, name: str, department: str | None = None, year_level: int | None = None
    ) -> StudentGroup: ...

    @abstractmethod
    def list_courses(self) -> list[Course]: ...

    @abstractmethod
    def get_course(self, course_id: str) -> Course | None: ...

    @abstractmethod
    def create_course(
        self, name: str, code: str, department: str | None = None, duration: int = 1
    ) -> Course: ...

    @abstractmethod
    def list_classes(self) -> list[ScheduledClass]: ...

    @abstractmethod
    def get_class(self, class_id: str) -> ScheduledClass | None: ...

    @abstractmethod
    def create_class(self, **fields) -> ScheduledClass: ...

    @abstractmethod
    def update_class(self, class_id: str, **changes) -> ScheduledClass | None: ...

    @abstractmethod
    def delete_class(self, class_id: str) -> bool: ...

    @abstractmethod
    def list_teacher_availabilities(self) -> list[TeacherAvailability]: ...

    @abstractmethod
    def create_teacher_availability(
        self, teacher: str, day: str, start_time: str, end_time: str
    ) -> TeacherAvailability: ...

    @abstractmethod
    def clear_classes(self) -> int: ...

    @abstractmethod
    def clear_all(self) -> None: ...

    def list_classes_by_day(self, day: str) -> list[ScheduledClass]:
        return [item for item in self.list_classes() if item.day == day]

    def list_classes_by_teacher(self, teacher_id: str) -> list[ScheduledClass]:
        return [item for item in self.list_classes() if item.teacher_id == teacher_id]

    def list_classes_by_student_group(self, group_id: str) -> list[ScheduledClass]:
        return [item for item in self.list_classes() if item.student_group_id == group_id]


def _new_id() -> str:
    return str(uuid.uuid4())


class InMemoryScheduleRepository(ScheduleRepository):
    """Process-local storage; the default backend."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._teachers: dict[str, Teacher] = {}
        self._groups: dict[str, StudentGroup] = {}
        self._courses: dict[str, Course] = {}
        self._classes: dict[str, ScheduledClass] = {}
        self._availabilities: dict[str, TeacherAvailability] = {}

    def list_teachers(self) -> list[Teacher]:
        with self._lock:
            return list(self._teachers.values())

    def get_teacher(self, teacher_id: str) -> Teacher | None:
        with self._lock:
            return self._teachers.get(teacher_id)

    def create_teacher(self, name: str, email: str | None = None, department: str | None = None) -> Teacher:
        teacher = Teacher(id=_new_id(), name=name, email=email, department=department)
        with self._lock:
            self._teachers[teacher.id] = teacher
        return teacher

    def update_teacher(self, teacher_id: str, **changes) -> Teacher | None:
        with self._lock:
            teacher = self._teachers.get(teacher_id)
            if teacher is None:
                return None
            for key, value in changes.items():
                if key in TEACHER_FIELDS:
                    setattr(teacher, key, value)
            return teacher

    def list_student_groups(self) -> list[StudentGroup]:
        with self._lock:
            return list(self._groups.values())

    def get_student_group(self, group_id: str) -> StudentGroup | None:
        with self._lock:
            return self._groups.get(group_id)

    def create_student_group(
        self, name: str, department: str | None = None, year_level: int | None = None
    ) -> StudentGroup:
        group = StudentGroup(id=_new_id(), name=name, department=department, year_level=year_level)
        with self._lock:
            self._groups[group.id] = group
        return group

    def list_courses(self) -> list[Course]:
        with self._lock:
            return list(self._courses.values())

    def get_course(self, course_id: str) -> Course | None:
        with self._lock:
            return self._courses.get(course_id)

    def create_course(
        self, name: str, code: str, department: str | None = None, duration: int = 1
    ) -> Course:
        course = Course(id=_new_id(), name=name, code=code, department=department, duration=duration)
        with self._lock:
            self._courses[course.id] = course
        return course

    def list_classes(self) -> list[ScheduledClass]:
        with self._lock:
            return list(self._classes.values())

    def get_class(self, class_id: str) -> ScheduledClass | None:
        with self._lock:
            return self._classes.get(class_id)

    def create_class(self, **fields) -> ScheduledClass:
        values = {key: fields[key] for key in CLASS_FIELDS if key in fields}
        values.setdefault("has_conflict", False)
        values.setdefault("meeting_link", None)
        item = ScheduledClass(id=_new_id(), **values)
        with self._lock:
            self._classes[item.id] = item
        return item

    def update_class(self, class_id: str, **changes) -> ScheduledClass | None:
        with self._lock:
            item = self._classes.get(class_id)
            if item is None:
                return None
            for key, value in changes.items():
                if key in CLASS_FIELDS:
                    setattr(item, key, value)
            return item

    def delete_class(self, class_id: str) -> bool:
        with self._lock:
            return self._classes.pop(class_id, None) is not None

    def list_teacher_availabilities(self) -> list[TeacherAvailability]:
        with self._lock:
            return list(self._availabilities.values())

    def create_teacher_availability(
        self, teacher: str, day: str, start_time: str, end_time: str
    ) -> TeacherAvailability:
        window = TeacherAvailability(
            id=_new_id(), teacher=teacher, day=day, start_time=start_time, end_time=end_time
        )
        with self._lock:
            self._availabilities[window.id] = window
        return window

    def clear_classes(self) -> int:
        with self._lock:
            removed = len(self._classes)
            self._classes.clear()
            return removed

    def clear_all(self) -> None:
        with self._lock:
            self._classes.clear()
            self._availabilities.clear()
            self._courses.clear()
            self._groups.clear()
            self._teachers.clear()
