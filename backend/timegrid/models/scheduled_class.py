import uuid

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from timegrid.db.base import Base


class ScheduledClass(Base):
    """A lesson bound to a concrete day and time; rows only exist once constraint-checked."""

    __tablename__ = "classes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id: Mapped[str] = mapped_column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    teacher_id: Mapped[str] = mapped_column(String(36), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    student_group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("student_groups.id", ondelete="CASCADE"), nullable=False
    )
    day: Mapped[str] = mapped_column(String(20), index=True, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    has_conflict: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    meeting_link: Mapped[str | None] = mapped_column(String(500), nullable=True)
