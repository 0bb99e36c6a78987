import uuid

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from timegrid.db.base import Base


class TeacherAvailability(Base):
    __tablename__ = "teacher_availabilities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Keyed by teacher name, matching how lessons reference teachers in uploads.
    teacher: Mapped[str] = mapped_column(String(200), index=True, nullable=False)
    day: Mapped[str] = mapped_column(String(20), nullable=False)
    start_time: Mapped[str] = mapped_column(String(16), nullable=False)
    end_time: Mapped[str] = mapped_column(String(16), nullable=False)
