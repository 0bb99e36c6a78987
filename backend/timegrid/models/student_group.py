import uuid

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from timegrid.db.base import Base


class StudentGroup(Base):
    __tablename__ = "student_groups"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), index=True, nullable=False)
    department: Mapped[str | None] = mapped_column(String(200), nullable=True)
    year_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
