import uuid

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from staffcover.db.base import Base


class TeacherAssignment(Base):
    __tablename__ = "teacher_assignments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    teacher_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    grade: Mapped[str] = mapped_column(String(50), nullable=False)
    # [{"subject", "periods", "room"}] in display order
    loads: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    target_sections: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    group_periods: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
