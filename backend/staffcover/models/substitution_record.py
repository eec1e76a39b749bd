import datetime as dt
from datetime import datetime

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from staffcover.db.base import Base
from staffcover.models.timetable_entry import SectionType

PENDING_SUBSTITUTE_NAME = "PENDING ASSIGNMENT"


class SubstitutionRecord(Base):
    __tablename__ = "substitution_records"
    __table_args__ = (
        UniqueConstraint(
            "date",
            "absent_teacher_id",
            "slot",
            "class_name",
            name="uq_substitution_duty",
        ),
    )

    id: Mapped[str] = mapped_column(String(80), primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    slot: Mapped[int] = mapped_column(Integer, nullable=False)
    class_name: Mapped[str] = mapped_column(String(100), nullable=False)
    subject: Mapped[str] = mapped_column(String(120), nullable=False)
    section: Mapped[SectionType] = mapped_column(SAEnum(SectionType, name="section_type"), nullable=False)
    absent_teacher_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    absent_teacher_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    substitute_teacher_id: Mapped[str] = mapped_column(String(64), nullable=False, default="", index=True)
    substitute_teacher_name: Mapped[str] = mapped_column(
        String(200), nullable=False, default=PENDING_SUBSTITUTE_NAME
    )
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
