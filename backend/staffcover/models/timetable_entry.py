import datetime as dt
from enum import Enum

from sqlalchemy import Boolean, Date, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from staffcover.db.base import Base


class SectionType(str, Enum):
    PRIMARY = "PRIMARY"
    SECONDARY_BOYS = "SECONDARY_BOYS"
    SECONDARY_GIRLS = "SECONDARY_GIRLS"
    SENIOR_SECONDARY_BOYS = "SENIOR_SECONDARY_BOYS"
    SENIOR_SECONDARY_GIRLS = "SENIOR_SECONDARY_GIRLS"


class TimetableEntry(Base):
    __tablename__ = "timetable_entries"

    id: Mapped[str] = mapped_column(String(80), primary_key=True)
    section: Mapped[SectionType] = mapped_column(SAEnum(SectionType, name="section_type"), nullable=False)
    class_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    day: Mapped[str] = mapped_column(String(12), nullable=False, index=True)
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True, index=True)
    slot: Mapped[int] = mapped_column(Integer, nullable=False)
    subject: Mapped[str] = mapped_column(String(120), nullable=False)
    teacher_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    teacher_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    block_id: Mapped[str | None] = mapped_column(String(80), nullable=True)
    is_substitution: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    substitution_id: Mapped[str | None] = mapped_column(String(80), nullable=True, index=True)
