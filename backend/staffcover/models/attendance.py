import datetime as dt
import uuid

from sqlalchemy import Date, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from staffcover.db.base import Base

MEDICAL_LEAVE = "MEDICAL"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_attendance_user_date"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    check_in: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    check_out: Mapped[str | None] = mapped_column(String(20), nullable=True)
