from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, DateTime, Enum as SAEnum, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from staffcover.db.base import Base


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    INCHARGE_ALL = "INCHARGE_ALL"
    INCHARGE_PRIMARY = "INCHARGE_PRIMARY"
    INCHARGE_SECONDARY = "INCHARGE_SECONDARY"
    TEACHER_PRIMARY = "TEACHER_PRIMARY"
    TEACHER_SECONDARY = "TEACHER_SECONDARY"
    TEACHER_SENIOR_SECONDARY = "TEACHER_SENIOR_SECONDARY"
    ADMIN_STAFF = "ADMIN_STAFF"


class Teacher(Base):
    __tablename__ = "teachers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[UserRole] = mapped_column(SAEnum(UserRole, name="user_role"), nullable=False)
    secondary_roles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_resigned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
