from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from staffcover.db.base import Base


class CombinedBlock(Base):
    __tablename__ = "combined_blocks"

    id: Mapped[str] = mapped_column(String(80), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    section_names: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # [{"teacher_id", "teacher_name", "subject", "room"}]
    allocations: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
