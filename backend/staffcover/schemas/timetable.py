import datetime as dt

from pydantic import BaseModel, Field, model_validator

from staffcover.models.timetable_entry import SectionType
from staffcover.services.records import WEEKDAY_NAMES, WORK_WEEK_DAYS


class TimetableEntryIn(BaseModel):
    id: str = Field(min_length=1, max_length=100)
    section: SectionType
    class_name: str = Field(min_length=1, max_length=100)
    day: str | None = None
    date: dt.date | None = None
    slot: int = Field(ge=1, le=20)
    subject: str = Field(min_length=1, max_length=120)
    teacher_id: str = Field(default="", max_length=64)
    teacher_name: str = Field(default="", max_length=200)
    block_id: str | None = Field(default=None, max_length=100)
    is_substitution: bool = False
    substitution_id: str | None = Field(default=None, max_length=80)

    @model_validator(mode="after")
    def fill_day(self) -> "TimetableEntryIn":
        if self.date is not None:
            self.day = WEEKDAY_NAMES[self.date.weekday()]
        if not self.day:
            raise ValueError("either day or date is required")
        if self.day not in WORK_WEEK_DAYS:
            raise ValueError(f"day must be one of {', '.join(WORK_WEEK_DAYS)}")
        if not self.teacher_id and not self.block_id:
            raise ValueError("an entry needs a teacher_id or a block_id")
        return self


class TimetableEntryOut(BaseModel):
    id: str
    section: SectionType
    class_name: str
    day: str
    date: dt.date | None = None
    slot: int
    subject: str
    teacher_id: str
    teacher_name: str
    block_id: str | None = None
    is_substitution: bool
    substitution_id: str | None = None

    model_config = {"from_attributes": True}
