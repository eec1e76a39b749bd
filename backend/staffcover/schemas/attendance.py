import datetime as dt

from pydantic import BaseModel, Field


class AttendanceIn(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    date: dt.date
    check_in: str = Field(default="", max_length=20)
    check_out: str | None = Field(default=None, max_length=20)
