from pydantic import BaseModel, Field


class SubjectLoadIn(BaseModel):
    subject: str = Field(min_length=1, max_length=120)
    periods: int = Field(ge=0, le=60)
    room: str | None = None


class TeacherAssignmentIn(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    teacher_id: str = Field(min_length=1, max_length=64)
    grade: str = Field(min_length=1, max_length=50)
    loads: list[SubjectLoadIn] = Field(default_factory=list)
    target_sections: list[str] = Field(default_factory=list)
    group_periods: int = Field(default=0, ge=0, le=60)
