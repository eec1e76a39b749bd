import datetime as dt

from pydantic import BaseModel, Field, field_validator

from staffcover.models.timetable_entry import SectionType
from staffcover.services.records import is_teaching_day


class SubstitutionOut(BaseModel):
    id: str
    date: dt.date
    slot: int
    class_name: str
    subject: str
    section: SectionType
    absent_teacher_id: str
    absent_teacher_name: str
    substitute_teacher_id: str
    substitute_teacher_name: str
    is_archived: bool
    is_resolved: bool

    model_config = {"from_attributes": True}


class ManualVacancyCreate(BaseModel):
    date: dt.date
    slot: int = Field(ge=1, le=20)
    class_name: str = Field(min_length=1, max_length=100)
    subject: str = Field(min_length=1, max_length=120)
    section: SectionType
    absent_teacher_id: str = Field(min_length=1, max_length=64)

    @field_validator("date")
    @classmethod
    def teaching_day_only(cls, value: dt.date) -> dt.date:
        if not is_teaching_day(value):
            raise ValueError("vacancies can only be logged Sunday to Thursday")
        return value


class ScanRequest(BaseModel):
    date: dt.date


class ScanResult(BaseModel):
    date: dt.date
    created: list[SubstitutionOut]


class AssignRequest(BaseModel):
    teacher_id: str = Field(min_length=1, max_length=64)


class WorkloadOut(BaseModel):
    teacher_id: str
    week_start: dt.date
    week_end: dt.date
    base: int
    groups: int
    proxy: int
    total: int
    cap: int
    remaining: int

    model_config = {"from_attributes": True}


class AvailabilityOut(BaseModel):
    teacher_id: str
    on_date: dt.date
    slot: int
    available: bool
    cause: str
    conflicting_entry_ids: list[str]
    conflicting_vacancy_ids: list[str]

    model_config = {"from_attributes": True}


class CandidateOut(BaseModel):
    teacher_id: str
    teacher_name: str
    role: str
    available: bool
    cause: str
    within_cap: bool
    selectable: bool
    workload: WorkloadOut


class BatchRequest(BaseModel):
    date: dt.date
    section: SectionType | None = None


class UnresolvedOut(BaseModel):
    vacancy: SubstitutionOut
    reason: str
    details: dict = Field(default_factory=dict)


class BatchOutcomeOut(BaseModel):
    assigned: list[SubstitutionOut]
    unresolved: list[UnresolvedOut]


class ProposalIn(BaseModel):
    vacancy_id: str = Field(min_length=1, max_length=80)
    teacher_id: str = Field(min_length=1, max_length=64)


class SuggestionRequest(BaseModel):
    # With no explicit proposals the configured suggestion service is asked for the date/section.
    proposals: list[ProposalIn] | None = None
    date: dt.date | None = None
    section: SectionType | None = None


class ProposalOutcomeOut(BaseModel):
    vacancy_id: str
    teacher_id: str
    applied: bool
    reason: str | None = None
    details: dict = Field(default_factory=dict)
    substitution: SubstitutionOut | None = None


class ArchiveRequest(BaseModel):
    date: dt.date
    section: SectionType
    confirm: bool = False


class ArchiveResult(BaseModel):
    archived: list[str]
