from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from staffcover.api.deps import get_actor_id, get_engine
from staffcover.models.timetable_entry import SectionType
from staffcover.schemas.substitution import (
    ArchiveRequest,
    ArchiveResult,
    AssignRequest,
    BatchOutcomeOut,
    BatchRequest,
    CandidateOut,
    ManualVacancyCreate,
    ProposalOutcomeOut,
    ScanRequest,
    ScanResult,
    SubstitutionOut,
    SuggestionRequest,
    UnresolvedOut,
    WorkloadOut,
)
from staffcover.services.engine import SubstitutionEngine
from staffcover.services.records import Vacancy
from staffcover.services.suggestions import Proposal

router = APIRouter()


def _out(vacancy: Vacancy) -> SubstitutionOut:
    return SubstitutionOut.model_validate(vacancy)


@router.post("/substitutions/scan", response_model=ScanResult)
def scan_vacancies(
    payload: ScanRequest,
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> ScanResult:
    created = engine.scanner.scan(payload.date, actor_id=actor_id)
    return ScanResult(date=payload.date, created=[_out(item) for item in created])


@router.post("/substitutions", response_model=SubstitutionOut, status_code=status.HTTP_201_CREATED)
def log_manual_vacancy(
    payload: ManualVacancyCreate,
    response: Response,
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> SubstitutionOut:
    vacancy, created = engine.scanner.log_manual(
        on_date=payload.date,
        slot=payload.slot,
        class_name=payload.class_name,
        subject=payload.subject,
        section=payload.section,
        absent_teacher_id=payload.absent_teacher_id,
        actor_id=actor_id,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return _out(vacancy)


@router.get("/substitutions", response_model=list[SubstitutionOut])
def list_substitutions(
    on_date: date | None = Query(default=None, alias="date"),
    section: SectionType | None = Query(default=None),
    include_archived: bool = Query(default=False),
    engine: SubstitutionEngine = Depends(get_engine),
) -> list[SubstitutionOut]:
    return [_out(item) for item in engine.list_vacancies(on_date, section, include_archived=include_archived)]


@router.get("/substitutions/mine", response_model=list[SubstitutionOut])
def list_my_substitutions(
    teacher_id: str | None = Query(default=None),
    on_date: date | None = Query(default=None, alias="date"),
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> list[SubstitutionOut]:
    target = teacher_id or actor_id
    if not target:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="teacher_id or X-Actor-Id is required")
    return [_out(item) for item in engine.duties_for_substitute(target, on_date)]


@router.post("/substitutions/auto-resolve", response_model=BatchOutcomeOut)
def auto_resolve(
    payload: BatchRequest,
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> BatchOutcomeOut:
    outcome = engine.assignments.auto_resolve(payload.date, payload.section, actor_id=actor_id)
    return BatchOutcomeOut(
        assigned=[_out(item) for item in outcome.assigned],
        unresolved=[
            UnresolvedOut(vacancy=_out(item.vacancy), reason=item.reason, details=item.details)
            for item in outcome.unresolved
        ],
    )


@router.post("/substitutions/suggestions", response_model=list[ProposalOutcomeOut])
def apply_suggestions(
    payload: SuggestionRequest,
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> list[ProposalOutcomeOut]:
    if payload.proposals is not None:
        proposals = [Proposal(vacancy_id=item.vacancy_id, teacher_id=item.teacher_id) for item in payload.proposals]
    elif payload.date is not None:
        proposals = engine.fetch_suggestions(payload.date, payload.section)
    else:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="proposals or date is required")

    outcomes = engine.apply_suggestions(proposals, actor_id=actor_id)
    return [
        ProposalOutcomeOut(
            vacancy_id=item.proposal.vacancy_id,
            teacher_id=item.proposal.teacher_id,
            applied=item.applied,
            reason=item.reason,
            details=item.details,
            substitution=_out(item.vacancy) if item.vacancy is not None else None,
        )
        for item in outcomes
    ]


@router.post("/substitutions/archive", response_model=ArchiveResult)
def archive_substitutions(
    payload: ArchiveRequest,
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> ArchiveResult:
    archived = engine.lifecycle.archive(payload.date, payload.section, confirm=payload.confirm, actor_id=actor_id)
    return ArchiveResult(archived=[item.id for item in archived])


@router.get("/substitutions/{vacancy_id}", response_model=SubstitutionOut)
def get_substitution(vacancy_id: str, engine: SubstitutionEngine = Depends(get_engine)) -> SubstitutionOut:
    return _out(engine.get_vacancy(vacancy_id))


@router.get("/substitutions/{vacancy_id}/candidates", response_model=list[CandidateOut])
def rank_candidates(vacancy_id: str, engine: SubstitutionEngine = Depends(get_engine)) -> list[CandidateOut]:
    return [
        CandidateOut(
            teacher_id=item.teacher.id,
            teacher_name=item.teacher.name,
            role=item.teacher.role.value,
            available=item.availability.available,
            cause=item.availability.cause,
            within_cap=item.within_cap,
            selectable=item.selectable,
            workload=WorkloadOut.model_validate(item.workload),
        )
        for item in engine.assignments.rank(vacancy_id)
    ]


@router.post("/substitutions/{vacancy_id}/assign", response_model=SubstitutionOut)
def assign_substitute(
    vacancy_id: str,
    payload: AssignRequest,
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> SubstitutionOut:
    return _out(engine.assignments.commit(vacancy_id, payload.teacher_id, actor_id=actor_id))


@router.delete("/substitutions/{vacancy_id}", status_code=status.HTTP_204_NO_CONTENT)
def purge_substitution(
    vacancy_id: str,
    confirm: bool = Query(default=False),
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> None:
    engine.lifecycle.purge(vacancy_id, confirm=confirm, actor_id=actor_id)
