from datetime import date

from fastapi import APIRouter, Depends, Query

from staffcover.api.deps import get_actor_id, get_engine
from staffcover.schemas.timetable import TimetableEntryIn, TimetableEntryOut
from staffcover.services.engine import SubstitutionEngine
from staffcover.services.records import DutyEntry

router = APIRouter()


@router.put("/timetable", response_model=list[TimetableEntryOut])
def import_timetable(
    payload: list[TimetableEntryIn],
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> list[TimetableEntryOut]:
    entries = [DutyEntry(**item.model_dump()) for item in payload]
    engine.import_entries(entries, actor_id=actor_id)
    return entries


@router.get("/timetable", response_model=list[TimetableEntryOut])
def list_timetable(
    day: str | None = Query(default=None),
    on_date: date | None = Query(default=None, alias="date"),
    engine: SubstitutionEngine = Depends(get_engine),
) -> list[TimetableEntryOut]:
    return engine.snapshot.entries(day=day, on_date=on_date)
