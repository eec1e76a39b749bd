from datetime import date

from fastapi import APIRouter, Depends, Query

from staffcover.api.deps import get_engine
from staffcover.schemas.substitution import AvailabilityOut, WorkloadOut
from staffcover.services.engine import SubstitutionEngine

router = APIRouter()


@router.get("/workload/{teacher_id}", response_model=WorkloadOut)
def get_workload(
    teacher_id: str,
    on_date: date = Query(alias="date"),
    engine: SubstitutionEngine = Depends(get_engine),
) -> WorkloadOut:
    return WorkloadOut.model_validate(engine.workload(teacher_id, on_date))


@router.get("/availability/{teacher_id}", response_model=AvailabilityOut)
def get_availability(
    teacher_id: str,
    on_date: date = Query(alias="date"),
    slot: int = Query(ge=1, le=20),
    engine: SubstitutionEngine = Depends(get_engine),
) -> AvailabilityOut:
    return AvailabilityOut.model_validate(engine.availability(teacher_id, on_date, slot))
