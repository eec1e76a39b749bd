from fastapi import APIRouter, Depends, status

from staffcover.api.deps import get_actor_id, get_engine
from staffcover.schemas.attendance import AttendanceIn
from staffcover.services.engine import SubstitutionEngine
from staffcover.services.records import AttendanceMark

router = APIRouter()


@router.put("/attendance", status_code=status.HTTP_204_NO_CONTENT)
def record_attendance(
    payload: list[AttendanceIn],
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> None:
    engine.record_attendance([AttendanceMark(**item.model_dump()) for item in payload], actor_id=actor_id)
