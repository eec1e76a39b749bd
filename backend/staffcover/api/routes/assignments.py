from fastapi import APIRouter, Depends, status

from staffcover.api.deps import get_actor_id, get_engine
from staffcover.schemas.assignment import TeacherAssignmentIn
from staffcover.services.engine import SubstitutionEngine
from staffcover.services.records import LoadProfile, SubjectLoad

router = APIRouter()


@router.put("/assignments", status_code=status.HTTP_204_NO_CONTENT)
def import_assignments(
    payload: list[TeacherAssignmentIn],
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> None:
    profiles = [
        LoadProfile(
            id=item.id,
            teacher_id=item.teacher_id,
            grade=item.grade,
            loads=tuple(SubjectLoad(**load.model_dump()) for load in item.loads),
            target_sections=tuple(item.target_sections),
            group_periods=item.group_periods,
        )
        for item in payload
    ]
    engine.import_load_profiles(profiles, actor_id=actor_id)
