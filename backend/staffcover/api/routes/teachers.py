from fastapi import APIRouter, Depends

from staffcover.api.deps import get_actor_id, get_engine
from staffcover.schemas.teacher import TeacherIn, TeacherOut
from staffcover.services.engine import SubstitutionEngine
from staffcover.services.records import TeacherProfile

router = APIRouter()


@router.put("/teachers", response_model=list[TeacherOut])
def import_teachers(
    payload: list[TeacherIn],
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> list[TeacherOut]:
    teachers = [
        TeacherProfile(
            id=item.id,
            name=item.name,
            role=item.role,
            secondary_roles=tuple(item.secondary_roles),
            is_resigned=item.is_resigned,
        )
        for item in payload
    ]
    engine.import_teachers(teachers, actor_id=actor_id)
    return teachers


@router.get("/teachers", response_model=list[TeacherOut])
def list_teachers(engine: SubstitutionEngine = Depends(get_engine)) -> list[TeacherOut]:
    return engine.snapshot.teachers()
