from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from staffcover.api.deps import get_db
from staffcover.models.activity_log import ActivityLog
from staffcover.schemas.activity import ActivityLogOut

router = APIRouter()


@router.get("/activity/logs", response_model=list[ActivityLogOut])
def list_activity_logs(
    entity_id: str | None = Query(default=None),
    action: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[ActivityLogOut]:
    query = select(ActivityLog).order_by(ActivityLog.created_at.desc()).limit(500)
    if entity_id:
        query = query.where(ActivityLog.entity_id == entity_id)
    if action:
        query = query.where(ActivityLog.action == action)
    return list(db.execute(query).scalars())
