from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from staffcover.api.deps import get_db
from staffcover.core.exceptions import ResourceNotFoundError
from staffcover.models.notification import Notification, NotificationType
from staffcover.schemas.notification import NotificationOut

router = APIRouter()


@router.get("/notifications", response_model=list[NotificationOut])
def list_notifications(
    user_id: str = Query(min_length=1, max_length=64),
    notification_type: NotificationType | None = Query(default=None),
    is_read: bool | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> list[NotificationOut]:
    query = select(Notification).where(Notification.user_id == user_id).order_by(Notification.created_at.desc())
    if notification_type:
        query = query.where(Notification.notification_type == notification_type)
    if is_read is not None:
        query = query.where(Notification.is_read == is_read)
    query = query.offset(offset).limit(limit)
    return list(db.execute(query).scalars())


@router.post("/notifications/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(notification_id: str, db: Session = Depends(get_db)) -> NotificationOut:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise ResourceNotFoundError("Notification", notification_id)
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification
