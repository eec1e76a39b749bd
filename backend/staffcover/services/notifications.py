from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.orm import Session, sessionmaker

from staffcover.models.notification import Notification, NotificationType
from staffcover.services.records import Vacancy

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def substitution_assigned(self, vacancy: Vacancy, previous: Vacancy | None = None) -> None: ...


class NullNotifier:
    def substitution_assigned(self, vacancy: Vacancy, previous: Vacancy | None = None) -> None:
        return None


def create_notification(
    db: Session,
    *,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.substitution,
) -> Notification:
    record = Notification(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type,
    )
    db.add(record)
    db.flush()
    return record


def _duty_label(vacancy: Vacancy) -> str:
    return f"{vacancy.class_name} {vacancy.subject}, period {vacancy.slot} on {vacancy.date.isoformat()}"


class NotificationWriter:
    """Writes in-app notification rows for committed substitutions.

    Runs in its own transaction after the assignment has been persisted; the
    engine logs and drops any failure raised from here.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def substitution_assigned(self, vacancy: Vacancy, previous: Vacancy | None = None) -> None:
        label = _duty_label(vacancy)
        with self._session_factory() as db:
            with db.begin():
                create_notification(
                    db,
                    user_id=vacancy.substitute_teacher_id,
                    title="Proxy duty assigned",
                    message=f"You are covering {label} for {vacancy.absent_teacher_name or vacancy.absent_teacher_id}.",
                )
                create_notification(
                    db,
                    user_id=vacancy.absent_teacher_id,
                    title="Cover arranged",
                    message=f"{vacancy.substitute_teacher_name} will cover {label}.",
                )
                if (
                    previous is not None
                    and previous.substitute_teacher_id
                    and previous.substitute_teacher_id != vacancy.substitute_teacher_id
                ):
                    create_notification(
                        db,
                        user_id=previous.substitute_teacher_id,
                        title="Proxy duty reassigned",
                        message=f"{label} has been reassigned to {vacancy.substitute_teacher_name}.",
                    )
        logger.debug("Notified %s about substitution %s", vacancy.substitute_teacher_id, vacancy.id)
