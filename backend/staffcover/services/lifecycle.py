from __future__ import annotations

import logging
from datetime import date

from staffcover.core.exceptions import ConfirmationRequired, ResourceNotFoundError
from staffcover.models.timetable_entry import SectionType
from staffcover.services.ledger_store import LedgerStore
from staffcover.services.locks import EngineLocks
from staffcover.services.records import Vacancy, shadow_entry_id
from staffcover.services.snapshot import ScheduleSnapshot

logger = logging.getLogger(__name__)


class LifecycleManager:
    """Archive and purge of substitution records. Both require explicit confirmation."""

    def __init__(self, *, snapshot: ScheduleSnapshot, store: LedgerStore, locks: EngineLocks) -> None:
        self._snapshot = snapshot
        self._store = store
        self._locks = locks

    def archive(
        self,
        on_date: date,
        section: SectionType,
        *,
        confirm: bool = False,
        actor_id: str | None = None,
    ) -> list[Vacancy]:
        if not confirm:
            raise ConfirmationRequired("archive", {"date": on_date.isoformat(), "section": section.value})

        targets = [
            item.id for item in self._snapshot.vacancies(on_date=on_date, section=section, include_archived=False)
        ]
        if not targets:
            return []

        with self._locks.for_vacancies(targets):
            # A concurrent purge may have removed some of them meanwhile.
            current = [self._snapshot.vacancy(item) for item in targets]
            live = [item.id for item in current if item is not None and not item.is_archived]
            if not live:
                return []
            self._store.archive(
                live,
                actor_id=actor_id,
                details={"date": on_date.isoformat(), "section": section.value},
            )
            archived = self._snapshot.mark_archived(live)

        logger.info("Archived %d substitution records for %s %s", len(archived), on_date.isoformat(), section.value)
        return archived

    def purge(self, vacancy_id: str, *, confirm: bool = False, actor_id: str | None = None) -> Vacancy:
        if not confirm:
            raise ConfirmationRequired("purge", {"vacancy_id": vacancy_id})

        with self._locks.for_vacancies([vacancy_id]):
            vacancy = self._snapshot.vacancy(vacancy_id)
            if vacancy is None:
                raise ResourceNotFoundError("Substitution", vacancy_id)
            shadow_id = shadow_entry_id(vacancy.id)
            self._store.purge(vacancy, shadow_id, actor_id=actor_id)
            self._snapshot.remove_vacancy(vacancy.id, shadow_id)

        logger.info("Purged substitution %s and its shadow entry", vacancy_id)
        return vacancy
