from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator
from contextlib import ExitStack, contextmanager
from datetime import date
from threading import Lock


class KeyedLocks:
    """One lock per key, dropped again once no caller holds or waits on it."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[Hashable, Lock] = {}
        self._users: dict[Hashable, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: Hashable) -> Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = Lock()
                self._locks[key] = lock
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: Hashable) -> None:
        with self._guard:
            remaining = self._users[key] - 1
            if remaining:
                self._users[key] = remaining
            else:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def holding(self, keys: Iterable[Hashable]) -> Iterator[None]:
        # Sorted so that two callers holding overlapping key sets cannot deadlock.
        ordered = sorted(set(keys), key=repr)
        with ExitStack() as stack:
            for key in ordered:
                lock = self._checkout(key)
                stack.callback(self._checkin, key)
                stack.enter_context(lock)
            yield


class EngineLocks:
    """Lock families, always taken in the order vacancy -> (date, slot) -> teacher."""

    def __init__(self) -> None:
        self.vacancies = KeyedLocks()
        self.slots = KeyedLocks()
        self.teachers = KeyedLocks()
        self.scans = KeyedLocks()

    @contextmanager
    def for_commit(self, vacancy_id: str, on_date: date, slot: int, teacher_id: str) -> Iterator[None]:
        with self.vacancies.holding([vacancy_id]), self.slots.holding([(on_date, slot)]), self.teachers.holding(
            [teacher_id]
        ):
            yield

    @contextmanager
    def for_vacancies(self, vacancy_ids: Iterable[str]) -> Iterator[None]:
        with self.vacancies.holding(vacancy_ids):
            yield

    @contextmanager
    def for_scan(self, on_date: date) -> Iterator[None]:
        with self.scans.holding([on_date]):
            yield
