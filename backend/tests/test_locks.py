import threading
import time
from datetime import date

import pytest

from staffcover.services.locks import EngineLocks, KeyedLocks


def test_locks_are_dropped_once_released():
    locks = EngineLocks()

    with locks.for_commit("v-1", date(2026, 10, 19), 1, "carla"):
        assert len(locks.vacancies) == 1
        assert len(locks.slots) == 1
        assert len(locks.teachers) == 1

    assert len(locks.vacancies) == 0
    assert len(locks.slots) == 0
    assert len(locks.teachers) == 0


def test_same_key_is_held_by_one_caller_at_a_time():
    locks = KeyedLocks()
    inside = []
    overlaps = []

    def worker():
        with locks.holding(["v-1"]):
            inside.append(1)
            if len(inside) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []
    assert len(locks) == 0


def test_release_happens_even_when_the_body_raises():
    locks = KeyedLocks()

    with pytest.raises(ValueError):
        with locks.holding(["a", "b"]):
            raise ValueError("boom")

    assert len(locks) == 0
    with locks.holding(["a"]):
        pass
