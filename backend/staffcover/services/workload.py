from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from staffcover.services.records import WORK_WEEK_DAYS
from staffcover.services.snapshot import ScheduleSnapshot

DEFAULT_WEEKLY_LOAD_CAP = 35


def work_week_window(reference: date) -> tuple[date, date]:
    """Sunday..Thursday span containing `reference` (Friday/Saturday map to the week just taught)."""
    days_since_sunday = (reference.weekday() + 1) % 7
    week_start = reference - timedelta(days=days_since_sunday)
    return week_start, week_start + timedelta(days=len(WORK_WEEK_DAYS) - 1)


def work_week_dates(reference: date) -> dict[str, date]:
    week_start, _ = work_week_window(reference)
    return {name: week_start + timedelta(days=index) for index, name in enumerate(WORK_WEEK_DAYS)}


@dataclass(frozen=True)
class WorkloadBreakdown:
    teacher_id: str
    week_start: date
    week_end: date
    base: int
    groups: int
    proxy: int
    cap: int

    @property
    def total(self) -> int:
        return self.base + self.groups + self.proxy

    @property
    def remaining(self) -> int:
        return max(0, self.cap - self.total)

    def allows(self, extra_periods: int = 1) -> bool:
        return self.total + extra_periods <= self.cap


def compute_workload(
    snapshot: ScheduleSnapshot,
    teacher_id: str,
    reference: date,
    *,
    cap: int = DEFAULT_WEEKLY_LOAD_CAP,
) -> WorkloadBreakdown:
    week_start, week_end = work_week_window(reference)
    profiles = snapshot.load_profiles_for(teacher_id)
    base = sum(profile.base_periods for profile in profiles)
    groups = sum(max(0, profile.group_periods) for profile in profiles)
    proxy = sum(
        1
        for record in snapshot.substitutions_by(teacher_id)
        if not record.is_archived and week_start <= record.date <= week_end
    )
    return WorkloadBreakdown(
        teacher_id=teacher_id,
        week_start=week_start,
        week_end=week_end,
        base=base,
        groups=groups,
        proxy=proxy,
        cap=cap,
    )
