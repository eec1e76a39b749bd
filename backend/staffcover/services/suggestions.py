"""Advisory substitute proposals.

Proposals come either straight from a request body or from an external
suggestion service. They are never trusted: each one runs through the same
commit path as a manual pick and is reported as applied or rejected.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from time import sleep
from typing import Any

import httpx

from staffcover.core.exceptions import (
    AdvisoryUnavailable,
    ResourceNotFoundError,
    ValidationRejected,
    VacancyArchived,
)
from staffcover.services import audit
from staffcover.services.assignment import AssignmentEngine, RankedCandidate
from staffcover.services.records import Vacancy

logger = logging.getLogger(__name__)

NOT_FOUND = "not-found"
VACANCY_ARCHIVED = "vacancy-archived"


@dataclass(frozen=True)
class Proposal:
    vacancy_id: str
    teacher_id: str


@dataclass(frozen=True)
class ProposalOutcome:
    proposal: Proposal
    applied: bool
    vacancy: Vacancy | None = None
    reason: str | None = None
    details: dict = field(default_factory=dict)


def parse_proposals(payload: Any) -> list[Proposal]:
    """Accept `[{vacancy_id, teacher_id}]`, `[{subId, teacherId}]` or either wrapped in `{"proposals": [...]}`."""
    if isinstance(payload, dict):
        payload = payload.get("proposals", [])
    if not isinstance(payload, list):
        raise ValueError("expected a list of proposals")

    proposals: list[Proposal] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        vacancy_id = item.get("vacancy_id") or item.get("subId")
        teacher_id = item.get("teacher_id") or item.get("teacherId")
        if vacancy_id and teacher_id:
            proposals.append(Proposal(vacancy_id=str(vacancy_id), teacher_id=str(teacher_id)))
    return proposals


def apply_proposals(
    assignments: AssignmentEngine,
    proposals: Iterable[Proposal],
    *,
    actor_id: str | None = None,
) -> list[ProposalOutcome]:
    outcomes: list[ProposalOutcome] = []
    for proposal in proposals:
        try:
            vacancy = assignments.commit(
                proposal.vacancy_id, proposal.teacher_id, actor_id=actor_id, source="advisory"
            )
        except ValidationRejected as exc:
            outcomes.append(
                ProposalOutcome(proposal=proposal, applied=False, reason=exc.reason.value, details=exc.details)
            )
        except ResourceNotFoundError as exc:
            outcomes.append(ProposalOutcome(proposal=proposal, applied=False, reason=NOT_FOUND, details=exc.details))
        except VacancyArchived as exc:
            outcomes.append(
                ProposalOutcome(proposal=proposal, applied=False, reason=VACANCY_ARCHIVED, details=exc.details)
            )
        else:
            outcomes.append(ProposalOutcome(proposal=proposal, applied=True, vacancy=vacancy))

    applied = sum(1 for item in outcomes if item.applied)
    logger.info("Advisory proposals: %d applied, %d rejected", applied, len(outcomes) - applied)
    return outcomes


class HttpSuggestionSource:
    """Asks an external service for proposals covering a batch of pending vacancies."""

    def __init__(
        self,
        *,
        url: str,
        timeout_s: float = 20.0,
        retries: int = 2,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self.timeout_s = timeout_s
        self.retries = max(1, retries)
        self._transport = transport

    def _request(self, body: dict[str, Any]) -> httpx.Response:
        last_exc: Exception | None = None
        with httpx.Client(timeout=self.timeout_s, transport=self._transport) as client:
            for attempt in range(self.retries):
                try:
                    resp = client.post(self.url, json=body, headers={"Accept": "application/json"})
                    if resp.status_code >= 500 and attempt < self.retries - 1:
                        sleep(2**attempt)
                        continue
                    resp.raise_for_status()
                    return resp
                except httpx.TransportError as exc:
                    last_exc = exc
                    if attempt < self.retries - 1:
                        sleep(2**attempt)
                        continue
        raise AdvisoryUnavailable(str(last_exc) if last_exc else "no response")

    def fetch(
        self,
        vacancies: Sequence[Vacancy],
        candidates: dict[str, list[RankedCandidate]],
    ) -> list[Proposal]:
        body = {
            "vacancies": [
                {
                    "vacancy_id": vacancy.id,
                    **audit.describe_vacancy(vacancy),
                    "subject": vacancy.subject,
                    "candidates": [
                        {
                            "teacher_id": item.teacher.id,
                            "name": item.teacher.name,
                            "weekly_load": item.workload.total,
                        }
                        for item in candidates.get(vacancy.id, [])
                        if item.selectable
                    ],
                }
                for vacancy in vacancies
            ]
        }
        try:
            resp = self._request(body)
            return parse_proposals(resp.json())
        except httpx.HTTPStatusError as exc:
            logger.warning("Suggestion service answered %s", exc.response.status_code)
            raise AdvisoryUnavailable(f"HTTP {exc.response.status_code}") from exc
        except ValueError as exc:
            logger.warning("Suggestion service returned an unusable payload", exc_info=True)
            raise AdvisoryUnavailable(str(exc)) from exc
