"""
Objectives text and the change-request (ICE) log.

Objectives are free text per product and period, keyed
``"{product}__{period_key}"``. Change requests are scored
ICE = impact * confidence / max(1, effort) and kept newest first.
"""

import logging
from dataclasses import asdict, dataclass, replace
from datetime import date

from .config import CHANGE_REQUESTS_KEY, OBJECTIVES_KEYS
from .periods import PeriodSelector
from .store import KeyValueStore

logger = logging.getLogger(__name__)

STATUSES = ("open", "planned", "done")


def objective_key(product: str, selector: PeriodSelector) -> str:
    return f"{product}__{selector.key}"


def _objectives(kv: KeyValueStore, scope: str) -> dict:
    stored = kv.get(OBJECTIVES_KEYS[scope])
    if stored is not None and not isinstance(stored, dict):
        logger.warning("Ignoring malformed %s objectives: %r", scope, stored)
        return {}
    return stored or {}


def load_objective(kv: KeyValueStore, scope: str, product: str, selector: PeriodSelector) -> str:
    objectives = _objectives(kv, scope)
    return objectives.get(objective_key(product, selector), "")


def save_objective(
    kv: KeyValueStore,
    scope: str,
    product: str,
    selector: PeriodSelector,
    text: str,
) -> None:
    objectives = dict(_objectives(kv, scope))
    objectives[objective_key(product, selector)] = text
    kv.set(OBJECTIVES_KEYS[scope], objectives)


def ice_score(impact: float, confidence: float, effort: float) -> float:
    return round(impact * confidence / max(1, effort), 1)


@dataclass(frozen=True)
class ChangeRequest:
    title: str
    desc: str
    impact: int
    confidence: int
    effort: int
    ice: float
    status: str = "open"
    created: str = ""

    @classmethod
    def create(
        cls,
        title: str,
        desc: str = "",
        impact: int = 6,
        confidence: int = 7,
        effort: int = 3,
        created: date | None = None,
    ) -> "ChangeRequest":
        if not title or not title.strip():
            raise ValueError("change request needs a title")
        for name, score in (("impact", impact), ("confidence", confidence), ("effort", effort)):
            if not 1 <= score <= 10:
                raise ValueError(f"{name} must be between 1 and 10, got {score}")
        return cls(
            title=title,
            desc=desc,
            impact=impact,
            confidence=confidence,
            effort=effort,
            ice=ice_score(impact, confidence, effort),
            created=(created or date.today()).isoformat(),
        )


def load_change_requests(kv: KeyValueStore) -> list[ChangeRequest]:
    requests = []
    stored = kv.get(CHANGE_REQUESTS_KEY)
    if not isinstance(stored, list):
        stored = []
    for item in stored:
        try:
            requests.append(ChangeRequest(**item))
        except TypeError:
            logger.warning("Skipping malformed change request: %r", item)
    return requests


def _save(kv: KeyValueStore, requests: list[ChangeRequest]) -> list[ChangeRequest]:
    kv.set(CHANGE_REQUESTS_KEY, [asdict(r) for r in requests])
    return requests


def add_change_request(kv: KeyValueStore, request: ChangeRequest) -> list[ChangeRequest]:
    """Prepend a request to the stored log."""
    return _save(kv, [request, *load_change_requests(kv)])


def set_change_request_status(kv: KeyValueStore, index: int, status: str) -> list[ChangeRequest]:
    if status not in STATUSES:
        raise ValueError(f"status must be one of {STATUSES}, got {status!r}")
    requests = load_change_requests(kv)
    requests[index] = replace(requests[index], status=status)
    return _save(kv, requests)


def delete_change_request(kv: KeyValueStore, index: int) -> list[ChangeRequest]:
    requests = load_change_requests(kv)
    return _save(kv, [r for i, r in enumerate(requests) if i != index])
