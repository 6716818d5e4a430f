"""Metric status state machine.

DRAFT (initial) -> PUBLISHED -> ARCHIVED (terminal). DRAFT may also be
archived directly. No transition moves a definition back to an earlier state.
"""

from enum import Enum

from metric_catalog.common.exceptions import StateError


class MetricStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


TRANSITIONS: dict[MetricStatus, frozenset[MetricStatus]] = {
    MetricStatus.DRAFT: frozenset({MetricStatus.PUBLISHED, MetricStatus.ARCHIVED}),
    MetricStatus.PUBLISHED: frozenset({MetricStatus.ARCHIVED}),
    MetricStatus.ARCHIVED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return MetricStatus(target) in TRANSITIONS[MetricStatus(current)]


def ensure_transition(current: str, target: str) -> MetricStatus:
    """Return the target status, or raise StateError if the move is illegal."""
    if not can_transition(current, target):
        raise StateError(
            f"Cannot move metric from {MetricStatus(current).value} to {MetricStatus(target).value}",
            status=MetricStatus(current).value,
        )
    return MetricStatus(target)


def is_editable(status: str) -> bool:
    """Only drafts accept field edits."""
    return MetricStatus(status) is MetricStatus.DRAFT


def is_selectable(status: str) -> bool:
    """Only published metrics may receive new bindings."""
    return MetricStatus(status) is MetricStatus.PUBLISHED
