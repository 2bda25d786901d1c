# Copyright (c) Syntropy Systems
"""Aggregation of instance outcomes into a run result."""
from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from ironcast.models.outcome import RunResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ironcast.models.outcome import InstanceOutcome


def aggregate(outcomes: Iterable[InstanceOutcome]) -> RunResult:
    """Count outcomes by kind, keeping per-instance detail ordered by slot."""
    ordered = sorted(outcomes, key=lambda o: o.slot)
    counts = Counter(o.kind for o in ordered)
    return RunResult(
        outcomes=ordered,
        created=counts["created"],
        errors=counts["error"],
        timed_out=counts["timed_out"],
    )
