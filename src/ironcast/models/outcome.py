# Copyright (c) Syntropy Systems
"""Pydantic models for per-instance outcomes and the aggregate run result."""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import Field

from ironcast.errors import EXIT_FAILURE

from .base import FrozenModel, IroncastBaseModel
from .node import Allocation

OutcomeKind = Literal["created", "error", "timed_out"]


class InstanceState(str, Enum):
    """States of the per-instance provisioning state machine."""

    PENDING = "pending"
    SUBMITTING = "submitting"
    WAITING = "waiting"
    ACTIVE = "active"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def terminal(self) -> bool:
        return self in (InstanceState.ACTIVE, InstanceState.FAILED, InstanceState.TIMED_OUT)


class InstanceOutcome(FrozenModel):
    """Terminal result of provisioning one allocation."""

    allocation: Allocation
    kind: OutcomeKind
    instance_id: Optional[str] = None
    reason: Optional[str] = None
    dry_run: bool = False
    elapsed_seconds: float = 0.0

    @property
    def slot(self) -> int:
        return self.allocation.slot

    @property
    def name(self) -> str:
        return self.allocation.name

    @property
    def node_id(self) -> str:
        return self.allocation.node_id

    @property
    def state(self) -> InstanceState:
        """The terminal state this outcome corresponds to."""
        return {
            "created": InstanceState.ACTIVE,
            "error": InstanceState.FAILED,
            "timed_out": InstanceState.TIMED_OUT,
        }[self.kind]


class RunResult(IroncastBaseModel):
    """Aggregate over every instance outcome of a run."""

    outcomes: list[InstanceOutcome] = Field(default_factory=list)
    created: int = 0
    errors: int = 0
    timed_out: int = 0

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> bool:
        """True when every outcome is ``created``."""
        return self.errors == 0 and self.timed_out == 0 and self.created == self.total

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else EXIT_FAILURE

    def failed_outcomes(self) -> list[InstanceOutcome]:
        """Return the outcomes that did not end in ``created``."""
        return [o for o in self.outcomes if o.kind != "created"]
