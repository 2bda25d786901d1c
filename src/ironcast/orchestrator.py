# Copyright (c) Syntropy Systems
"""End-to-end provisioning: pre-flight checks, dispatch and aggregation."""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable

from pydantic import Field

from ironcast.aggregator import aggregate
from ironcast.allocator import allocate
from ironcast.dispatcher import dispatch
from ironcast.errors import ResolutionError
from ironcast.models.base import FrozenModel
from ironcast.models.node import Allocation, Node
from ironcast.selector import select_nodes
from ironcast.worker import ProvisioningWorker

if TYPE_CHECKING:
    from ironcast.client import ControlPlaneClient
    from ironcast.dispatcher import OutcomeListener
    from ironcast.models.outcome import InstanceOutcome, RunResult
    from ironcast.models.request import ProvisionRequest
    from ironcast.worker import Clock, Sleep, StateListener

logger = logging.getLogger(__name__)


class ProvisionPlan(FrozenModel):
    """Everything decided before any instance is created."""

    image_id: str
    network_id: str
    candidates: list[Node] = Field(default_factory=list)
    allocations: list[Allocation] = Field(default_factory=list)


def _resolve(kind: str, ref: str, resolver: Callable[[str], str | None]) -> str:
    resolved = resolver(ref)
    if not resolved:
        raise ResolutionError(kind, ref)
    return resolved


def prepare(request: ProvisionRequest, client: ControlPlaneClient) -> ProvisionPlan:
    """Resolve references, select nodes and allocate them to slots.

    Uses read-only calls only, so it is safe in dry-run mode.

    Raises:
        ResolutionError: If the image or network cannot be found.
        NoNodesAvailableError: If no node is allocatable.
        InsufficientCapacityError: If fewer nodes than requested are allocatable.
        ControlPlaneError: If a lookup call fails outright.

    """
    image_id = _resolve("image", request.image, client.resolve_image)
    network_id = _resolve("network", request.network, client.resolve_network)

    candidates = select_nodes(client, request.resource_class)
    allocations = allocate(candidates, request.count, request.instance_prefix)

    logger.info(
        "Using image=%s network=%s count=%d parallelism=%d",
        image_id,
        network_id,
        request.count,
        request.parallelism,
    )
    return ProvisionPlan(
        image_id=image_id,
        network_id=network_id,
        candidates=candidates,
        allocations=allocations,
    )


def execute(
    plan: ProvisionPlan,
    request: ProvisionRequest,
    client: ControlPlaneClient,
    *,
    on_outcome: OutcomeListener | None = None,
    on_state: StateListener | None = None,
    clock: Clock = time.monotonic,
    sleep: Sleep = time.sleep,
) -> RunResult:
    """Provision every allocation in the plan and aggregate the outcomes."""

    def work(allocation: Allocation) -> InstanceOutcome:
        worker = ProvisioningWorker(
            allocation,
            client,
            request,
            plan.image_id,
            plan.network_id,
            clock=clock,
            sleep=sleep,
            on_state=on_state,
        )
        return worker.run()

    outcomes = dispatch(plan.allocations, request.parallelism, work, on_outcome)
    result = aggregate(outcomes)
    logger.info(
        "Run finished created=%d errors=%d timed_out=%d",
        result.created,
        result.errors,
        result.timed_out,
    )
    return result


def provision(
    request: ProvisionRequest,
    client: ControlPlaneClient,
    *,
    on_outcome: OutcomeListener | None = None,
    on_state: StateListener | None = None,
    clock: Clock = time.monotonic,
    sleep: Sleep = time.sleep,
) -> RunResult:
    """Run a whole provisioning batch.

    Pre-flight errors propagate before any instance is attempted; per-instance
    failures only show up in the returned RunResult.
    """
    plan = prepare(request, client)
    return execute(
        plan,
        request,
        client,
        on_outcome=on_outcome,
        on_state=on_state,
        clock=clock,
        sleep=sleep,
    )
