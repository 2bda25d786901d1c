# Copyright (c) Syntropy Systems
"""Bounded-parallel dispatch of provisioning work."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Callable

from ironcast.errors import InvalidRequestError
from ironcast.models.outcome import InstanceOutcome

if TYPE_CHECKING:
    from collections.abc import Sequence
    from concurrent.futures import Future

    from ironcast.models.node import Allocation

logger = logging.getLogger(__name__)

Work = Callable[["Allocation"], InstanceOutcome]
OutcomeListener = Callable[[InstanceOutcome], None]


def dispatch(
    allocations: Sequence[Allocation],
    concurrency: int,
    work: Work,
    on_outcome: OutcomeListener | None = None,
) -> list[InstanceOutcome]:
    """Run work for every allocation, at most ``concurrency`` at a time.

    A new allocation starts as soon as a running one finishes. A failing
    allocation never stops its siblings, and every allocation yields exactly
    one outcome: an exception escaping ``work`` is recorded as an error
    outcome for that allocation.

    Args:
        allocations: Allocations to provision
        concurrency: Maximum number of allocations in flight
        work: Provisions one allocation and returns its outcome
        on_outcome: Called in the calling thread as each outcome arrives;
            an exception it raises is logged and does not stop collection

    Returns:
        One outcome per allocation, ordered by slot.

    Raises:
        InvalidRequestError: If concurrency is less than 1.

    """
    if concurrency < 1:
        msg = f"parallelism must be >= 1 (got {concurrency})"
        raise InvalidRequestError(msg)

    if not allocations:
        return []

    outcomes: list[InstanceOutcome] = []
    max_workers = min(concurrency, len(allocations))
    logger.debug(
        "Dispatching %d allocation(s) with %d worker(s)", len(allocations), max_workers
    )

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ironcast") as executor:
        futures: dict[Future[InstanceOutcome], Allocation] = {
            executor.submit(work, allocation): allocation for allocation in allocations
        }
        for future in as_completed(futures):
            allocation = futures[future]
            try:
                outcome = future.result()
            except Exception as e:  # noqa: BLE001
                logger.exception("Worker for %s crashed", allocation.name)
                outcome = InstanceOutcome(
                    allocation=allocation,
                    kind="error",
                    reason=f"worker crashed: {e}",
                )
            outcomes.append(outcome)
            if on_outcome is not None:
                try:
                    on_outcome(outcome)
                except Exception:  # noqa: BLE001
                    logger.exception("Outcome listener failed for %s", allocation.name)

    outcomes.sort(key=lambda o: o.slot)
    return outcomes
