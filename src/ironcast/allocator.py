# Copyright (c) Syntropy Systems
"""First-fit assignment of nodes to instance slots."""
from __future__ import annotations

from typing import TYPE_CHECKING

from ironcast.errors import InsufficientCapacityError, InvalidRequestError, NoNodesAvailableError
from ironcast.models.node import Allocation

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ironcast.models.node import Node


def instance_name(prefix: str, slot: int) -> str:
    """Derive the instance name for a 1-based slot."""
    return f"{prefix}-{slot}"


def allocate(nodes: Sequence[Node], count: int, prefix: str) -> list[Allocation]:
    """Assign one node to each of slots 1..count, first node first.

    Nodes are consumed from a working pool as they are assigned, so a node
    ID can back at most one slot even if the input repeats it.

    Raises:
        InvalidRequestError: If count is less than 1.
        NoNodesAvailableError: If there are no nodes at all.
        InsufficientCapacityError: If count exceeds the distinct nodes given.

    """
    if count < 1:
        msg = f"count must be >= 1 (got {count})"
        raise InvalidRequestError(msg)

    pool: dict[str, Node] = {}
    for node in nodes:
        _ = pool.setdefault(node.id, node)

    if not pool:
        raise NoNodesAvailableError(count)
    if count > len(pool):
        raise InsufficientCapacityError(count, len(pool))

    allocations: list[Allocation] = []
    for slot in range(1, count + 1):
        node_id = next(iter(pool))
        del pool[node_id]
        allocations.append(
            Allocation(slot=slot, name=instance_name(prefix, slot), node_id=node_id)
        )
    return allocations
