# Copyright (c) Syntropy Systems
"""Selection of allocatable bare-metal nodes."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ironcast.client import ControlPlaneClient
    from ironcast.models.node import Node

logger = logging.getLogger(__name__)


def select_nodes(
    client: ControlPlaneClient,
    resource_class: str | None = None,
) -> list[Node]:
    """Return nodes that are available and not in maintenance.

    The client is asked to filter server-side; the result is filtered again
    here so a client that ignores a filter cannot leak unusable nodes.
    Order is whatever the control plane reported.

    Raises:
        ControlPlaneError: If the node listing fails.

    """
    reported = client.list_available_nodes(resource_class)

    candidates = [
        node
        for node in reported
        if node.allocatable
        and (resource_class is None or node.resource_class == resource_class)
    ]

    skipped = len(reported) - len(candidates)
    if skipped:
        logger.debug("Skipped %d node(s) not matching selection filters", skipped)
    logger.info(
        "Found %d allocatable node(s) resource_class=%s",
        len(candidates),
        resource_class or "-",
    )
    return candidates
