# Copyright (c) Syntropy Systems
"""Exception hierarchy for ironcast.

Pre-flight errors abort a run before any instance is created. Per-instance
errors are caught by the provisioning worker and turned into outcomes.
"""
from __future__ import annotations

EXIT_FAILURE = 1
EXIT_INVALID_INPUT = 2


class IroncastError(Exception):
    """Base exception for ironcast operations."""

    exit_code: int = EXIT_FAILURE


class InvalidRequestError(IroncastError):
    """Raised when the provisioning request is malformed."""

    exit_code = EXIT_INVALID_INPUT


class ResolutionError(IroncastError):
    """Raised when an image or network reference cannot be resolved."""

    def __init__(self, kind: str, reference: str) -> None:
        self.kind = kind
        self.reference = reference
        super().__init__(f"{kind.capitalize()} not found: {reference}")


class InsufficientCapacityError(IroncastError):
    """Raised when fewer allocatable nodes exist than instances requested."""

    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Requested {requested} nodes but only {available} available"
        )


class NoNodesAvailableError(InsufficientCapacityError):
    """Raised when the allocatable pool is empty."""

    def __init__(self, requested: int) -> None:
        super().__init__(requested, 0)
        self.args = ("No available bare-metal nodes found",)


class ControlPlaneError(IroncastError):
    """Error from a control-plane call (transport or API failure)."""
