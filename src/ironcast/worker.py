# Copyright (c) Syntropy Systems
"""Per-instance provisioning state machine."""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable, Optional

from ironcast.errors import ControlPlaneError
from ironcast.models.outcome import InstanceOutcome, InstanceState, OutcomeKind

if TYPE_CHECKING:
    from ironcast.client import ControlPlaneClient
    from ironcast.models.node import Allocation
    from ironcast.models.request import ProvisionRequest

logger = logging.getLogger(__name__)

STATUS_ACTIVE = "ACTIVE"
STATUS_ERROR = "ERROR"

ERROR_STATE_REASON = "instance entered error state"

Clock = Callable[[], float]
Sleep = Callable[[float], None]
StateListener = Callable[["Allocation", InstanceState], None]


class ProvisioningWorker:
    """Drives one allocation from PENDING to a terminal state.

    PENDING -> SUBMITTING -> WAITING -> ACTIVE | FAILED | TIMED_OUT

    A dry run goes straight from PENDING to a synthetic ACTIVE without
    touching the control plane. Control-plane errors never escape ``run``;
    they become a FAILED outcome.
    """

    allocation: Allocation
    state: InstanceState
    instance_id: Optional[str]

    def __init__(
        self,
        allocation: Allocation,
        client: ControlPlaneClient,
        request: ProvisionRequest,
        image_id: str,
        network_id: str,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleep = time.sleep,
        on_state: StateListener | None = None,
    ) -> None:
        """Initialize a worker for a single allocation.

        Args:
            allocation: Slot, instance name and node this worker owns
            client: Control-plane client, possibly shared with other workers
            request: The run's provisioning request
            image_id: Resolved image ID
            network_id: Resolved network ID
            clock: Monotonic time source in seconds
            sleep: Blocking wait used between status polls
            on_state: Called with each state the worker enters

        """
        self.allocation = allocation
        self.client = client
        self.request = request
        self.image_id = image_id
        self.network_id = network_id
        self._clock = clock
        self._sleep = sleep
        self._on_state = on_state
        self._started_at = 0.0

        self.state = InstanceState.PENDING
        self.instance_id = None

    def run(self) -> InstanceOutcome:
        """Provision the instance and return its terminal outcome."""
        self._started_at = self._clock()
        self._enter(InstanceState.PENDING)
        logger.info(
            "Provisioning %s on node %s slot=%d",
            self.allocation.name,
            self.allocation.node_id,
            self.allocation.slot,
        )

        if self.request.dry_run:
            logger.info(
                "DRY-RUN: would provision %s on %s with image %s, network %s",
                self.allocation.name,
                self.allocation.node_id,
                self.image_id,
                self.network_id,
            )
            self._enter(InstanceState.ACTIVE)
            return self._outcome("created", dry_run=True)

        self._enter(InstanceState.SUBMITTING)
        self._configure_deploy_interface()
        try:
            self.instance_id = self.client.create_instance(
                self.allocation.name,
                self.network_id,
                self.image_id,
                self.allocation.node_id,
                self.request.ssh_key,
            )
        except ControlPlaneError as e:
            return self._fail(str(e))

        return self._wait_for_active()

    def _configure_deploy_interface(self) -> None:
        interface = self.request.deploy_interface
        if not interface:
            return
        try:
            self.client.set_node_deploy_interface(self.allocation.node_id, interface)
        except ControlPlaneError as e:
            # Not every deployment allows changing the deploy interface
            logger.warning(
                "Ignoring deploy interface failure node=%s interface=%s: %s",
                self.allocation.node_id,
                interface,
                e,
            )

    def _wait_for_active(self) -> InstanceOutcome:
        self._enter(InstanceState.WAITING)
        deadline = self._clock() + self.request.timeout_seconds
        instance_id = self.instance_id or ""

        while True:
            try:
                status = self.client.get_instance_status(instance_id)
            except ControlPlaneError as e:
                return self._fail(str(e))

            normalized = status.strip().upper()
            if normalized == STATUS_ACTIVE:
                self._enter(InstanceState.ACTIVE)
                logger.info("Provisioned %s (id=%s)", self.allocation.name, instance_id)
                return self._outcome("created")
            if normalized == STATUS_ERROR:
                return self._fail(ERROR_STATE_REASON)

            remaining = deadline - self._clock()
            if remaining <= 0:
                return self._time_out()

            logger.debug(
                "Waiting on %s instance=%s status=%s remaining=%.0fs",
                self.allocation.name,
                instance_id,
                status,
                remaining,
            )
            self._sleep(min(self.request.poll_interval, remaining))

    def _fail(self, reason: str) -> InstanceOutcome:
        self._enter(InstanceState.FAILED)
        logger.error(
            "Provisioning %s failed instance=%s: %s",
            self.allocation.name,
            self.instance_id or "-",
            reason,
        )
        return self._outcome("error", reason=reason)

    def _time_out(self) -> InstanceOutcome:
        self._enter(InstanceState.TIMED_OUT)
        reason = (
            f"timed out after {self.request.timeout_seconds:g}s waiting for "
            f"instance {self.instance_id} to become {STATUS_ACTIVE}"
        )
        # The remote build is left running
        logger.error("Provisioning %s %s", self.allocation.name, reason)
        return self._outcome("timed_out", reason=reason)

    def _enter(self, state: InstanceState) -> None:
        self.state = state
        logger.debug(
            "state=%s slot=%d name=%s node=%s instance=%s",
            state.value,
            self.allocation.slot,
            self.allocation.name,
            self.allocation.node_id,
            self.instance_id or "-",
        )
        if self._on_state is not None:
            self._on_state(self.allocation, state)

    def _outcome(
        self,
        kind: OutcomeKind,
        *,
        reason: str | None = None,
        dry_run: bool = False,
    ) -> InstanceOutcome:
        return InstanceOutcome(
            allocation=self.allocation,
            kind=kind,
            instance_id=self.instance_id,
            reason=reason,
            dry_run=dry_run,
            elapsed_seconds=max(0.0, self._clock() - self._started_at),
        )
