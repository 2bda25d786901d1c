# Copyright (c) Syntropy Systems
"""Control-plane client backed by the openstack command-line tool."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Protocol, TypeVar

from pydantic import Field, TypeAdapter, ValidationError

from ironcast.errors import ControlPlaneError
from ironcast.models.base import IroncastBaseModel
from ironcast.models.node import Node
from ironcast.runner import CommandError, CommandExecutor

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ironcast.runner import CommandRunner

logger = logging.getLogger(__name__)

BAREMETAL_FLAVOR = "baremetal"


class ControlPlaneClient(Protocol):
    """Operations the provisioning engine needs from the control plane."""

    def resolve_image(self, ref: str) -> str | None:
        ...

    def resolve_network(self, ref: str) -> str | None:
        ...

    def list_available_nodes(self, resource_class: str | None = None) -> list[Node]:
        ...

    def set_node_deploy_interface(self, node_id: str, interface: str) -> None:
        ...

    def create_instance(
        self,
        name: str,
        network_id: str,
        image_id: str,
        node_id: str,
        ssh_key: str | None = None,
    ) -> str:
        ...

    def get_instance_status(self, instance_id: str) -> str:
        ...


class _ShowRecord(IroncastBaseModel):
    """Output of a ``<resource> show`` command."""

    id: str


class _ListRecord(IroncastBaseModel):
    """One row of a ``<resource> list`` command."""

    id: str = Field(alias="ID")
    name: Optional[str] = Field(default=None, alias="Name")


class _ServerRecord(IroncastBaseModel):
    """Output of ``server create`` and ``server show``."""

    id: str
    status: Optional[str] = None


T = TypeVar("T")

_SHOW_ADAPTER = TypeAdapter(_ShowRecord)
_LIST_ADAPTER = TypeAdapter(list[_ListRecord])
_NODES_ADAPTER = TypeAdapter(list[Node])
_SERVER_ADAPTER = TypeAdapter(_ServerRecord)


class OpenStackCLIClient:
    """Talks to the control plane by running ``openstack ... -f json``.

    Each call runs in its own subprocess, so an instance may be shared by
    concurrent provisioning workers.
    """

    command: str
    _executor: CommandExecutor

    def __init__(
        self,
        command: str = "openstack",
        extra_env: Mapping[str, str] | None = None,
        timeout: float = 300.0,
        runner: CommandRunner | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            command: Path or name of the openstack executable
            extra_env: Extra environment, e.g. variables from an openrc file
            timeout: Seconds allowed for one CLI call
            runner: Command runner override for tests

        """
        self.command = command
        self._executor = CommandExecutor(extra_env=extra_env, timeout=timeout, runner=runner)

    def _json(self, args: list[str], *, error_message: str) -> str:
        argv = [self.command, *args, "-f", "json"]
        logger.debug("Running %s", " ".join(argv))
        return self._executor.run(argv, error_message=error_message).stdout

    def _parse(self, adapter: TypeAdapter[T], payload: str, what: str) -> T:
        try:
            return adapter.validate_json(payload)
        except ValidationError as e:
            msg = f"Unexpected output from {what}: {e.error_count()} validation error(s)"
            raise ControlPlaneError(msg) from e

    # --- Reference resolution ---

    def _resolve(self, resource: str, ref: str) -> str | None:
        try:
            payload = self._json([resource, "show", ref], error_message=f"{resource} show failed")
        except CommandError:
            logger.debug("%s show %s failed, trying lookup by name", resource, ref)
        else:
            return self._parse(_SHOW_ADAPTER, payload, f"{resource} show").id

        payload = self._json(
            [resource, "list", "--name", ref],
            error_message=f"Failed to list {resource}s named {ref}",
        )
        records = self._parse(_LIST_ADAPTER, payload, f"{resource} list")
        return records[0].id if records else None

    def resolve_image(self, ref: str) -> str | None:
        """Resolve an image name or ID to its ID, or None if not found."""
        return self._resolve("image", ref)

    def resolve_network(self, ref: str) -> str | None:
        """Resolve a network name or ID to its ID, or None if not found."""
        return self._resolve("network", ref)

    # --- Bare-metal nodes ---

    def list_available_nodes(self, resource_class: str | None = None) -> list[Node]:
        """List nodes in the ``available`` state that are not in maintenance."""
        args = [
            "baremetal", "node", "list",
            "--provision-state", "available",
            "--no-maintenance",
            "--long",
        ]
        if resource_class:
            args += ["--resource-class", resource_class]
        payload = self._json(args, error_message="Failed to list bare-metal nodes")
        return self._parse(_NODES_ADAPTER, payload, "baremetal node list")

    def set_node_deploy_interface(self, node_id: str, interface: str) -> None:
        """Set a node's deploy interface."""
        _ = self._executor.run(
            [self.command, "baremetal", "node", "set", node_id, "--deploy-interface", interface],
            error_message=f"Failed to set deploy interface on node {node_id}",
        )

    # --- Instances ---

    def create_instance(
        self,
        name: str,
        network_id: str,
        image_id: str,
        node_id: str,
        ssh_key: str | None = None,
    ) -> str:
        """Create a bare-metal server pinned to node_id and return its ID."""
        args = [
            "server", "create", name,
            "--nic", f"net-id={network_id}",
            "--image", image_id,
            "--flavor", BAREMETAL_FLAVOR,
            "--hint", f"node={node_id}",
        ]
        if ssh_key:
            args += ["--key-name", ssh_key]
        payload = self._json(args, error_message=f"Failed to create server {name}")
        return self._parse(_SERVER_ADAPTER, payload, "server create").id

    def get_instance_status(self, instance_id: str) -> str:
        """Return the server's current status string (e.g. ``BUILD``)."""
        payload = self._json(
            ["server", "show", instance_id],
            error_message=f"Failed to show server {instance_id}",
        )
        record = self._parse(_SERVER_ADAPTER, payload, "server show")
        if record.status is None:
            msg = f"Server {instance_id} reported no status"
            raise ControlPlaneError(msg)
        return record.status
