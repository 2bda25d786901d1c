# Copyright (c) Syntropy Systems
"""Pytest fixtures for ironcast tests."""

from __future__ import annotations

import os
import tempfile
import threading
import time
from collections.abc import Generator
from pathlib import Path
from typing import Callable, Optional

import pytest

from ironcast.errors import ControlPlaneError
from ironcast.models.node import Node
from ironcast.models.request import ProvisionRequest

# Store original cwd at module load time
_original_cwd = Path.cwd()


class FakeClock:
    """Deterministic monotonic clock; sleeping advances it instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self.now

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
            self.now += seconds


class FakeControlPlaneClient:
    """In-memory control plane with scripted instance status sequences.

    ``statuses`` maps an instance name to the statuses reported by
    successive ``get_instance_status`` calls; the last one repeats. Names
    without a script report ACTIVE.
    """

    def __init__(
        self,
        nodes: list[Node] | None = None,
        images: dict[str, str] | None = None,
        networks: dict[str, str] | None = None,
        statuses: dict[str, list[str]] | None = None,
        fail_create: set[str] | None = None,
        fail_status: set[str] | None = None,
        fail_deploy_interface: bool = False,
        call_delay: float = 0.0,
    ) -> None:
        self.nodes = nodes if nodes is not None else []
        self.images = images if images is not None else {"ubuntu": "img-1"}
        self.networks = networks if networks is not None else {"prov": "net-1"}
        self.statuses = statuses or {}
        self.fail_create = fail_create or set()
        self.fail_status = fail_status or set()
        self.fail_deploy_interface = fail_deploy_interface
        self.call_delay = call_delay

        self.calls: list[tuple[str, tuple[object, ...]]] = []
        self.created: dict[str, dict[str, Optional[str]]] = {}
        self._names_by_id: dict[str, str] = {}
        self._polls: dict[str, int] = {}
        self._lock = threading.Lock()

    def _record(self, method: str, *args: object) -> None:
        with self._lock:
            self.calls.append((method, args))

    def calls_to(self, method: str) -> list[tuple[object, ...]]:
        with self._lock:
            return [args for name, args in self.calls if name == method]

    def resolve_image(self, ref: str) -> str | None:
        self._record("resolve_image", ref)
        return self.images.get(ref)

    def resolve_network(self, ref: str) -> str | None:
        self._record("resolve_network", ref)
        return self.networks.get(ref)

    def list_available_nodes(self, resource_class: str | None = None) -> list[Node]:
        self._record("list_available_nodes", resource_class)
        return list(self.nodes)

    def set_node_deploy_interface(self, node_id: str, interface: str) -> None:
        self._record("set_node_deploy_interface", node_id, interface)
        if self.fail_deploy_interface:
            msg = "deploy interface cannot be changed"
            raise ControlPlaneError(msg)

    def create_instance(
        self,
        name: str,
        network_id: str,
        image_id: str,
        node_id: str,
        ssh_key: str | None = None,
    ) -> str:
        self._record("create_instance", name, network_id, image_id, node_id, ssh_key)
        if self.call_delay:
            time.sleep(self.call_delay)
        if name in self.fail_create:
            msg = f"Failed to create server {name}: quota exceeded"
            raise ControlPlaneError(msg)
        instance_id = f"srv-{name}"
        with self._lock:
            self.created[instance_id] = {
                "name": name,
                "network_id": network_id,
                "image_id": image_id,
                "node_id": node_id,
                "ssh_key": ssh_key,
            }
            self._names_by_id[instance_id] = name
        return instance_id

    def get_instance_status(self, instance_id: str) -> str:
        self._record("get_instance_status", instance_id)
        if self.call_delay:
            time.sleep(self.call_delay)
        with self._lock:
            name = self._names_by_id[instance_id]
            index = self._polls.get(instance_id, 0)
            self._polls[instance_id] = index + 1
        if name in self.fail_status:
            msg = f"Failed to show server {instance_id}: connection refused"
            raise ControlPlaneError(msg)
        script = self.statuses.get(name, ["ACTIVE"])
        return script[min(index, len(script) - 1)]


def make_nodes(count: int, resource_class: str | None = "baremetal") -> list[Node]:
    """Build allocatable nodes node-1..node-N."""
    return [
        Node(
            id=f"node-{i}",
            name=f"rack1-u{i}",
            provision_state="available",
            maintenance=False,
            resource_class=resource_class,
        )
        for i in range(1, count + 1)
    ]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def in_temp_dir(temp_dir: Path) -> Generator[Path, None, None]:
    """Run the test from inside an empty temporary directory."""
    os.chdir(temp_dir)
    yield temp_dir
    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def fake_clock() -> FakeClock:
    """A fake monotonic clock with an instant sleep."""
    return FakeClock()


@pytest.fixture
def nodes() -> Callable[..., list[Node]]:
    """Factory for allocatable nodes."""
    return make_nodes


@pytest.fixture
def fake_client() -> Callable[..., FakeControlPlaneClient]:
    """Factory for scripted control-plane clients."""
    return FakeControlPlaneClient


@pytest.fixture
def make_request() -> Callable[..., ProvisionRequest]:
    """Factory for provisioning requests with test-friendly defaults."""

    def _make(**overrides: object) -> ProvisionRequest:
        fields: dict[str, object] = {
            "count": 1,
            "image": "ubuntu",
            "network": "prov",
            "timeout_seconds": 60,
            "parallelism": 2,
            "poll_interval": 5,
        }
        fields.update(overrides)
        return ProvisionRequest.model_validate(fields)

    return _make
