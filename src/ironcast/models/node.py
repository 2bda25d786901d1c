# Copyright (c) Syntropy Systems
"""Pydantic models for bare-metal nodes and their allocation to slots."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from .base import FrozenModel

AVAILABLE_STATE = "available"


class Node(FrozenModel):
    """A bare-metal node as reported by ``openstack baremetal node list``."""

    id: str = Field(alias="UUID")
    name: Optional[str] = Field(default=None, alias="Name")
    provision_state: str = Field(alias="Provisioning State")
    maintenance: bool = Field(default=False, alias="Maintenance")
    resource_class: Optional[str] = Field(default=None, alias="Resource Class")

    @field_validator("maintenance", mode="before")
    @classmethod
    def _parse_maintenance(cls, value: object) -> object:
        # --quote minimal can render booleans as strings
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        if value is None:
            return False
        return value

    @property
    def allocatable(self) -> bool:
        """Whether the node is available and not in maintenance."""
        return self.provision_state == AVAILABLE_STATE and not self.maintenance


class Allocation(FrozenModel):
    """One instance slot bound to exactly one node."""

    slot: int = Field(ge=1)
    name: str
    node_id: str
