# Copyright (c) Syntropy Systems
"""The immutable provisioning request."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .base import FrozenModel

DEFAULT_DEPLOY_INTERFACE = "direct"
DEFAULT_INSTANCE_PREFIX = "bm"
DEFAULT_TIMEOUT_SECONDS = 3600
DEFAULT_PARALLELISM = 10
DEFAULT_POLL_INTERVAL = 5.0


class ProvisionRequest(FrozenModel):
    """Configuration for one provisioning run.

    Built once from flags, environment and config file, then passed to
    every component. Instances are frozen.
    """

    count: int = Field(ge=1)
    image: str = Field(min_length=1)
    network: str = Field(min_length=1)
    resource_class: Optional[str] = None
    deploy_interface: Optional[str] = DEFAULT_DEPLOY_INTERFACE
    ssh_key: Optional[str] = None
    instance_prefix: str = Field(default=DEFAULT_INSTANCE_PREFIX, min_length=1)
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    parallelism: int = Field(default=DEFAULT_PARALLELISM, ge=1)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    dry_run: bool = False
