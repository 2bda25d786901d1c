# Copyright (c) Syntropy Systems
"""Configuration management for ironcast."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import cast

import yaml
from pydantic import ValidationError

from ironcast.errors import InvalidRequestError
from ironcast.models.request import DEFAULT_POLL_INTERVAL, ProvisionRequest

CONFIG_FILENAME = "ironcast.yaml"


@dataclass
class IroncastConfig:
    """Settings that are not part of a single provisioning request."""

    # Seconds between instance status polls
    poll_interval: float = DEFAULT_POLL_INTERVAL

    # Executable used to talk to the control plane
    openstack_command: str = "openstack"

    # Upper bound on a single openstack CLI call (seconds)
    command_timeout: float = 300.0

    log_level: str = "INFO"


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find the nearest ironcast.yaml by walking up from start_path.

    Returns None if no config file is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        current = current.parent

    # Check root
    candidate = current / CONFIG_FILENAME
    if candidate.is_file():
        return candidate

    return None


def get_global_config_dir() -> Path:
    """Get the global ironcast config directory (~/.ironcast)."""
    return Path.home() / ".ironcast"


def load_config(config_path: Path | None = None) -> IroncastConfig:
    """Load configuration from an ironcast.yaml or defaults.

    Looks for config in:
    1. Provided config_path
    2. Nearest ironcast.yaml walking up from the working directory
    3. ~/.ironcast/config.yaml
    4. Defaults
    """
    config = IroncastConfig()

    if config_path is None:
        config_path = find_config_file()
        if config_path is None:
            global_config = get_global_config_dir() / "config.yaml"
            if global_config.exists():
                config_path = global_config
    elif not config_path.exists():
        msg = f"Config file not found: {config_path}"
        raise InvalidRequestError(msg)

    if config_path is not None and config_path.exists():
        with config_path.open() as f:
            try:
                loaded: object = yaml.safe_load(f)
            except yaml.YAMLError as e:
                msg = f"Invalid config file {config_path}: {e}"
                raise InvalidRequestError(msg) from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            msg = f"Invalid config file {config_path}: expected a mapping of settings"
            raise InvalidRequestError(msg)
        data = cast("dict[str, object]", loaded)

        poll_interval = data.get("poll_interval")
        if isinstance(poll_interval, (int, float)) and poll_interval > 0:
            config.poll_interval = float(poll_interval)
        openstack_command = data.get("openstack_command")
        if isinstance(openstack_command, str) and openstack_command:
            config.openstack_command = openstack_command
        command_timeout = data.get("command_timeout")
        if isinstance(command_timeout, (int, float)) and command_timeout > 0:
            config.command_timeout = float(command_timeout)
        log_level = data.get("log_level")
        if isinstance(log_level, str):
            config.log_level = log_level.upper()

    return config


def build_request(**fields: object) -> ProvisionRequest:
    """Build a ProvisionRequest, reporting bad input as InvalidRequestError."""
    # Empty optional strings from the environment mean "not set"
    for key in ("resource_class", "ssh_key", "deploy_interface"):
        if fields.get(key) == "":
            fields[key] = None

    try:
        return ProvisionRequest.model_validate(fields)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}"
            for err in e.errors()
        )
        msg = f"Invalid provisioning request: {problems}"
        raise InvalidRequestError(msg) from e
