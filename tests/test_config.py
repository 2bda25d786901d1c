# Copyright (c) Syntropy Systems
"""Tests for configuration, request building and openrc parsing."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from ironcast.config import build_request, find_config_file, load_config
from ironcast.credentials import load_openrc, parse_openrc
from ironcast.errors import InvalidRequestError
from ironcast.models.node import Node
from ironcast.models.outcome import InstanceState


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self, in_temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(in_temp_dir))

        config = load_config()

        assert config.poll_interval == 5
        assert config.openstack_command == "openstack"
        assert config.command_timeout == 300
        assert config.log_level == "INFO"

    def test_found_by_walking_up(self, in_temp_dir: Path) -> None:
        _ = (in_temp_dir / "ironcast.yaml").write_text(
            "poll_interval: 2\nopenstack_command: /opt/osc/bin/openstack\nlog_level: debug\n"
        )
        nested = in_temp_dir / "a" / "b"
        nested.mkdir(parents=True)

        assert find_config_file(nested) == (in_temp_dir / "ironcast.yaml").resolve()

        config = load_config()
        assert config.poll_interval == 2
        assert config.openstack_command == "/opt/osc/bin/openstack"
        assert config.log_level == "DEBUG"

    def test_invalid_values_ignored(self, temp_dir: Path) -> None:
        path = temp_dir / "custom.yaml"
        _ = path.write_text("poll_interval: -1\ncommand_timeout: soon\nunknown: 1\n")

        config = load_config(path)

        assert config.poll_interval == 5
        assert config.command_timeout == 300

    def test_explicit_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(InvalidRequestError, match="Config file not found"):
            _ = load_config(temp_dir / "nope.yaml")

    def test_malformed_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "broken.yaml"
        _ = path.write_text("poll_interval: [5\n")

        with pytest.raises(InvalidRequestError, match="Invalid config file"):
            _ = load_config(path)

    def test_non_mapping_document(self, in_temp_dir: Path) -> None:
        _ = (in_temp_dir / "ironcast.yaml").write_text("just a string\n")

        with pytest.raises(InvalidRequestError, match="expected a mapping"):
            _ = load_config()

    def test_empty_file_uses_defaults(self, temp_dir: Path) -> None:
        path = temp_dir / "empty.yaml"
        _ = path.write_text("")

        config = load_config(path)

        assert config.poll_interval == 5


class TestBuildRequest:
    """Tests for build_request."""

    def test_defaults(self) -> None:
        request = build_request(count=2, image="ubuntu", network="prov")

        assert request.deploy_interface == "direct"
        assert request.instance_prefix == "bm"
        assert request.timeout_seconds == 3600
        assert request.parallelism == 10
        assert request.dry_run is False

    def test_empty_optionals_are_unset(self) -> None:
        request = build_request(
            count=1, image="ubuntu", network="prov", ssh_key="", resource_class="",
            deploy_interface="",
        )

        assert request.ssh_key is None
        assert request.resource_class is None
        assert request.deploy_interface is None

    @pytest.mark.parametrize(
        ("field", "value"),
        [("count", 0), ("parallelism", 0), ("timeout_seconds", 0), ("image", "")],
    )
    def test_invalid_input(self, field: str, value: object) -> None:
        fields: dict[str, object] = {"count": 1, "image": "ubuntu", "network": "prov"}
        fields[field] = value

        with pytest.raises(InvalidRequestError, match=field):
            _ = build_request(**fields)

    def test_request_is_frozen(self) -> None:
        request = build_request(count=1, image="ubuntu", network="prov")

        with pytest.raises(ValidationError):
            request.count = 5  # type: ignore[misc]


class TestOpenrc:
    """Tests for openrc parsing."""

    def test_parse_exports(self) -> None:
        text = """#!/usr/bin/env bash
# Keystone v3 credentials
export OS_AUTH_URL=https://keystone.example.com:5000/v3
export OS_PROJECT_NAME="bare metal"
export OS_USERNAME='ops'
OS_REGION_NAME=RegionOne  # trailing comment
echo "Please enter your password: "
read -sr OS_PASSWORD_INPUT
export OS_PASSWORD=$OS_PASSWORD_INPUT
"""
        env = parse_openrc(text)

        assert env == {
            "OS_AUTH_URL": "https://keystone.example.com:5000/v3",
            "OS_PROJECT_NAME": "bare metal",
            "OS_USERNAME": "ops",
            "OS_REGION_NAME": "RegionOne",
            "OS_PASSWORD": "$OS_PASSWORD_INPUT",
        }

    def test_load_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(InvalidRequestError, match="openrc file not found"):
            _ = load_openrc(temp_dir / "openrc.sh")

    def test_load_file(self, temp_dir: Path) -> None:
        path = temp_dir / "openrc.sh"
        _ = path.write_text("export OS_CLOUD=lab\n")

        assert load_openrc(path) == {"OS_CLOUD": "lab"}


class TestModels:
    """Tests for model parsing."""

    def test_node_from_cli_json(self) -> None:
        node = Node.model_validate(
            {
                "UUID": "4b5e1c2a",
                "Name": "rack1-u1",
                "Provisioning State": "available",
                "Maintenance": False,
                "Resource Class": "baremetal",
                "Power State": "power off",
            }
        )

        assert node.id == "4b5e1c2a"
        assert node.resource_class == "baremetal"
        assert node.allocatable

    @pytest.mark.parametrize(("raw", "expected"), [("True", True), ("false", False), (None, False)])
    def test_node_maintenance_strings(self, raw: object, expected: bool) -> None:
        node = Node.model_validate(
            {"UUID": "n", "Provisioning State": "available", "Maintenance": raw}
        )

        assert node.maintenance is expected
        assert node.allocatable is not expected

    def test_terminal_states(self) -> None:
        terminal = {state for state in InstanceState if state.terminal}

        assert terminal == {InstanceState.ACTIVE, InstanceState.FAILED, InstanceState.TIMED_OUT}
