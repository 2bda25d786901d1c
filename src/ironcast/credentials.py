# Copyright (c) Syntropy Systems
"""Loading OpenStack credentials from an openrc file."""
from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

from ironcast.errors import InvalidRequestError

if TYPE_CHECKING:
    from pathlib import Path


def parse_openrc(text: str) -> dict[str, str]:
    """Extract variable assignments from openrc file contents.

    Handles ``export KEY=VALUE`` and ``KEY=VALUE`` lines with shell quoting.
    Anything else (comments, prompts, conditionals) is skipped; the file is
    never executed.
    """
    env: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].strip()

        key, sep, value = line.partition("=")
        if not sep or not key.isidentifier():
            continue

        try:
            tokens = shlex.split(value, comments=True)
        except ValueError:
            continue
        env[key] = tokens[0] if tokens else ""

    return env


def load_openrc(path: Path) -> dict[str, str]:
    """Read an openrc file and return the variables it exports."""
    if not path.is_file():
        msg = f"openrc file not found: {path}"
        raise InvalidRequestError(msg)
    return parse_openrc(path.read_text())
