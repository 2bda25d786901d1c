# Copyright (c) Syntropy Systems
"""Shared Pydantic model helpers for ironcast."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class IroncastBaseModel(BaseModel):
    """Base model with shared config for ironcast schemas."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )


class FrozenModel(BaseModel):
    """Base model for values that must not change once built."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )
