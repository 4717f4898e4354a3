"""Configuration helpers for the layout engine."""

from __future__ import annotations

import copy
from dataclasses import fields
from typing import Any, Mapping

from .model import LayoutConfig, LayoutConfigError

_DEFAULT_LAYOUT_CONFIG = LayoutConfig()

# camelCase spellings accepted from JSON payloads
_ALIASES = {
    "forceStrength": "force_strength",
    "simulationIterations": "iterations",
    "layout": "orientation",
}


def default_layout_config() -> LayoutConfig:
    return copy.deepcopy(_DEFAULT_LAYOUT_CONFIG)


def layout_config_from_mapping(mapping: Mapping[str, Any]) -> LayoutConfig:
    """Build a :class:`LayoutConfig` from a plain mapping, rejecting unknown keys."""

    known = {f.name for f in fields(LayoutConfig)}
    kwargs = {}
    for key, value in mapping.items():
        name = _ALIASES.get(key, key)
        if name not in known:
            raise LayoutConfigError(f"unknown layout option {key!r}")
        kwargs[name] = value
    config = default_layout_config()
    for name, value in kwargs.items():
        setattr(config, name, value)
    return config


__all__ = ["default_layout_config", "layout_config_from_mapping"]
