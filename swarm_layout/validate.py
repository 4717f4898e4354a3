import math
import numbers
from typing import Iterable, Mapping

from .model import ORIENTATIONS, Group, GroupKey, LayoutConfig, LayoutConfigError


def _ensure_finite(name: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise LayoutConfigError(f'{name} must be a number, got {value!r}')
    value = float(value)
    if not math.isfinite(value):
        raise LayoutConfigError(f'{name} must be finite, got {value!r}')
    return value


def validate_config(config: LayoutConfig) -> None:
    """Reject configurations the resolver cannot run with."""

    spacing = _ensure_finite('spacing', config.spacing)
    if spacing < 0:
        raise LayoutConfigError(f'spacing must be >= 0, got {spacing}')
    gap = _ensure_finite('gap', config.gap)
    if gap < 0:
        raise LayoutConfigError(f'gap must be >= 0, got {gap}')
    strength = _ensure_finite('force_strength', config.force_strength)
    if not 0.0 < strength <= 1.0:
        raise LayoutConfigError(f'force_strength must be in (0, 1], got {strength}')
    centering = _ensure_finite('centering', config.centering)
    if not 0.0 <= centering <= 1.0:
        raise LayoutConfigError(f'centering must be in [0, 1], got {centering}')
    iterations = config.iterations
    if isinstance(iterations, bool) or not isinstance(iterations, numbers.Integral):
        raise LayoutConfigError(f'iterations must be an integer, got {iterations!r}')
    if iterations < 0:
        raise LayoutConfigError(f'iterations must be >= 0, got {iterations}')
    if config.orientation not in ORIENTATIONS:
        raise LayoutConfigError(
            f'orientation must be one of {", ".join(ORIENTATIONS)}, got {config.orientation!r}'
        )


def validate_groups(keys: Iterable[GroupKey], groups: Mapping[GroupKey, Group]) -> None:
    """Ensure every referenced group key resolves to a finite group span."""

    for key in keys:
        group = groups.get(key)
        if group is None:
            raise LayoutConfigError(f'unknown group key {key!r}')
        if not (math.isfinite(group.center) and math.isfinite(group.extent)):
            raise LayoutConfigError(f'group {key!r} maps to a non-finite span')
        if group.extent < 0:
            raise LayoutConfigError(f'group {key!r} has negative extent {group.extent}')
