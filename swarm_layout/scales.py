"""Scale adapters mapping data values and group keys to pixel coordinates."""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .model import Group, GroupKey, LayoutConfigError, Orientation

logger = logging.getLogger(__name__)

Domain = Tuple[float, float]
Range = Tuple[float, float]

SCALE_TYPES: Tuple[str, ...] = ("linear", "log", "symlog")


def _tick_increment(start: float, stop: float, count: int) -> float:
    step = (stop - start) / max(count, 1)
    if step <= 0 or not math.isfinite(step):
        return 0.0
    power = math.floor(math.log10(step))
    error = step / 10 ** power
    if error >= math.sqrt(50):
        factor = 10
    elif error >= math.sqrt(10):
        factor = 5
    elif error >= math.sqrt(2):
        factor = 2
    else:
        factor = 1
    return factor * 10 ** power


def _linear_ticks(start: float, stop: float, count: int) -> List[float]:
    if start == stop:
        return [float(start)]
    lo, hi = min(start, stop), max(start, stop)
    step = _tick_increment(lo, hi, count)
    if step == 0.0:
        return []
    k0 = math.ceil(lo / step - 1e-9)
    k1 = math.floor(hi / step + 1e-9)
    ticks = np.round(np.arange(k0, k1 + 1, dtype=float) * step, 12)
    return [float(t) for t in ticks]


class _ContinuousScale:
    """Shared affine machinery: ``range = r0 + (t(v) - t(d0)) / (t(d1) - t(d0)) * (r1 - r0)``."""

    kind = "continuous"

    def __init__(self, domain: Domain, range: Range) -> None:
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range[0]), float(range[1]))
        self._validate_domain()

    def _validate_domain(self) -> None:
        if not all(math.isfinite(v) for v in self.domain):
            raise LayoutConfigError(f"{self.kind} scale domain must be finite, got {self.domain}")

    def _transform(self, values: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def __call__(self, value: Union[float, Sequence[float], np.ndarray]) -> Any:
        arr = np.asarray(value, dtype=float)
        t0, t1 = self._transform(np.asarray(self.domain, dtype=float))
        r0, r1 = self.range
        if t1 == t0:
            mapped = np.full_like(arr, (r0 + r1) * 0.5, dtype=float)
        else:
            mapped = r0 + (self._transform(arr) - t0) / (t1 - t0) * (r1 - r0)
        if mapped.ndim == 0:
            return float(mapped)
        return mapped

    def ticks(self, count: int = 5) -> List[float]:
        return _linear_ticks(self.domain[0], self.domain[1], count)


class LinearScale(_ContinuousScale):
    kind = "linear"

    def _transform(self, values: np.ndarray) -> np.ndarray:
        return values

    def nice(self, count: int = 10) -> "LinearScale":
        d0, d1 = self.domain
        lo, hi = min(d0, d1), max(d0, d1)
        step = _tick_increment(lo, hi, count)
        if step == 0.0:
            return LinearScale(self.domain, self.range)
        lo = math.floor(lo / step) * step
        hi = math.ceil(hi / step) * step
        domain = (lo, hi) if d0 <= d1 else (hi, lo)
        return LinearScale(domain, self.range)


class LogScale(_ContinuousScale):
    kind = "log"

    def __init__(self, domain: Domain, range: Range, base: float = 10.0) -> None:
        self.base = float(base)
        super().__init__(domain, range)

    def _validate_domain(self) -> None:
        super()._validate_domain()
        d0, d1 = self.domain
        if d0 == 0 or d1 == 0 or (d0 < 0) != (d1 < 0):
            raise LayoutConfigError(f"log scale domain must not include or cross zero, got {self.domain}")
        if self.base <= 0 or self.base == 1:
            raise LayoutConfigError(f"log scale base must be positive and != 1, got {self.base}")

    def _transform(self, values: np.ndarray) -> np.ndarray:
        sign = -1.0 if self.domain[0] < 0 else 1.0
        with np.errstate(divide="ignore", invalid="ignore"):
            return sign * np.log(sign * values) / math.log(self.base)

    def ticks(self, count: int = 5) -> List[float]:
        lo, hi = sorted(abs(v) for v in self.domain)
        sign = -1.0 if self.domain[0] < 0 else 1.0
        p0 = math.ceil(math.log(lo, self.base) - 1e-9)
        p1 = math.floor(math.log(hi, self.base) + 1e-9)
        ticks = [sign * self.base ** p for p in range(p0, p1 + 1)]
        return sorted(ticks)


class SymlogScale(_ContinuousScale):
    kind = "symlog"

    def __init__(self, domain: Domain, range: Range, constant: float = 1.0) -> None:
        if constant <= 0:
            raise LayoutConfigError(f"symlog constant must be positive, got {constant}")
        self.constant = float(constant)
        super().__init__(domain, range)

    def _transform(self, values: np.ndarray) -> np.ndarray:
        return np.sign(values) * np.log1p(np.abs(values / self.constant))


class BandScale:
    """Evenly sized bands separated by ``gap`` pixels."""

    def __init__(self, keys: Sequence[GroupKey], range: Range, gap: float = 0.0) -> None:
        self.keys: List[GroupKey] = list(keys)
        if len(set(self.keys)) != len(self.keys):
            raise LayoutConfigError(f"group keys must be distinct, got {self.keys}")
        self.range = (float(range[0]), float(range[1]))
        self.gap = float(gap)
        count = len(self.keys)
        length = abs(self.range[1] - self.range[0])
        if count:
            self.bandwidth = max((length - self.gap * (count - 1)) / count, 0.0)
        else:
            self.bandwidth = 0.0
        direction = 1.0 if self.range[1] >= self.range[0] else -1.0
        step = self.bandwidth + self.gap
        self._groups: Dict[GroupKey, Group] = {}
        for idx, key in enumerate(self.keys):
            center = self.range[0] + direction * (idx * step + self.bandwidth * 0.5)
            self._groups[key] = Group(key=key, index=idx, center=center, extent=self.bandwidth * 0.5)

    def __call__(self, key: GroupKey) -> Group:
        try:
            return self._groups[key]
        except (KeyError, TypeError) as exc:
            raise LayoutConfigError(f"unknown group key {key!r}") from exc

    @property
    def groups(self) -> Dict[GroupKey, Group]:
        return dict(self._groups)


@dataclass(frozen=True)
class ScaleAdapters:
    """The two mapping operations the layout engine consumes."""

    value_scale: Callable[[float], float]
    group_scale: Callable[[GroupKey], Group]


@dataclass(frozen=True)
class ValueScaleSpec:
    type: str = "linear"
    min: Union[float, str] = 0.0
    max: Union[float, str] = "auto"
    reverse: bool = False
    nice: bool = False
    base: float = 10.0
    constant: float = 1.0


def value_scale_spec_from_mapping(mapping: Mapping[str, Any]) -> ValueScaleSpec:
    allowed = {"type", "min", "max", "reverse", "nice", "base", "constant"}
    unknown = set(mapping) - allowed
    if unknown:
        raise LayoutConfigError(f"unknown value scale option(s): {', '.join(sorted(unknown))}")
    return ValueScaleSpec(**dict(mapping))


def _resolve_bound(name: str, bound: Union[float, str], fallback: float) -> float:
    if bound == "auto":
        return fallback
    if isinstance(bound, bool) or not isinstance(bound, numbers.Real):
        raise LayoutConfigError(f"value scale {name} must be 'auto' or a number, got {bound!r}")
    return float(bound)


def compute_value_scale(
    spec: ValueScaleSpec,
    values: Iterable[float],
    *,
    width: float,
    height: float,
    orientation: Orientation,
) -> _ContinuousScale:
    """Build the value scale for a ``width`` x ``height`` plotting area."""

    arr = np.asarray(list(values), dtype=float)
    if arr.size:
        data_min, data_max = float(np.min(arr)), float(np.max(arr))
    else:
        data_min, data_max = 0.0, 1.0
    lo = _resolve_bound("min", spec.min, data_min)
    hi = _resolve_bound("max", spec.max, data_max)

    if orientation == "vertical":
        rng: Range = (float(height), 0.0)
    else:
        rng = (0.0, float(width))
    if spec.reverse:
        rng = (rng[1], rng[0])

    if spec.type == "linear":
        scale: _ContinuousScale = LinearScale((lo, hi), rng)
        if spec.nice:
            scale = scale.nice()
    elif spec.type == "log":
        scale = LogScale((lo, hi), rng, base=spec.base)
    elif spec.type == "symlog":
        scale = SymlogScale((lo, hi), rng, constant=spec.constant)
    else:
        raise LayoutConfigError(f"unsupported value scale type {spec.type!r}; expected one of {SCALE_TYPES}")

    logger.debug("compute_value_scale: %s domain=%s range=%s", scale.kind, scale.domain, scale.range)
    return scale


def compute_group_scale(
    keys: Sequence[GroupKey],
    *,
    width: float,
    height: float,
    gap: float,
    orientation: Orientation,
) -> BandScale:
    length = width if orientation == "vertical" else height
    return BandScale(keys, (0.0, float(length)), gap=gap)


def infer_group_keys(data: Iterable[Any], read: Callable[[Any], Hashable]) -> List[GroupKey]:
    """Return distinct group keys in order of first appearance."""

    seen: Dict[GroupKey, None] = {}
    for datum in data:
        seen.setdefault(read(datum), None)
    return list(seen)


__all__ = [
    "BandScale",
    "LinearScale",
    "LogScale",
    "SCALE_TYPES",
    "ScaleAdapters",
    "SymlogScale",
    "ValueScaleSpec",
    "compute_group_scale",
    "compute_value_scale",
    "infer_group_keys",
    "value_scale_spec_from_mapping",
]
