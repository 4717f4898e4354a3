"""Property accessors used to derive node fields from raw data rows."""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Tuple, Union

from .model import LayoutConfigError

Accessor = Callable[[Any], Any]
AccessorSpec = Union[str, Accessor]


@dataclass(frozen=True)
class SizeSpec:
    """Linear mapping from a datum property to a circle diameter."""

    key: AccessorSpec
    values: Tuple[float, float]
    sizes: Tuple[float, float]


SizeLike = Union[float, int, AccessorSpec, SizeSpec, Mapping[str, Any]]


def property_accessor(spec: AccessorSpec) -> Accessor:
    """Return a callable reading ``spec`` from a mapping or an object."""

    if callable(spec):
        return spec
    if not isinstance(spec, str):
        raise LayoutConfigError(f"accessor must be a key or a callable, got {spec!r}")

    def read(datum: Any) -> Any:
        if isinstance(datum, Mapping):
            return datum[spec]
        return getattr(datum, spec)

    read.__name__ = f"get_{spec}"
    return read


def _pair(name: str, value: Any) -> Tuple[float, float]:
    if not (isinstance(value, (list, tuple)) and len(value) == 2):
        raise LayoutConfigError(f"size {name} must be a [min, max] pair, got {value!r}")
    lo, hi = value
    if not all(isinstance(v, numbers.Real) and not isinstance(v, bool) for v in (lo, hi)):
        raise LayoutConfigError(f"size {name} must be numeric, got {value!r}")
    return float(lo), float(hi)


def size_spec_from_mapping(mapping: Mapping[str, Any]) -> SizeSpec:
    try:
        key = mapping["key"]
        values = mapping["values"]
        sizes = mapping["sizes"]
    except KeyError as exc:
        raise LayoutConfigError(f"size spec is missing {exc.args[0]!r}") from exc
    return SizeSpec(key=key, values=_pair("values", values), sizes=_pair("sizes", sizes))


def size_accessor(spec: SizeLike) -> Accessor:
    """Return a callable giving the circle diameter for a datum.

    ``spec`` is a constant, a key or callable, or a :class:`SizeSpec`
    (a mapping with ``key``/``values``/``sizes`` is accepted too).
    """

    if isinstance(spec, bool):
        raise LayoutConfigError(f"invalid size {spec!r}")
    if isinstance(spec, numbers.Real):
        constant = float(spec)
        return lambda datum: constant
    if isinstance(spec, Mapping):
        spec = size_spec_from_mapping(spec)
    if isinstance(spec, SizeSpec):
        read = property_accessor(spec.key)
        (v0, v1), (s0, s1) = spec.values, spec.sizes
        span = v1 - v0

        def scaled(datum: Any) -> float:
            if span == 0:
                return s0
            return s0 + (float(read(datum)) - v0) / span * (s1 - s0)

        return scaled
    return property_accessor(spec)


__all__ = [
    "Accessor",
    "AccessorSpec",
    "SizeLike",
    "SizeSpec",
    "property_accessor",
    "size_accessor",
    "size_spec_from_mapping",
]
