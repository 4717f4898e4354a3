from types import SimpleNamespace

import pytest

from swarm_layout.accessors import SizeSpec, property_accessor, size_accessor
from swarm_layout.model import LayoutConfigError


def test_property_accessor_reads_mappings_and_attributes():
    read = property_accessor("price")

    assert read({"price": 3}) == 3
    assert read(SimpleNamespace(price=4)) == 4


def test_property_accessor_passes_callables_through():
    func = lambda row: row[0]

    assert property_accessor(func) is func
    with pytest.raises(LayoutConfigError):
        property_accessor(12)


def test_size_accessor_constant_and_key():
    assert size_accessor(8)({"anything": 1}) == 8.0
    assert size_accessor("volume")({"volume": 14}) == 14


def test_size_accessor_linear_mapping():
    spec = SizeSpec(key="volume", values=(0.0, 10.0), sizes=(4.0, 20.0))

    read = size_accessor(spec)

    assert read({"volume": 5}) == pytest.approx(12.0)
    assert read({"volume": 10}) == pytest.approx(20.0)


def test_size_accessor_accepts_mapping_form():
    read = size_accessor({"key": "volume", "values": [0, 100], "sizes": [2, 12]})

    assert read({"volume": 50}) == pytest.approx(7.0)


@pytest.mark.parametrize(
    "spec",
    [True, {"key": "volume", "values": [0, 1]}, {"key": "volume", "values": [0], "sizes": [1, 2]}],
)
def test_size_accessor_rejects_malformed_specs(spec):
    with pytest.raises(LayoutConfigError):
        size_accessor(spec)
