import pytest

from swarm_layout.config import default_layout_config, layout_config_from_mapping
from swarm_layout.model import Group, LayoutConfig, LayoutConfigError
from swarm_layout.validate import validate_config, validate_groups


def test_default_config_values():
    config = default_layout_config()

    assert config == LayoutConfig()
    assert config.spacing == 2.0
    assert config.force_strength == 1.0
    assert config.iterations == 120
    assert config.orientation == "vertical"
    assert config.bounded is True
    assert config.unified is False


def test_default_config_is_a_fresh_copy():
    first = default_layout_config()
    first.spacing = 9.0

    assert default_layout_config().spacing == 2.0


def test_config_from_mapping_accepts_camel_case_aliases():
    config = layout_config_from_mapping(
        {"forceStrength": 0.3, "simulationIterations": 40, "layout": "horizontal", "gap": 4}
    )

    assert config.force_strength == 0.3
    assert config.iterations == 40
    assert config.orientation == "horizontal"
    assert config.gap == 4


def test_config_from_mapping_rejects_unknown_keys():
    with pytest.raises(LayoutConfigError) as exc:
        layout_config_from_mapping({"alpha": 0.1})

    assert "alpha" in str(exc.value)


def test_validate_config_accepts_defaults_and_edges():
    validate_config(LayoutConfig())
    validate_config(LayoutConfig(spacing=0.0, iterations=0, force_strength=1.0, centering=0.0))


@pytest.mark.parametrize(
    "field, value",
    [
        ("spacing", "2"),
        ("spacing", float("inf")),
        ("gap", -0.5),
        ("force_strength", -0.1),
        ("centering", 1.5),
        ("iterations", True),
        ("orientation", "radial"),
    ],
)
def test_validate_config_rejects_bad_values(field, value):
    config = LayoutConfig()
    setattr(config, field, value)

    with pytest.raises(LayoutConfigError) as exc:
        validate_config(config)

    assert field in str(exc.value)


def test_validate_groups():
    groups = {"a": Group("a", 0, 10.0, 5.0), "b": Group("b", 1, float("nan"), 5.0)}

    validate_groups(["a", "a"], groups)
    with pytest.raises(LayoutConfigError):
        validate_groups(["c"], groups)
    with pytest.raises(LayoutConfigError):
        validate_groups(["b"], groups)
    with pytest.raises(LayoutConfigError):
        validate_groups(["n"], {"n": Group("n", 0, 1.0, -1.0)})
