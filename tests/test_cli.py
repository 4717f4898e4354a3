import json

import pytest

import swarm_layout.__main__ as cli
from swarm_layout import LayoutConfigError


def _write_rows(tmp_path, payload):
    path = tmp_path / "rows.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_main_prints_positions(tmp_path, capsys):
    rows = [
        {"id": "p1", "group": "a", "value": 1.0},
        {"id": "p2", "group": "a", "value": 1.0},
        {"id": "p3", "group": "b", "value": 3.0},
    ]
    path = _write_rows(tmp_path, rows)

    cli.main([str(path), "--id-key", "id", "--width", "200", "--height", "100"])

    out = capsys.readouterr().out
    assert "Nodes: 3" in out
    assert "Groups: a, b" in out
    assert "Iterations: 120" in out
    assert "p3 [b]" in out


def test_main_reads_object_payload_options(tmp_path, capsys):
    payload = {
        "data": [{"group": "a", "value": 1.0}, {"group": "a", "value": 1.0}],
        "config": {"simulationIterations": 0},
        "size": 20,
    }
    path = _write_rows(tmp_path, payload)

    cli.main([str(path), "--width", "200", "--height", "100", "--spacing", "2"])

    out = capsys.readouterr().out
    assert "Iterations: 0" in out
    assert "Residual overlap: 22.000000" in out


def test_main_writes_tikz_document(tmp_path, monkeypatch):
    rows = [{"id": "p1", "group": "a", "value": 1.0}, {"id": "p2", "group": "b", "value": 2.0}]
    path = _write_rows(tmp_path, rows)
    tikz_path = tmp_path / "out" / "swarm.tex"
    rendered = []

    def _generate_document(context, **kwargs):
        rendered.append((context, kwargs))
        return "tikz document"

    monkeypatch.setattr(cli, "generate_tikz_document", _generate_document)

    cli.main(
        [
            str(path),
            "--id-key",
            "id",
            "--annotate",
            "p2=outlier",
            "--debug-mesh",
            "--tikz-output-path",
            str(tikz_path),
        ]
    )

    assert tikz_path.read_text(encoding="utf-8") == "tikz document"
    context, kwargs = rendered[0]
    assert [node.id for node in context.nodes] == ["p1", "p2"]
    assert [a.note for a in context.annotations] == ["outlier"]
    assert context.annotations[0].matches(context.nodes[1])
    assert kwargs["options"].debug_mesh is True


def test_main_renders_real_document(tmp_path):
    rows = [{"group": "a", "value": v} for v in (1.0, 1.0, 2.0)]
    path = _write_rows(tmp_path, rows)
    tikz_path = tmp_path / "swarm.tex"

    cli.main([str(path), "--tikz-output-path", str(tikz_path)])

    document = tikz_path.read_text(encoding="utf-8")
    assert document.startswith("\\documentclass")
    assert document.count("\\filldraw") == 3


def test_main_rejects_invalid_config(tmp_path):
    path = _write_rows(tmp_path, [{"group": "a", "value": 1.0}])

    with pytest.raises(LayoutConfigError):
        cli.main([str(path), "--force-strength", "0"])


def test_main_rejects_malformed_payload(tmp_path):
    path = _write_rows(tmp_path, {"rows": []})

    with pytest.raises(LayoutConfigError):
        cli.main([str(path)])


def test_main_rejects_non_numeric_scale_bound(tmp_path, capsys):
    path = _write_rows(tmp_path, [{"group": "a", "value": 1.0}])

    with pytest.raises(SystemExit) as exc:
        cli.main([str(path), "--scale-min", "abc"])

    assert exc.value.code == 2
    err = capsys.readouterr().err
    assert "--scale-min" in err
    assert "expected a number or 'auto'" in err


def test_main_accepts_auto_and_numeric_scale_bounds(tmp_path, capsys):
    path = _write_rows(tmp_path, [{"group": "a", "value": 1.0}, {"group": "a", "value": 3.0}])

    cli.main([str(path), "--scale-min", "0", "--scale-max", "auto"])

    assert "Nodes: 2" in capsys.readouterr().out
