import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from swarm_layout import (
    Annotation,
    LayoutConfigError,
    build_layer_context,
    compute_swarm,
    generate_tikz_document,
    layout_config_from_mapping,
    validate_config,
)
from swarm_layout.scales import value_scale_spec_from_mapping
from swarm_layout.tikz_codegen import TikzOptions

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_size(value: Optional[str]) -> Union[float, str, None]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return value


def _parse_groups(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    groups = [part.strip() for part in value.split(",") if part.strip()]
    return groups or None


def _scale_bound(value: str) -> Union[float, str]:
    if value == "auto":
        return value
    try:
        return float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a number or 'auto', got {value!r}") from exc


def _load_payload(path: str) -> Tuple[List[Any], Dict[str, Any]]:
    """Return ``(rows, options)`` from a JSON list or a ``{"data": [...], ...}`` object."""

    with open(path, encoding="utf-8") as fin:
        payload = json.load(fin)
    if isinstance(payload, list):
        return payload, {}
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        options = {key: value for key, value in payload.items() if key != "data"}
        return payload["data"], options
    raise LayoutConfigError("input must be a JSON list of rows or an object with a 'data' list")


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Lay out a swarm plot from JSON data")
    parser.add_argument("path", help="Path to a JSON file with the data rows")
    parser.add_argument("--width", type=float, default=600.0, help="Plot width in px (default: 600)")
    parser.add_argument("--height", type=float, default=400.0, help="Plot height in px (default: 400)")
    parser.add_argument("--groups", help="Comma separated group order, e.g. a,b,c")
    parser.add_argument("--value-key", default="value", help="Row key holding the value (default: value)")
    parser.add_argument("--group-key", default="group", help="Row key holding the group (default: group)")
    parser.add_argument("--id-key", help="Row key holding the node id (default: row index)")
    parser.add_argument("--color-key", help="Row key holding the node color")
    parser.add_argument("--size", help="Circle diameter in px, or a row key holding it (default: 6)")
    parser.add_argument("--spacing", type=float, help="Minimum gap between circle edges")
    parser.add_argument("--gap", type=float, help="Gap between adjacent groups")
    parser.add_argument("--force-strength", type=float, help="Displacement damping in (0, 1]")
    parser.add_argument("--iterations", type=int, help="Number of resolver passes")
    parser.add_argument("--orientation", choices=["vertical", "horizontal"])
    parser.add_argument("--unified", action="store_true", help="Resolve collisions across groups")
    parser.add_argument("--unbounded", action="store_true", help="Do not fold nodes back into their band")
    parser.add_argument("--scale-type", choices=["linear", "log", "symlog"], help="Value scale type")
    parser.add_argument("--scale-min", type=_scale_bound, help="Value scale minimum or 'auto'")
    parser.add_argument("--scale-max", type=_scale_bound, help="Value scale maximum or 'auto'")
    parser.add_argument("--annotate", action="append", default=[], metavar="ID=NOTE",
                        help="Annotate the node with the given id (repeatable)")
    parser.add_argument("--debug-mesh", action="store_true", help="Draw the Voronoi mesh in TikZ output")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--tikz-output-path",
        help="Write a standalone TikZ document of the swarm to the given path",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    logger.info("Loading data from %s", args.path)
    rows, options = _load_payload(args.path)

    overrides = {
        "spacing": args.spacing,
        "gap": args.gap,
        "force_strength": args.force_strength,
        "iterations": args.iterations,
        "orientation": args.orientation,
    }
    config_mapping = dict(options.get("config", {}))
    config_mapping.update({key: value for key, value in overrides.items() if value is not None})
    if args.unified:
        config_mapping["unified"] = True
    if args.unbounded:
        config_mapping["bounded"] = False
    config = layout_config_from_mapping(config_mapping)
    validate_config(config)

    scale_mapping = dict(options.get("valueScale", {}))
    if args.scale_type:
        scale_mapping["type"] = args.scale_type
        if args.scale_type == "log" and "min" not in scale_mapping:
            scale_mapping["min"] = "auto"
    for key, bound in (("min", args.scale_min), ("max", args.scale_max)):
        if bound is not None:
            scale_mapping[key] = bound
    value_scale = value_scale_spec_from_mapping(scale_mapping)

    size = _parse_size(args.size)
    if size is None:
        size = options.get("size", 6)
    groups = _parse_groups(args.groups) or options.get("groups")

    computation = compute_swarm(
        rows,
        width=args.width,
        height=args.height,
        groups=groups,
        value=args.value_key,
        group=args.group_key,
        size=size,
        color=args.color_key,
        id=args.id_key,
        value_scale=value_scale,
        config=config,
    )
    result = computation.result
    logger.info(
        "Layout finished: %d node(s), residual overlap %.3e",
        len(result.nodes),
        result.residual_overlap,
    )

    print(f"Nodes: {len(result.nodes)}")
    print(f"Groups: {', '.join(str(key) for key in computation.group_scale.keys)}")
    print(f"Iterations: {result.iterations}")
    print(f"Residual overlap: {result.residual_overlap:.6f}")
    if result.bounds is None:
        print("Bounds: (empty)")
    else:
        x0, x1, y0, y1 = result.bounds.as_xy(result.orientation)
        print(f"Bounds: x=[{x0:.3f}, {x1:.3f}] y=[{y0:.3f}, {y1:.3f}]")
    print("Positions:")
    for node in result.nodes:
        print(f"  {node.id} [{node.group}] value={node.value:g}: ({node.x:.3f}, {node.y:.3f}) r={node.radius:.3f}")

    if args.tikz_output_path:
        annotations = []
        for entry in args.annotate:
            node_id, _, note = entry.partition("=")
            annotations.append(Annotation(match=_id_matcher(node_id), note=note or node_id))
        context = build_layer_context(computation, annotations)
        output_path = Path(args.tikz_output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Writing TikZ document to %s", output_path)
        document = generate_tikz_document(context, options=TikzOptions(debug_mesh=args.debug_mesh))
        output_path.write_text(document, encoding="utf-8")
        print(f"TikZ document written to {output_path}")


def _id_matcher(node_id: str):
    return lambda node: str(node.id) == node_id


if __name__ == "__main__":
    main(sys.argv[1:])
