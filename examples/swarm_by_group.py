"""Example pipeline: lay out response times per service and render them as TikZ."""

import numpy as np

from swarm_layout import (
    Annotation,
    LayoutConfig,
    build_layer_context,
    compute_swarm,
    generate_tikz_document,
)
from swarm_layout.tikz_codegen import TikzOptions

SERVICES = {
    "auth": (120.0, 15.0, "#1f77b4"),
    "search": (180.0, 40.0, "#ff7f0e"),
    "billing": (150.0, 25.0, "#2ca02c"),
}


def make_rows(seed: int = 7):
    rng = np.random.default_rng(seed)
    rows = []
    for service, (mean, spread, color) in SERVICES.items():
        for i, latency in enumerate(rng.normal(mean, spread, size=40)):
            rows.append({"id": f"{service}-{i}", "service": service, "latency": float(latency), "color": color})
    return rows


def main() -> None:
    rows = make_rows()
    computation = compute_swarm(
        rows,
        width=600,
        height=400,
        value="latency",
        group="service",
        id="id",
        color="color",
        size=8,
        value_scale={"type": "linear", "min": "auto", "max": "auto", "nice": True},
        config=LayoutConfig(spacing=1.0, gap=20.0, iterations=150),
    )
    result = computation.result

    print("Nodes:", len(result.nodes))
    print("Residual overlap:", result.residual_overlap)
    for key, group in result.groups.items():
        members = [node for node in result.nodes if node.group == key]
        spread = max(node.secondary for node in members) - min(node.secondary for node in members)
        print(f"  {key}: center={group.center:.1f} extent={group.extent:.1f} spread={spread:.1f}")

    slowest = max(result.nodes, key=lambda node: node.value)
    context = build_layer_context(
        computation, [Annotation(match={"id": slowest.id}, note=f"slowest: {slowest.value:.0f} ms")]
    )
    print(generate_tikz_document(context, options=TikzOptions(tick_count=6)))


if __name__ == "__main__":
    main()
