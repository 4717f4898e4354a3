"""TikZ renderer for computed swarm layouts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from ..layers import DEFAULT_LAYERS, CustomLayer, LayerContext, LayerSpec, LayerVisitor, render_layers
from .utils import ColorRegistry, format_float, latex_escape

logger = logging.getLogger(__name__)

# 600 px maps to 12 cm
DEFAULT_CM_PER_PX = 0.02
TICK_LEN_PX = 5.0
ANNOTATION_RING_PX = 3.0

standalone_tpl = r"""\documentclass[border=4pt]{standalone}
\usepackage[utf8]{inputenc}
\usepackage{tikz}
\tikzset{
  swarm/grid/.style={line width=0.3pt, gray!30},
  swarm/axis/.style={line width=0.5pt},
  swarm/tick label/.style={font=\scriptsize, inner sep=1pt},
  swarm/circle/.style={line width=0.4pt, draw=black},
  swarm/note/.style={font=\scriptsize, inner sep=1pt},
  swarm/mesh/.style={line width=0.2pt, red!60, dash pattern=on 1pt off 1pt},
}
\begin{document}
%s
\end{document}
"""


@dataclass
class TikzOptions:
    cm_per_px: float = DEFAULT_CM_PER_PX
    tick_count: int = 5
    debug_mesh: bool = False
    default_color: str = "gray"


class TikzLayerVisitor(LayerVisitor[List[str]]):
    """Emits TikZ commands for each layer, in centimetres with the y axis pointing up."""

    def __init__(self, context: LayerContext, options: Optional[TikzOptions] = None) -> None:
        self.options = options or TikzOptions()
        self.colors = ColorRegistry(default=self.options.default_color)
        self._height = context.height

    def point(self, x: float, y: float) -> str:
        scale = self.options.cm_per_px
        return f"({format_float(x * scale)}, {format_float((self._height - y) * scale)})"

    def length(self, px: float) -> str:
        return format_float(px * self.options.cm_per_px)

    def _value_ticks(self, context: LayerContext) -> List[float]:
        ticks = getattr(context.value_scale, "ticks", None)
        if ticks is None:
            return []
        return list(ticks(self.options.tick_count))

    def visit_grid(self, context: LayerContext) -> List[str]:
        lines: List[str] = []
        for tick in self._value_ticks(context):
            pos = context.value_scale(tick)
            if context.orientation == "vertical":
                start, end = self.point(0.0, pos), self.point(context.width, pos)
            else:
                start, end = self.point(pos, 0.0), self.point(pos, context.height)
            lines.append(f"\\draw[swarm/grid] {start} -- {end};")
        return lines

    def visit_axes(self, context: LayerContext) -> List[str]:
        lines: List[str] = [
            f"\\draw[swarm/axis] {self.point(0.0, 0.0)} -- {self.point(0.0, context.height)};",
            f"\\draw[swarm/axis] {self.point(0.0, context.height)} -- "
            f"{self.point(context.width, context.height)};",
        ]

        for tick in self._value_ticks(context):
            pos = context.value_scale(tick)
            label = latex_escape(format_float(tick))
            if context.orientation == "vertical":
                lines.append(
                    f"\\draw[swarm/axis] {self.point(-TICK_LEN_PX, pos)} -- {self.point(0.0, pos)} "
                    f"node[swarm/tick label, anchor=east] {{{label}}};"
                )
            else:
                lines.append(
                    f"\\draw[swarm/axis] {self.point(pos, context.height)} -- "
                    f"{self.point(pos, context.height + TICK_LEN_PX)} node[swarm/tick label, anchor=north] {{{label}}};"
                )

        for group in context.groups:
            label = latex_escape(str(group.key))
            if context.orientation == "vertical":
                at, anchor = self.point(group.center, context.height + TICK_LEN_PX), "north"
            else:
                at, anchor = self.point(-TICK_LEN_PX, group.center), "east"
            lines.append(f"\\node[swarm/tick label, anchor={anchor}] at {at} {{{label}}};")
        return lines

    def visit_circles(self, context: LayerContext) -> List[str]:
        lines: List[str] = []
        for node in context.nodes:
            if node.radius <= 0:
                continue
            color = self.colors.resolve(node.color)
            lines.append(
                f"\\filldraw[swarm/circle, fill={color}] {self.point(node.x, node.y)} "
                f"circle ({self.length(node.radius)});"
            )
        return lines

    def visit_annotations(self, context: LayerContext) -> List[str]:
        lines: List[str] = []
        for annotation in context.annotations:
            for node in context.nodes:
                if not annotation.matches(node):
                    continue
                dx, dy = annotation.offset
                ring = node.radius + ANNOTATION_RING_PX
                anchor = "west" if dx >= 0 else "east"
                lines.append(f"\\draw {self.point(node.x, node.y)} circle ({self.length(ring)});")
                lines.append(
                    f"\\draw {self.point(node.x, node.y)} -- {self.point(node.x + dx, node.y + dy)} "
                    f"node[swarm/note, anchor={anchor}] {{{latex_escape(annotation.note)}}};"
                )
        return lines

    def visit_mesh(self, context: LayerContext) -> List[str]:
        if not self.options.debug_mesh or context.mesh is None:
            return []
        return [
            f"\\draw[swarm/mesh] {self.point(*start)} -- {self.point(*end)};"
            for start, end in context.mesh.cell_edges(context.width, context.height)
        ]

    def visit_custom(self, layer: CustomLayer, context: LayerContext) -> List[str]:
        output = layer.func(context)
        if output is None:
            return []
        if isinstance(output, str):
            return [output]
        return [str(line) for line in output]


def _layer_blocks(names: Sequence[LayerSpec], chunks: Iterable[List[str]]) -> List[Tuple[str, List[str]]]:
    blocks = []
    for spec, chunk in zip(names, chunks):
        label = spec if isinstance(spec, str) else getattr(spec, "label", getattr(spec, "__name__", "custom"))
        blocks.append((str(label), chunk))
    return blocks


def generate_tikz_code(
    context: LayerContext,
    *,
    layers: Sequence[LayerSpec] = DEFAULT_LAYERS,
    options: Optional[TikzOptions] = None,
) -> str:
    """Render ``layers`` of ``context`` as a ``tikzpicture``."""

    visitor = TikzLayerVisitor(context, options)
    chunks = render_layers(layers, context, visitor)

    lines: List[str] = ["\\begin{tikzpicture}"]
    lines.extend("  " + definition for definition in visitor.colors.definitions())
    for label, chunk in _layer_blocks(layers, chunks):
        if not chunk:
            continue
        lines.append(f"  % layer: {label}")
        lines.extend("  " + entry for entry in chunk)
    lines.append("\\end{tikzpicture}")
    logger.debug("generate_tikz_code: %d layer(s), %d line(s)", len(layers), len(lines))
    return "\n".join(lines)


def generate_tikz_document(
    context: LayerContext,
    *,
    layers: Sequence[LayerSpec] = DEFAULT_LAYERS,
    options: Optional[TikzOptions] = None,
) -> str:
    """Render a standalone LaTeX document containing the swarm picture."""

    return standalone_tpl % generate_tikz_code(context, layers=layers, options=options)


__all__ = [
    "TikzLayerVisitor",
    "TikzOptions",
    "generate_tikz_code",
    "generate_tikz_document",
]
