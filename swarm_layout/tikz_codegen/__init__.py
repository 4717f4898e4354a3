"""Swarm layout → TikZ code generation helpers."""

from .generator import (
    TikzLayerVisitor,
    TikzOptions,
    generate_tikz_code,
    generate_tikz_document,
)
from .utils import latex_escape

__all__ = [
    "TikzLayerVisitor",
    "TikzOptions",
    "generate_tikz_code",
    "generate_tikz_document",
    "latex_escape",
]
