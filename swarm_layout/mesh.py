"""Nearest-node lookup over final node positions."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import QhullError, Voronoi, cKDTree

from .model import Node

logger = logging.getLogger(__name__)

Segment = Tuple[Tuple[float, float], Tuple[float, float]]


class NodeMesh:
    """Maps a pointer position to the closest node, as a Voronoi mesh would."""

    def __init__(self, nodes: Sequence[Node]) -> None:
        self.nodes: List[Node] = list(nodes)
        self._points = np.array([(node.x, node.y) for node in self.nodes], dtype=float).reshape(-1, 2)
        self._tree = cKDTree(self._points) if len(self.nodes) else None

    def find(self, x: float, y: float, max_distance: Optional[float] = None) -> Optional[Node]:
        """Return the node closest to ``(x, y)``, or ``None`` if none is within ``max_distance``."""

        if self._tree is None:
            return None
        bound = np.inf if max_distance is None else float(max_distance)
        distance, index = self._tree.query((float(x), float(y)), distance_upper_bound=bound)
        if not np.isfinite(distance):
            return None
        return self.nodes[int(index)]

    def cell_edges(self, width: float, height: float) -> List[Segment]:
        """Finite Voronoi edges clipped to the ``width`` x ``height`` area, for debugging."""

        unique = np.unique(self._points, axis=0) if len(self.nodes) else self._points
        if len(unique) < 3:
            return []
        try:
            diagram = Voronoi(unique)
        except QhullError:
            # collinear or otherwise degenerate point sets have no 2D diagram
            logger.debug("Voronoi diagram unavailable for %d point(s)", len(unique))
            return []
        edges: List[Segment] = []
        for start, end in diagram.ridge_vertices:
            if start < 0 or end < 0:
                continue
            p, q = diagram.vertices[start], diagram.vertices[end]
            clipped = _clip_segment(p, q, width, height)
            if clipped is not None:
                edges.append(clipped)
        return edges


def _clip_segment(p: np.ndarray, q: np.ndarray, width: float, height: float) -> Optional[Segment]:
    # Liang-Barsky against [0, width] x [0, height]
    dx, dy = float(q[0] - p[0]), float(q[1] - p[1])
    t0, t1 = 0.0, 1.0
    for edge_p, edge_q in (
        (-dx, float(p[0])),
        (dx, width - float(p[0])),
        (-dy, float(p[1])),
        (dy, height - float(p[1])),
    ):
        if edge_p == 0.0:
            if edge_q < 0.0:
                return None
            continue
        ratio = edge_q / edge_p
        if edge_p < 0.0:
            t0 = max(t0, ratio)
        else:
            t1 = min(t1, ratio)
        if t0 > t1:
            return None
    start = (float(p[0]) + t0 * dx, float(p[1]) + t0 * dy)
    end = (float(p[0]) + t1 * dx, float(p[1]) + t1 * dy)
    return start, end


__all__ = ["NodeMesh"]
