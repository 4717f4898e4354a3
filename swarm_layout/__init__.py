from .model import Bounds, Group, LayoutConfig, LayoutConfigError, LayoutResult, Node
from .config import default_layout_config, layout_config_from_mapping
from .validate import validate_config, validate_groups
from .accessors import SizeSpec, property_accessor, size_accessor
from .scales import (
    BandScale,
    LinearScale,
    LogScale,
    ScaleAdapters,
    SymlogScale,
    ValueScaleSpec,
    compute_group_scale,
    compute_value_scale,
)
from .initializer import initialize_nodes
from .resolver import resolve_collisions
from .layout import SwarmComputation, compute_swarm, layout
from .mesh import NodeMesh
from .layers import (
    Annotation,
    CustomLayer,
    LayerContext,
    LayerVisitor,
    NamedLayer,
    build_layer_context,
    render_layers,
)
from .tikz_codegen import TikzOptions, generate_tikz_code, generate_tikz_document

__all__ = [
    'Annotation',
    'BandScale',
    'Bounds',
    'CustomLayer',
    'Group',
    'LayerContext',
    'LayerVisitor',
    'LayoutConfig',
    'LayoutConfigError',
    'LayoutResult',
    'LinearScale',
    'LogScale',
    'NamedLayer',
    'Node',
    'NodeMesh',
    'ScaleAdapters',
    'SizeSpec',
    'SwarmComputation',
    'SymlogScale',
    'TikzOptions',
    'ValueScaleSpec',
    'build_layer_context',
    'compute_group_scale',
    'compute_swarm',
    'compute_value_scale',
    'default_layout_config',
    'generate_tikz_code',
    'generate_tikz_document',
    'initialize_nodes',
    'layout',
    'layout_config_from_mapping',
    'property_accessor',
    'render_layers',
    'resolve_collisions',
    'size_accessor',
    'validate_config',
    'validate_groups',
]
