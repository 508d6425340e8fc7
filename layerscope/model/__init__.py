"""Composition tree model and pure tree helpers."""

from .composition import (
    CompositionFormatError,
    CompositionNode,
    CompositionType,
    ConfidenceLevel,
    ViewMode,
    load_composition,
)
from .tree_utils import (
    all_node_ids,
    calculate_node_size,
    count_nodes,
    filter_by_depth,
    find_by_id,
    find_by_name,
    find_parent,
    find_path_to_id,
    format_percentage,
    get_max_depth,
    node_color,
    walk,
)

__all__ = [
    "CompositionFormatError",
    "CompositionNode",
    "CompositionType",
    "ConfidenceLevel",
    "ViewMode",
    "load_composition",
    "all_node_ids",
    "calculate_node_size",
    "count_nodes",
    "filter_by_depth",
    "find_by_id",
    "find_by_name",
    "find_parent",
    "find_path_to_id",
    "format_percentage",
    "get_max_depth",
    "node_color",
    "walk",
]
