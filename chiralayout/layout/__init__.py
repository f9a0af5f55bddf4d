"""2D coordinate assignment and overlap resolution."""

from chiralayout.layout.force import ForceLayoutResult, force_layout
from chiralayout.layout.overlap import (
    OverlapScore,
    is_edge_rotatable,
    overlap_score,
    resolve_primary_overlaps,
    resolve_rotatable_edges,
    resolve_secondary_overlaps,
    rotate_subtree,
    subtree_overlap_score,
)
from chiralayout.layout.placement import CoordinateAssigner, assign_coordinates

__all__ = [
    "assign_coordinates",
    "CoordinateAssigner",
    "force_layout",
    "ForceLayoutResult",
    "OverlapScore",
    "overlap_score",
    "subtree_overlap_score",
    "rotate_subtree",
    "is_edge_rotatable",
    "resolve_primary_overlaps",
    "resolve_rotatable_edges",
    "resolve_secondary_overlaps",
]
