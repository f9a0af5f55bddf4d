"""Ring perception: SSSR, ring connections and bridged-ring merging."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chiralayout.rings.sssr import (
    RingCandidate,
    expected_ring_count,
    find_sssr,
    path_included_distance_matrices,
    reduced_adjacency,
    ring_candidates,
)
from chiralayout.rings.systems import (
    RingBackup,
    add_rings,
    backup_ring_information,
    connect_rings,
    create_bridged_ring,
    is_bridge,
    merge_bridged_rings,
    restore_ring_information,
)

if TYPE_CHECKING:
    from chiralayout.graph import Graph

logger = logging.getLogger(__name__)


def perceive_rings(graph: Graph) -> RingBackup:
    """Find the rings of a graph and merge bridged systems.
    
    Adds ring records and ring connections to ``graph``, backs them up and
    then merges bridge-connected rings. The returned backup restores the
    unmerged rings once layout is done.
    
    Args:
        graph: Graph without ring information.
    
    Returns:
        Snapshot for :func:`restore_ring_information`.
    """
    rings = add_rings(graph, find_sssr(graph))
    connect_rings(graph)
    backup = backup_ring_information(graph)
    bridged = merge_bridged_rings(graph)
    logger.debug("Perceived %d rings, %d bridged systems", len(rings), len(bridged))
    return backup


__all__ = [
    "perceive_rings",
    "find_sssr",
    "reduced_adjacency",
    "expected_ring_count",
    "path_included_distance_matrices",
    "ring_candidates",
    "RingCandidate",
    "RingBackup",
    "add_rings",
    "connect_rings",
    "is_bridge",
    "merge_bridged_rings",
    "create_bridged_ring",
    "backup_ring_information",
    "restore_ring_information",
]
