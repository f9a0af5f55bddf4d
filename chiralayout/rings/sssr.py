"""
Smallest Set of Smallest Rings.

Implements the path-included distance matrix approach: after stripping all
vertices that cannot be part of a ring, a Floyd-Warshall pass records for
every vertex pair the shortest paths (``pe1``) and the paths exactly one
bond longer (``pe2``). Every pair then proposes a ring candidate of size
``2d`` (two shortest paths) or ``2d + 1`` (a shortest path plus a longer
one), and candidates are accepted smallest first.

Paths are stored as lists of bonds, each bond a ``(i, j)`` tuple of
indices into the reduced matrix.
"""

from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from chiralayout.graph import Graph

logger = logging.getLogger(__name__)

Bond = tuple[int, int]
Path = list[Bond]


@dataclass(slots=True)
class RingCandidate:
    """A ring proposed by one vertex pair.
    
    Attributes:
        size: Implied ring size (``2d`` or ``2d + 1``).
        shortest: All shortest paths between the pair.
        longer: All paths one bond longer than the shortest.
    """
    
    size: int
    shortest: list[Path]
    longer: list[Path]


def reduced_adjacency(graph: Graph) -> tuple[np.ndarray, np.ndarray]:
    """Adjacency matrix restricted to vertices that can be ring members.
    
    Vertices of degree one are removed repeatedly, then isolated vertices
    are dropped.
    
    Returns:
        Tuple of (reduced matrix, original vertex id of each row).
    """
    size = len(graph.vertices)
    adjacency = np.zeros((size, size), dtype=np.int8)
    for edge in graph.edges:
        adjacency[edge.source_id, edge.target_id] = 1
        adjacency[edge.target_id, edge.source_id] = 1
    
    while True:
        leaves = np.flatnonzero(adjacency.sum(axis=1) == 1)
        if leaves.size == 0:
            break
        adjacency[leaves, :] = 0
        adjacency[:, leaves] = 0
    
    keep = np.flatnonzero(adjacency.sum(axis=1) > 0)
    return adjacency[np.ix_(keep, keep)], keep


def expected_ring_count(adjacency: np.ndarray) -> int:
    """Cyclomatic number ``|E| - |V| + C`` of a (reduced) graph."""
    vertex_count = adjacency.shape[0]
    if vertex_count == 0:
        return 0
    edge_count = int(adjacency.sum()) // 2
    return edge_count - vertex_count + _component_count(adjacency)


def _component_count(adjacency: np.ndarray) -> int:
    size = adjacency.shape[0]
    seen = np.zeros(size, dtype=bool)
    components = 0
    for start in range(size):
        if seen[start]:
            continue
        components += 1
        seen[start] = True
        stack = [start]
        while stack:
            current = stack.pop()
            for neighbour in np.flatnonzero(adjacency[current]):
                if not seen[neighbour]:
                    seen[neighbour] = True
                    stack.append(int(neighbour))
    return components


def path_included_distance_matrices(
    adjacency: np.ndarray,
) -> tuple[list[list[float]], list[list[list[Path]]], list[list[list[Path]]]]:
    """Distance matrix plus the shortest and next-to-shortest path sets.
    
    Args:
        adjacency: Reduced adjacency matrix.
    
    Returns:
        Tuple of (d, pe1, pe2) indexed ``[i][j]``.
    """
    size = adjacency.shape[0]
    inf = math.inf
    d: list[list[float]] = [[inf] * size for _ in range(size)]
    pe1: list[list[list[Path]]] = [[[] for _ in range(size)] for _ in range(size)]
    pe2: list[list[list[Path]]] = [[[] for _ in range(size)] for _ in range(size)]
    
    for i in range(size):
        d[i][i] = 0
        for j in np.flatnonzero(adjacency[i]):
            j = int(j)
            d[i][j] = 1
            pe1[i][j] = [[(i, j)]]
    
    for k in range(size):
        d_k = d[k]
        pe1_k = pe1[k]
        for i in range(size):
            d_ik = d[i][k]
            if d_ik == inf:
                continue
            d_i = d[i]
            pe1_i = pe1[i]
            pe2_i = pe2[i]
            for j in range(size):
                new_length = d_ik + d_k[j]
                if new_length == inf:
                    continue
                previous = d_i[j]
                
                if previous > new_length:
                    if previous == new_length + 1:
                        pe2_i[j] = [list(path) for path in pe1_i[j]]
                    else:
                        pe2_i[j] = []
                    d_i[j] = new_length
                    pe1_i[j] = [pe1_i[k][0] + pe1_k[j][0]]
                elif previous == new_length:
                    if pe1_i[k] and pe1_k[j]:
                        pe1_i[j].append(pe1_i[k][0] + pe1_k[j][0])
                elif previous == new_length - 1:
                    if pe1_i[k] and pe1_k[j]:
                        pe2_i[j].append(pe1_i[k][0] + pe1_k[j][0])
    
    return d, pe1, pe2


def ring_candidates(
    d: list[list[float]],
    pe1: list[list[list[Path]]],
    pe2: list[list[list[Path]]],
) -> list[RingCandidate]:
    """Collect ring candidates sorted by size.
    
    The sort is stable, so candidates of equal size keep their pair
    enumeration order.
    """
    candidates: list[RingCandidate] = []
    size = len(d)
    for i in range(size):
        for j in range(size):
            distance = d[i][j]
            if distance == 0 or distance == math.inf:
                continue
            if len(pe1[i][j]) == 1 and not pe2[i][j]:
                continue
            ring_size = 2 * int(distance) + 1 if pe2[i][j] else 2 * int(distance)
            candidates.append(RingCandidate(ring_size, pe1[i][j], pe2[i][j]))
    
    candidates.sort(key=lambda c: c.size)
    return candidates


def _ring_bonds(candidate: RingCandidate) -> list[Path]:
    """All bond sets a candidate can close into."""
    if candidate.size % 2 == 1:
        return [candidate.shortest[0] + path for path in candidate.longer]
    paths = candidate.shortest
    return [
        paths[a] + paths[b]
        for a in range(len(paths))
        for b in range(a + 1, len(paths))
    ]


def find_sssr(graph: Graph) -> list[list[Bond]]:
    """Find the Smallest Set of Smallest Rings of a graph.
    
    Args:
        graph: Molecular graph.
    
    Returns:
        One list of bonds (pairs of vertex ids) per ring, smallest rings
        first. Empty for ring-free graphs.
    
    Example:
        >>> from chiralayout.graph import Graph
        >>> from chiralayout.smiles import parse_tree
        >>> rings = find_sssr(Graph.from_tree(parse_tree("C1CCCCC1")))
        >>> len(rings), len(rings[0])
        (1, 6)
    """
    adjacency, vertex_ids = reduced_adjacency(graph)
    if adjacency.size == 0:
        return []
    
    n_sssr = expected_ring_count(adjacency)
    if n_sssr <= 0:
        return []
    
    d, pe1, pe2 = path_included_distance_matrices(adjacency)
    candidates = ring_candidates(d, pe1, pe2)
    
    found: list[list[Bond]] = []
    found_sets: list[frozenset[int]] = []
    for candidate in candidates:
        for bonds in _ring_bonds(candidate):
            atoms = frozenset(a for bond in bonds for a in bond)
            if len(bonds) != len(atoms) or atoms in found_sets:
                continue
            found_sets.append(atoms)
            found.append([(int(vertex_ids[a]), int(vertex_ids[b])) for a, b in bonds])
            if len(found) == n_sssr:
                break
        if len(found) == n_sssr:
            break
    
    if len(found) < n_sssr:
        warnings.warn(f"Found {len(found)} of {n_sssr} expected rings")
    
    logger.debug("SSSR: %d rings over %d ring vertices", len(found), len(vertex_ids))
    return found
