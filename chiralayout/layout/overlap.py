"""
Overlap scoring and resolution.

Placement never looks back, so substituents can land on top of each other.
Overlaps are measured by a pairwise score and reduced in three passes:

* primary: substituents sharing a ring atom are spread apart,
* rotatable edges: the smaller side of a crowded single bond is turned,
* secondary: the worst offenders are nudged or flipped into rings.

Every move is a rigid rotation, so bond lengths are preserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

import numpy as np

from chiralayout.geometry import Vector2, to_rad

if TYPE_CHECKING:
    from chiralayout.graph import Graph
    from chiralayout.session import LayoutSession
    from chiralayout.types import Edge, Vertex

logger = logging.getLogger(__name__)

SUBTREE_THRESHOLD: Final[float] = 1.0
ROTATION_AWAY: Final[float] = to_rad(120)
TERMINAL_NUDGE: Final[float] = to_rad(20)


@dataclass(slots=True)
class OverlapScore:
    """Pairwise overlap of a layout.

    Attributes:
        total: Sum of ``(bl - d) / bl`` over all vertex pairs closer than
            the bond length ``bl``.
        scores: ``(vertex id, score)`` pairs, worst first.
        vertex_scores: Score of every vertex, indexed by id.
    """

    total: float
    scores: list[tuple[int, float]]
    vertex_scores: np.ndarray


def overlap_score(graph: Graph, bond_length: float) -> OverlapScore:
    """Score how much the vertices of a layout crowd each other.

    Example:
        >>> from chiralayout import draw_smiles
        >>> result = draw_smiles("CCCC")
        >>> round(overlap_score(result.session.graph, 16.0).total, 6)
        0.0
    """
    count = len(graph.vertices)
    if count == 0:
        return OverlapScore(0.0, [], np.zeros(0))

    positions = np.array([(v.position.x, v.position.y) for v in graph.vertices])
    delta = positions[:, None, :] - positions[None, :, :]
    dist = np.hypot(delta[:, :, 0], delta[:, :, 1])
    weighted = np.where(dist < bond_length, (bond_length - dist) / bond_length, 0.0)
    np.fill_diagonal(weighted, 0.0)

    vertex_scores = weighted.sum(axis=1)
    total = float(np.triu(weighted, k=1).sum())
    scores = sorted(
        ((i, float(s)) for i, s in enumerate(vertex_scores)),
        key=lambda item: item[1],
        reverse=True,
    )
    return OverlapScore(total, scores, vertex_scores)


def subtree_overlap_score(
    graph: Graph,
    vertex_id: int,
    parent_id: int,
    vertex_scores: np.ndarray,
) -> tuple[float, Vector2]:
    """Summed score of a subtree and the score-weighted center of its vertices."""
    score = 0.0
    weighted = Vector2()
    for member in graph.traverse_tree(vertex_id, parent_id):
        s = float(vertex_scores[member])
        score += s
        weighted = weighted + graph.vertices[member].position * s
    center = weighted / score if score > 0 else weighted
    return score, center


def rotate_subtree(graph: Graph, vertex_id: int, parent_id: int, angle: float, center: Vector2) -> None:
    """Rotate everything beyond ``parent_id`` as seen from ``vertex_id``.

    Centers of rings anchored to a rotated vertex move along.
    """
    for member in graph.traverse_tree(vertex_id, parent_id):
        vertex = graph.vertices[member]
        vertex.position = vertex.position.rotate_around(angle, center)
        for ring_id in vertex.atom.anchored_rings:
            ring = graph.ring(ring_id)
            ring.center = ring.center.rotate_around(angle, center)


def is_edge_rotatable(graph: Graph, edge: Edge) -> bool:
    """Only non-terminal single bonds outside rings are rotatable."""
    if edge.bond_type != "-":
        return False

    source = graph.vertices[edge.source_id]
    target = graph.vertices[edge.target_id]
    if source.neighbour_count + target.neighbour_count < 5:
        return False

    if source.atom.rings and target.atom.rings and graph.in_same_ring(source.id, target.id):
        return False
    return True


def non_ring_neighbours(graph: Graph, vertex_id: int) -> list[int]:
    """Neighbours sharing no ring with the vertex, bridge atoms excluded."""
    vertex = graph.vertices[vertex_id]
    return [
        n for n in vertex.neighbours()
        if not graph.common_rings(vertex_id, n) and not graph.vertices[n].atom.is_bridge
    ]


def _is_ring_connection_bond(graph: Graph, a: int, b: int) -> bool:
    return any(connection.vertices == {a, b} for connection in graph.ring_connections)


def _mark_flippable(vertex: Vertex, center_id: int, rings: list[int], neighbour_id: int | None = None) -> None:
    vertex.flippable = True
    vertex.flip_center = center_id
    vertex.flip_rings.extend(rings)
    if neighbour_id is not None:
        vertex.flip_neighbour = neighbour_id


def resolve_primary_overlaps(session: LayoutSession) -> None:
    """Spread substituents that hang off the same ring atom.

    A single substituent on an atom shared by two rings is turned to
    bisect the two ring bonds pointing away from the fusion bond. Two
    substituents on one ring atom are rotated apart symmetrically. Terminal
    substituents are recorded as candidates for ring flips.
    """
    graph = session.graph
    overlaps: list[tuple[int, list[int], list[int]]] = []
    done: set[int] = set()

    for ring in graph.rings:
        for member in ring.members:
            if member in done:
                continue
            done.add(member)
            vertex = graph.vertices[member]
            if vertex.neighbour_count > 2:
                overlaps.append((member, list(vertex.atom.rings), non_ring_neighbours(graph, member)))

    for common_id, rings, substituents in overlaps:
        common = graph.vertices[common_id]

        if len(substituents) == 1:
            a = graph.vertices[substituents[0]]
            if a.neighbour_count == 1:
                _mark_flippable(a, common_id, rings)

            if len(rings) == 2:
                positions = [
                    graph.vertices[n].position for n in common.neighbours()
                    if n != a.id and not _is_ring_connection_bond(graph, n, common_id)
                ]
                if len(positions) < 2:
                    continue
                midpoint = Vector2.midpoint(positions[0], positions[1])
                angle = a.position.rotate_to_angle(midpoint, common.position)
                rotate_subtree(graph, a.id, common_id, angle, common.position)

        elif len(substituents) == 2:
            angle = (2.0 * np.pi - graph.ring(rings[0]).angle) / 6.0
            a = graph.vertices[substituents[0]]
            b = graph.vertices[substituents[1]]
            rotate_subtree(graph, a.id, common_id, angle, common.position)
            rotate_subtree(graph, b.id, common_id, -angle, common.position)

            if a.neighbour_count == 1:
                _mark_flippable(a, common_id, rings, b.id)
            if b.neighbour_count == 1:
                _mark_flippable(b, common_id, rings, a.id)

    logger.debug("Resolved %d primary overlap sites", len(overlaps))


def resolve_rotatable_edges(session: LayoutSession) -> OverlapScore:
    """Turn crowded subtrees around single bonds when that lowers the score.

    Returns:
        The overlap score after the pass, with per-vertex scores as they
        were last recomputed.
    """
    graph = session.graph
    bond_length = session.bond_length
    overlap = overlap_score(graph, bond_length)
    session.total_overlap_score = overlap.total

    for edge in graph.edges:
        if not is_edge_rotatable(graph, edge):
            continue

        # Only the shallower side is rotated
        depth_source = graph.tree_depth(edge.source_id, edge.target_id)
        depth_target = graph.tree_depth(edge.target_id, edge.source_id)
        a, b = edge.target_id, edge.source_id
        if depth_source > depth_target:
            a, b = edge.source_id, edge.target_id

        subtree_score, _ = subtree_overlap_score(graph, b, a, overlap.vertex_scores)
        if subtree_score <= SUBTREE_THRESHOLD:
            continue

        vertex_a = graph.vertices[a]
        vertex_b = graph.vertices[b]
        neighbours = vertex_b.neighbours(exclude=a)

        if len(neighbours) == 1:
            neighbour = graph.vertices[neighbours[0]]
            angle = neighbour.position.rotate_away_from_angle(vertex_a.position, vertex_b.position, ROTATION_AWAY)
            _try_rotations(session, b, [(neighbour.id, angle)])
        elif len(neighbours) == 2:
            if vertex_a.atom.rings or vertex_b.atom.rings:
                continue
            rotations = [
                (n, graph.vertices[n].position.rotate_away_from_angle(
                    vertex_a.position, vertex_b.position, ROTATION_AWAY))
                for n in neighbours
            ]
            _try_rotations(session, b, rotations)

        overlap = overlap_score(graph, bond_length)

    logger.debug("Overlap score after rotatable-edge pass: %.4f", session.total_overlap_score)
    return overlap


def _try_rotations(session: LayoutSession, pivot_id: int, rotations: list[tuple[int, float]]) -> None:
    """Apply subtree rotations about a pivot and undo them if the layout got worse."""
    graph = session.graph
    pivot = graph.vertices[pivot_id].position
    for vertex_id, angle in rotations:
        rotate_subtree(graph, vertex_id, pivot_id, angle, pivot)

    total = overlap_score(graph, session.bond_length).total
    if total > session.total_overlap_score:
        for vertex_id, angle in rotations:
            rotate_subtree(graph, vertex_id, pivot_id, -angle, pivot)
    else:
        session.total_overlap_score = total


def resolve_secondary_overlaps(session: LayoutSession, scores: list[tuple[int, float]]) -> None:
    """Nudge terminal atoms and flip substituents into rings, worst first.

    The scores are not refreshed between individual fixes, so later fixes
    in the same pass see the scores from before the pass.
    """
    graph = session.graph
    options = session.options
    threshold = options.bond_length / (4.0 * options.bond_length)

    for vertex_id, score in scores:
        if score <= threshold:
            continue
        vertex = graph.vertices[vertex_id]

        if vertex.is_terminal():
            _nudge_terminal(graph, vertex)

        if vertex.flippable and options.allow_flips:
            _flip(graph, vertex)


def _nudge_terminal(graph: Graph, vertex: Vertex) -> None:
    closest = graph.closest_vertex(vertex.id)
    neighbours = vertex.neighbours()
    if closest is None or not neighbours:
        return

    closest_neighbours = closest.neighbours()
    if closest.is_terminal() and closest_neighbours:
        avoid = graph.vertices[closest_neighbours[0]].position
    else:
        avoid = closest.position

    pivot = graph.vertices[neighbours[0]].position
    angle = vertex.position.rotate_away_from_angle(avoid, pivot, TERMINAL_NUDGE)
    vertex.position = vertex.position.rotate_around(angle, pivot)


def _flip(graph: Graph, vertex: Vertex) -> None:
    """Point a flippable substituent at the center of the larger free ring."""
    candidates = [graph.ring(ring_id) for ring_id in vertex.flip_rings[:2]]
    candidates.sort(key=lambda ring: ring.size, reverse=True)
    flip_center = graph.vertices[vertex.flip_center].position

    for ring in candidates:
        if ring.can_flip:
            angle = vertex.position.rotate_to_angle(ring.center, flip_center)
            vertex.position = vertex.position.rotate_around(angle, flip_center)
            ring.set_flipped()
            logger.debug("Flipped vertex %d into ring %d", vertex.id, ring.id)
            return
