"""
Force-directed relaxation of bridged ring systems.

Bridged topologies have no closed-form polygon layout. Their vertices,
one synthetic node per constituent ring center and one node per bond
midpoint are relaxed with a Fruchterman-Reingold style simulation over a
fixed number of iterations. Target distances are the bond length between
bonded atoms, the circumradius between a ring center and its members, the
apothem between a ring center and the midpoints of its bonds, and the sum
of apothems between centers of rings sharing vertices.

The simulation runs in three phases:

* iterations 0..250 relax ring centers against each other only,
* iterations 201.. only repel pairs closer than their target distance,
* iterations 251.. relax everything except center/center pairs.

A final refinement then projects every bond onto the bond length for
``REFINE_ITERATIONS`` sweeps, so relaxed systems keep uniform bonds.
Constituent ring centers end up at the centroid of their members.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

import numpy as np

from chiralayout.geometry import Vector2, apothem, apothem_from_side_length, poly_circumradius

if TYPE_CHECKING:
    from chiralayout.session import LayoutSession
    from chiralayout.types import Ring

logger = logging.getLogger(__name__)

ITERATIONS: Final[int] = 600
DAMPING: Final[float] = 0.005
CENTER_PHASE_END: Final[int] = 250
SIZE_WEIGHTED_END: Final[int] = 200
MIN_DISTANCE_SQ: Final[float] = 0.01
REFINE_ITERATIONS: Final[int] = 300
SEPARATION_END: Final[int] = 100
MIN_SEPARATION: Final[float] = 0.5


@dataclass(slots=True)
class ForceLayoutResult:
    """Outcome of a relaxation.

    Attributes:
        vertex_ids: Vertex ids in node order.
        displacements: Largest vertex displacement of every force iteration
            followed by every refinement sweep.
    """

    vertex_ids: list[int]
    displacements: np.ndarray


def force_layout(
    session: LayoutSession,
    vertex_ids: list[int],
    center: Vector2,
    start_id: int,
    ring: Ring,
) -> ForceLayoutResult:
    """Relax the interior of a bridged ring.

    Vertices that are positioned when the relaxation starts stay fixed.
    Every other vertex is marked positioned afterwards, and the centers of
    the constituent rings are written back to their ring records.

    Args:
        session: Layout session owning the graph.
        vertex_ids: Members and insiders of the bridged ring.
        center: Center of the bridged ring.
        start_id: Vertex the ring was entered from; its positioned
            neighbours join the simulation so the ring avoids them.
        ring: The bridged ring.

    Returns:
        The vertex order and the displacement history of the relaxation.
    """
    graph = session.graph
    bond_length = session.bond_length
    rng = session.rng

    vertex_ids = list(vertex_ids)
    for neighbour in graph.vertices[start_id].neighbours():
        if graph.vertices[neighbour].positioned and neighbour not in vertex_ids:
            vertex_ids.append(neighbour)

    index_of = {vertex_id: i for i, vertex_id in enumerate(vertex_ids)}
    subrings = [graph.ring(ring_id) for ring_id in ring.rings]
    vertex_count = len(vertex_ids)
    ring_count = len(subrings)

    edges = []
    for i in range(vertex_count - 1):
        for j in range(i + 1, vertex_count):
            if graph.edge_between(vertex_ids[i], vertex_ids[j]) is not None:
                edges.append((i, j))

    edge_offset = vertex_count + ring_count
    size = edge_offset + len(edges)
    target = np.zeros((size, size))

    for i, j in edges:
        target[i, j] = target[j, i] = bond_length

    for r, subring in enumerate(subrings):
        index = vertex_count + r
        radius = poly_circumradius(bond_length, subring.size)
        for member in subring.members:
            target[index, index_of[member]] = target[index_of[member], index] = radius

        member_nodes = {index_of[m] for m in subring.members}
        side_apothem = apothem(radius, subring.size)
        for e, (i, j) in enumerate(edges):
            if i in member_nodes and j in member_nodes:
                target[index, edge_offset + e] = target[edge_offset + e, index] = side_apothem

        for s, other in enumerate(subrings):
            if other.id == subring.id or not set(subring.members).intersection(other.members):
                continue
            target[index, vertex_count + s] = (
                apothem_from_side_length(bond_length, subring.size)
                + apothem_from_side_length(bond_length, other.size)
            )

    is_center = np.zeros(size, dtype=bool)
    is_center[vertex_count:edge_offset] = True
    ring_size = np.ones(size)
    ring_size[vertex_count:edge_offset] = [subring.size for subring in subrings]

    origin = np.array([center.x, center.y])
    fixed = np.zeros(size, dtype=bool)
    positions = np.empty((size, 2))
    for i, vertex_id in enumerate(vertex_ids):
        vertex = graph.vertices[vertex_id]
        fixed[i] = vertex.positioned
        if vertex.positioned or vertex_id in ring.members:
            positions[i] = (vertex.position.x, vertex.position.y)
        else:
            positions[i] = origin + rng.random(2) * bond_length
    positions[vertex_count:] = origin + rng.random((size - vertex_count, 2)) * bond_length

    edge_array = np.array(edges, dtype=int).reshape(-1, 2)
    member_index = [np.array([index_of[m] for m in subring.members]) for subring in subrings]

    # Pair masks of the three phases
    both_centers = is_center[:, None] & is_center[None, :]
    any_center = is_center[:, None] | is_center[None, :]
    not_self = ~np.eye(size, dtype=bool)
    connected = target > 0
    size_product = ring_size[:, None] * ring_size[None, :]

    k = bond_length / 1.4
    max_move = bond_length / 2.0
    max_dist = bond_length * 2.0
    safe_target = np.where(connected, target, 1.0)

    displacements = np.zeros(ITERATIONS)

    for n in range(ITERATIONS):
        if len(edges):
            positions[edge_offset:] = (positions[edge_array[:, 0]] + positions[edge_array[:, 1]]) / 2.0

        if n <= CENTER_PHASE_END:
            active = both_centers & not_self
        else:
            active = ~both_centers & not_self

        delta = positions[None, :, :] - positions[:, None, :]
        dist_sq = np.einsum("ijk,ijk->ij", delta, delta)
        _nudge_degenerate(delta, dist_sq, active, rng)
        dist = np.sqrt(dist_sq)
        dist[dist == 0.0] = 1.0
        unit = delta / dist[:, :, None]

        # Repulsion
        repel = active.copy()
        if ring_count < 3:
            repel &= ~any_center
        if n > SIZE_WEIGHTED_END:
            repel &= dist <= target
        repulsion = np.where(repel, k * k / dist, 0.0)
        if n <= SIZE_WEIGHTED_END:
            repulsion *= size_product
        elif n > CENTER_PHASE_END:
            repulsion = np.where(any_center, repulsion * size_product, repulsion)

        # Attraction
        capped = np.minimum(dist, max_dist)
        attraction = np.where(
            active & connected,
            (capped * capped - k * k) / k * capped / safe_target,
            0.0,
        )

        forces = np.einsum("ij,ijk->ik", attraction - repulsion, unit)

        if len(edges):
            midpoint_forces = forces[edge_offset:]
            np.add.at(forces, edge_array[:, 0], midpoint_forces)
            np.add.at(forces, edge_array[:, 1], midpoint_forces)

        move = np.clip(DAMPING * forces, -max_move, max_move)
        move[fixed] = 0.0
        move[edge_offset:] = 0.0
        positions += move

        if n > SIZE_WEIGHTED_END and ring_count > 2:
            for r, members in enumerate(member_index):
                positions[vertex_count + r] = positions[members].mean(axis=0)

        displacements[n] = np.max(np.hypot(move[:vertex_count, 0], move[:vertex_count, 1]), initial=0.0)

    refinement = _refine_bonds(positions[:vertex_count], edges, fixed[:vertex_count], bond_length, rng)
    displacements = np.concatenate([displacements, refinement])

    for i, vertex_id in enumerate(vertex_ids):
        if not fixed[i]:
            graph.vertices[vertex_id].set_position(Vector2(float(positions[i, 0]), float(positions[i, 1])))

    for r, members in enumerate(member_index):
        x, y = positions[members].mean(axis=0)
        subrings[r].center = Vector2(float(x), float(y))

    logger.debug(
        "Relaxed bridged ring %d: %d vertices, %d sub-rings, final displacement %.4f",
        ring.id, vertex_count, ring_count, displacements[-1],
    )
    return ForceLayoutResult(vertex_ids, displacements)


def _refine_bonds(
    positions: np.ndarray,
    edges: list[tuple[int, int]],
    fixed: np.ndarray,
    bond_length: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Project bonded pairs onto the bond length, in place.

    The force simulation balances attraction against repulsion, so its
    bonds settle near but not at the bond length. Every sweep moves the
    endpoints of each bond along the bond until it has the bond length,
    splitting the correction between free endpoints and putting all of it
    on the free one when the other is fixed. The first sweeps also push
    apart non-bonded atoms closer than half a bond length.

    Returns:
        Largest vertex displacement of every sweep.
    """
    count = len(positions)
    bonded = set(edges)
    crowded = [
        (i, j)
        for i in range(count - 1)
        for j in range(i + 1, count)
        if (i, j) not in bonded and not (fixed[i] and fixed[j])
    ]
    separation = MIN_SEPARATION * bond_length

    history = np.zeros(REFINE_ITERATIONS)
    for n in range(REFINE_ITERATIONS):
        before = positions.copy()
        if n < SEPARATION_END:
            for i, j in crowded:
                _project_pair(positions, i, j, separation, fixed, rng, at_least=True)
        for i, j in edges:
            _project_pair(positions, i, j, bond_length, fixed, rng)
        step = positions - before
        history[n] = np.max(np.hypot(step[:, 0], step[:, 1]), initial=0.0)
    return history


def _project_pair(
    positions: np.ndarray,
    i: int,
    j: int,
    length: float,
    fixed: np.ndarray,
    rng: np.random.Generator,
    at_least: bool = False,
) -> None:
    if fixed[i] and fixed[j]:
        return
    delta = positions[j] - positions[i]
    dist_sq = float(delta @ delta)
    if at_least and dist_sq >= length * length:
        return
    if dist_sq < MIN_DISTANCE_SQ:
        delta = 0.1 * rng.random(2) + 0.1
        dist_sq = float(delta @ delta)
    dist = math.sqrt(dist_sq)
    correction = delta * ((dist - length) / dist)
    if fixed[i]:
        positions[j] -= correction
    elif fixed[j]:
        positions[i] += correction
    else:
        positions[i] += correction / 2.0
        positions[j] -= correction / 2.0


def _nudge_degenerate(
    delta: np.ndarray,
    dist_sq: np.ndarray,
    active: np.ndarray,
    rng: np.random.Generator,
) -> None:
    """Give coincident node pairs a small random separation in place."""
    close = np.argwhere(np.triu(active & (dist_sq < MIN_DISTANCE_SQ), k=1))
    for u, v in close:
        nudge = 0.1 * rng.random(2) + 0.1
        delta[u, v] = nudge
        delta[v, u] = -nudge
        dist_sq[u, v] = dist_sq[v, u] = float(nudge @ nudge)
