"""
Ring systems: ring records, ring connections and bridged-ring merging.

Rings sharing vertices are linked by :class:`~chiralayout.types.RingConnection`
records. Two rings sharing one bond are fused, two sharing one vertex are
spiro, and anything more intricate is a bridge. Bridge-connected rings are
merged into a single synthetic ring whose boundary is laid out as a polygon
and whose interior is relaxed by the force layout.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chiralayout.types import Ring, RingConnection

if TYPE_CHECKING:
    from chiralayout.graph import Graph

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RingBackup:
    """Snapshot of ring information taken before bridged-ring merging."""
    
    ring_ids: list[int] = field(default_factory=list)
    connection_ids: list[int] = field(default_factory=list)
    connections: dict[int, RingConnection] = field(default_factory=dict)
    neighbours: dict[int, list[int]] = field(default_factory=dict)


def add_rings(graph: Graph, ring_bonds: list[list[tuple[int, int]]]) -> list[Ring]:
    """Create one ring record per bond cycle.
    
    Members are ordered along the cycle, starting at the opening atom of a
    ring-closure bond inside the cycle and ending at its closing atom.
    """
    created = []
    for bonds in ring_bonds:
        adjacency: dict[int, list[int]] = {}
        for a, b in bonds:
            adjacency.setdefault(a, []).append(b)
            adjacency.setdefault(b, []).append(a)
        
        closures = [
            edge for edge in (graph.edge_between(a, b) for a, b in bonds)
            if edge is not None and edge.is_ring_closure
        ]
        if closures:
            closure = min(closures, key=lambda e: e.id)
            source, target = closure.source_id, closure.target_id
        else:
            source, target = min(bonds)
        
        members = [source]
        previous, current = target, source
        while True:
            following = next(v for v in adjacency[current] if v != previous)
            if following == target:
                break
            members.append(following)
            previous, current = current, following
        members.append(target)
        
        ring = graph.add_ring(source, target, members)
        for member in members:
            graph.vertices[member].atom.rings.append(ring.id)
        created.append(ring)
    return created


def connect_rings(graph: Graph) -> None:
    """Create ring connections for every pair of rings sharing vertices.
    
    Also fills the ring neighbour lists and the fused/spiro flags.
    """
    rings = graph.rings
    for i, first in enumerate(rings):
        first_members = set(first.members)
        for second in rings[i + 1:]:
            shared = first_members.intersection(second.members)
            if shared:
                graph.add_ring_connection(first.id, second.id, shared)
    
    for ring in rings:
        ring.neighbours = graph.ring_neighbours(ring.id)
    
    for connection in graph.ring_connections:
        if is_bridge(graph, connection):
            continue
        first = graph.ring(connection.first_ring_id)
        second = graph.ring(connection.second_ring_id)
        if len(connection.vertices) == 2:
            first.is_fused = second.is_fused = True
        elif len(connection.vertices) == 1:
            first.is_spiro = second.is_spiro = True


def is_bridge(graph: Graph, connection: RingConnection) -> bool:
    """Check whether two connected rings form a bridged system.
    
    True if they share more than two vertices, share two vertices that are
    not bonded to each other, or share a vertex that belongs to more than
    two rings.
    """
    shared = sorted(connection.vertices)
    if len(shared) > 2:
        return True
    if len(shared) == 2 and graph.edge_between(shared[0], shared[1]) is None:
        return True
    return any(len(graph.vertices[v].atom.rings) > 2 for v in shared)


def is_part_of_bridged_ring(graph: Graph, ring_id: int) -> bool:
    return any(
        connection.involves(ring_id) and is_bridge(graph, connection)
        for connection in graph.ring_connections
    )


def bridged_ring_rings(graph: Graph, ring_id: int) -> list[int]:
    """All rings reachable from ``ring_id`` through bridge relationships."""
    involved = [ring_id]
    stack = [ring_id]
    while stack:
        current = stack.pop()
        for neighbour in graph.ring(current).neighbours:
            if neighbour in involved:
                continue
            if any(is_bridge(graph, c) for c in graph.connections_between(current, neighbour)):
                involved.append(neighbour)
                stack.append(neighbour)
    return involved


def backup_ring_information(graph: Graph) -> RingBackup:
    """Snapshot rings, ring connections and per-atom ring membership."""
    for vertex in graph.vertices:
        vertex.atom.backup_rings()
    return RingBackup(
        ring_ids=list(graph.ring_ids),
        connection_ids=list(graph.connection_ids),
        connections={c.id: copy.deepcopy(c) for c in graph.ring_connections},
        neighbours={r.id: list(r.neighbours) for r in graph.rings},
    )


def restore_ring_information(graph: Graph, backup: RingBackup) -> None:
    """Undo bridged-ring merging while keeping computed ring centers."""
    graph.ring_ids = list(backup.ring_ids)
    graph.connection_ids = list(backup.connection_ids)
    for connection_id, connection in backup.connections.items():
        graph.connection_arena[connection_id] = copy.deepcopy(connection)
    for ring_id, neighbours in backup.neighbours.items():
        graph.ring(ring_id).neighbours = list(neighbours)
    for vertex in graph.vertices:
        vertex.atom.restore_rings()


def merge_bridged_rings(graph: Graph) -> list[int]:
    """Replace every bridge-connected group of rings by one bridged ring.
    
    Returns:
        Ids of the bridged rings created.
    """
    created = []
    while True:
        start = next((r.id for r in graph.rings if is_part_of_bridged_ring(graph, r.id)), None)
        if start is None:
            break
        involved = bridged_ring_rings(graph, start)
        bridged = create_bridged_ring(graph, involved, graph.ring(start).source_id)
        created.append(bridged.id)
        logger.debug("Merged rings %s into bridged ring %d", involved, bridged.id)
    return created


def create_bridged_ring(graph: Graph, ring_ids: list[int], source_id: int) -> Ring:
    """Merge rings into one bridged ring.
    
    Vertices in a single constituent ring become members. Vertices shared by
    several constituent rings are members (bridge nodes) if one of their
    bonds lies on the outer boundary, otherwise they are insiders.
    
    Args:
        graph: Graph owning the rings.
        ring_ids: Ids of the rings to merge.
        source_id: Vertex the new ring starts from. Its target is a bonded
            neighbour of the source on the boundary, or the source itself
            when it has none.

    Returns:
        The new, active bridged ring; the constituents are deactivated.
    """
    vertex_ids: dict[int, None] = {}
    neighbour_ids: dict[int, None] = {}
    for ring_id in ring_ids:
        ring = graph.ring(ring_id)
        vertex_ids.update(dict.fromkeys(ring.members))
        neighbour_ids.update(dict.fromkeys(ring.neighbours))
    
    members: list[int] = []
    leftovers: list[int] = []
    for vertex_id in vertex_ids:
        rings = graph.vertices[vertex_id].atom.rings
        intersection = [r for r in rings if r in ring_ids]
        if len(rings) == 1 or len(intersection) == 1:
            members.append(vertex_id)
        else:
            leftovers.append(vertex_id)
    
    insiders: list[int] = []
    for vertex_id in leftovers:
        vertex = graph.vertices[vertex_id]
        on_ring = any(_edge_ring_count(graph, edge_id) == 1 for edge_id in vertex.edges)
        if on_ring:
            vertex.atom.is_bridge_node = True
            members.append(vertex_id)
        else:
            vertex.atom.is_bridge = True
            insiders.append(vertex_id)

    if not members:
        # Cage systems such as cubane have no boundary bond at all
        for vertex_id in insiders:
            atom = graph.vertices[vertex_id].atom
            atom.is_bridge = False
            atom.is_bridge_node = True
        members, insiders = insiders, []

    target_id = source_id
    for neighbour in graph.vertices[source_id].neighbours():
        if neighbour in members:
            target_id = neighbour

    bridged = graph.add_ring(source_id, target_id, members)
    bridged.is_bridged = True
    bridged.insiders = insiders
    bridged.rings = list(ring_ids)
    bridged.neighbours = [n for n in neighbour_ids if n not in ring_ids]
    
    for connection in list(graph.ring_connections):
        if connection.first_ring_id in ring_ids and connection.second_ring_id in ring_ids:
            graph.remove_ring_connection(connection.id)
    
    for neighbour_id in bridged.neighbours:
        merged: RingConnection | None = None
        for connection in list(graph.ring_connections):
            if not connection.involves(neighbour_id):
                continue
            if connection.other(neighbour_id) not in ring_ids:
                continue
            if merged is None:
                connection.update_other(bridged.id, neighbour_id)
                merged = connection
            else:
                merged.vertices |= connection.vertices
                graph.remove_ring_connection(connection.id)
        neighbour = graph.ring(neighbour_id)
        neighbour.neighbours = [n for n in neighbour.neighbours if n not in ring_ids]
        neighbour.neighbours.append(bridged.id)
    
    for vertex_id in vertex_ids:
        atom = graph.vertices[vertex_id].atom
        atom.bridged_ring = bridged.id
        if atom.is_bridge:
            atom.rings = []
        else:
            atom.rings = [r for r in atom.rings if r not in ring_ids]
            atom.rings.append(bridged.id)
    
    for ring_id in ring_ids:
        graph.remove_ring(ring_id)
    
    return bridged


def _edge_ring_count(graph: Graph, edge_id: int) -> int:
    edge = graph.edges[edge_id]
    return min(
        len(graph.vertices[edge.source_id].atom.rings),
        len(graph.vertices[edge.target_id].atom.rings),
    )
