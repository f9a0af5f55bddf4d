"""
Molecular graph.

The :class:`Graph` owns every vertex, edge, ring and ring connection in
id-indexed arenas. Records never hold references to each other, only ids,
so the graph is free of reference cycles and ids stay stable for the
lifetime of a layout.

    >>> from chiralayout.smiles import parse_tree
    >>> graph = Graph.from_tree(parse_tree("CC(=O)O"))
    >>> len(graph.vertices), len(graph.edges)
    (4, 3)
"""

from __future__ import annotations

import logging
from typing import Iterator

from chiralayout.elements import BOND_SYMBOLS, DEFAULT_BOND, Element
from chiralayout.exceptions import BondError, ChiralityError, ElementError, GraphError, RingError
from chiralayout.geometry import Vector2
from chiralayout.tree import BracketInfo, ParseNode, RingBond
from chiralayout.types import Atom, Edge, Ring, RingConnection, Vertex

logger = logging.getLogger(__name__)


class Graph:
    """Vertex/edge graph built from a parse tree."""
    
    def __init__(self) -> None:
        self.vertices: list[Vertex] = []
        self.edges: list[Edge] = []
        self.ring_arena: list[Ring] = []
        self.connection_arena: list[RingConnection] = []
        # Active subsets of the arenas, in creation order
        self.ring_ids: list[int] = []
        self.connection_ids: list[int] = []
        self._edge_lookup: dict[tuple[int, int], int] = {}
    
    @classmethod
    def from_tree(cls, tree: ParseNode, isomeric: bool = False) -> Graph:
        """Build a graph from a parse tree.
        
        Args:
            tree: Root node of the parse tree.
            isomeric: Expand bracket hydrogens into explicit vertices.
        
        Returns:
            The new graph, without ring information.
        
        Raises:
            ElementError: If an element symbol is unknown.
            BondError: If a bond symbol is unknown.
            RingError: If a ring-closure marker is never paired.
        """
        return _GraphBuilder(isomeric).build(tree)
    
    # Arena access
    
    def vertex(self, vertex_id: int) -> Vertex:
        if not 0 <= vertex_id < len(self.vertices):
            raise GraphError(f"No vertex with id {vertex_id}")
        return self.vertices[vertex_id]
    
    def edge(self, edge_id: int) -> Edge:
        if not 0 <= edge_id < len(self.edges):
            raise GraphError(f"No edge with id {edge_id}")
        return self.edges[edge_id]
    
    def ring(self, ring_id: int) -> Ring:
        if not 0 <= ring_id < len(self.ring_arena):
            raise GraphError(f"No ring with id {ring_id}")
        return self.ring_arena[ring_id]
    
    def ring_connection(self, connection_id: int) -> RingConnection:
        if not 0 <= connection_id < len(self.connection_arena):
            raise GraphError(f"No ring connection with id {connection_id}")
        return self.connection_arena[connection_id]
    
    @property
    def rings(self) -> list[Ring]:
        """Currently active rings."""
        return [self.ring_arena[i] for i in self.ring_ids]
    
    @property
    def ring_connections(self) -> list[RingConnection]:
        return [self.connection_arena[i] for i in self.connection_ids]
    
    def add_vertex(self, atom: Atom) -> Vertex:
        vertex = Vertex(len(self.vertices), atom)
        self.vertices.append(vertex)
        return vertex
    
    def add_edge(
        self,
        source_id: int,
        target_id: int,
        bond_type: str = DEFAULT_BOND,
        is_ring_closure: bool = False,
    ) -> Edge:
        """Create an edge between two existing vertices.
        
        Raises:
            GraphError: If an endpoint does not exist.
        """
        source = self.vertex(source_id)
        target = self.vertex(target_id)
        edge = Edge(len(self.edges), source_id, target_id, bond_type, is_ring_closure)
        self.edges.append(edge)
        source.edges.append(edge.id)
        target.edges.append(edge.id)
        self._edge_lookup[_key(source_id, target_id)] = edge.id
        return edge
    
    def add_ring(self, source_id: int, target_id: int, members: list[int]) -> Ring:
        ring = Ring(len(self.ring_arena), source_id, target_id, members)
        self.ring_arena.append(ring)
        self.ring_ids.append(ring.id)
        return ring
    
    def remove_ring(self, ring_id: int) -> None:
        """Drop a ring from the active set; the arena keeps the record."""
        self.ring_ids.remove(ring_id)
    
    def add_ring_connection(self, first_ring_id: int, second_ring_id: int, vertices: set[int]) -> RingConnection:
        connection = RingConnection(len(self.connection_arena), first_ring_id, second_ring_id, set(vertices))
        self.connection_arena.append(connection)
        self.connection_ids.append(connection.id)
        return connection
    
    def remove_ring_connection(self, connection_id: int) -> None:
        self.connection_ids.remove(connection_id)
    
    # Adjacency queries
    
    def edge_between(self, a: int, b: int) -> Edge | None:
        edge_id = self._edge_lookup.get(_key(a, b))
        return None if edge_id is None else self.edges[edge_id]
    
    def neighbours(self, vertex_id: int, exclude: int | None = None) -> list[int]:
        return self.vertex(vertex_id).neighbours(exclude)
    
    def drawn_neighbours(self, vertex_id: int) -> list[int]:
        return [n for n in self.vertex(vertex_id).neighbours() if self.vertices[n].atom.is_drawn]
    
    def bond_count(self, vertex_id: int) -> int:
        """Sum of the bond orders of all edges at a vertex."""
        return sum(self.edges[e].bond_count for e in self.vertex(vertex_id).edges)
    
    def adjacency_matrix(self) -> list[list[int]]:
        """Vertex x vertex matrix with 1 for bonded pairs."""
        size = len(self.vertices)
        matrix = [[0] * size for _ in range(size)]
        for edge in self.edges:
            matrix[edge.source_id][edge.target_id] = 1
            matrix[edge.target_id][edge.source_id] = 1
        return matrix
    
    def traverse_tree(self, vertex_id: int, parent_id: int | None = None) -> Iterator[int]:
        """Yield every vertex reachable from ``vertex_id`` without crossing ``parent_id``.
        
        Ring closures are followed, so a traversal that starts on a ring
        covers the whole ring system; every vertex is yielded once.
        """
        visited = {vertex_id}
        if parent_id is not None:
            visited.add(parent_id)
        stack = [vertex_id]
        while stack:
            current = stack.pop()
            yield current
            for neighbour in reversed(self.vertices[current].neighbours()):
                if neighbour not in visited:
                    visited.add(neighbour)
                    stack.append(neighbour)
    
    def tree_depth(self, vertex_id: int | None, parent_id: int | None) -> int:
        """Depth of the spanning-tree subtree rooted at ``vertex_id`` away from ``parent_id``."""
        if vertex_id is None or parent_id is None:
            return 0
        depth = 0
        stack = [(vertex_id, parent_id, 1)]
        while stack:
            current, parent, level = stack.pop()
            depth = max(depth, level)
            for neighbour in self.vertices[current].spanning_tree_neighbours(parent):
                stack.append((neighbour, current, level + 1))
        return depth
    
    # Ring queries
    
    def common_rings(self, a: int, b: int) -> list[int]:
        rings_b = self.vertices[b].atom.rings
        return [r for r in self.vertices[a].atom.rings if r in rings_b]
    
    def in_same_ring(self, a: int, b: int) -> bool:
        return bool(self.common_rings(a, b))
    
    def is_ring_aromatic(self, ring: Ring) -> bool:
        """A ring is aromatic when every member is written in lowercase."""
        return all(self.vertices[m].atom.is_aromatic for m in ring.members)
    
    def connections_between(self, ring_a: int, ring_b: int) -> list[RingConnection]:
        return [c for c in self.ring_connections if c.connects(ring_a, ring_b)]
    
    def shared_vertices(self, ring_a: int, ring_b: int) -> list[int]:
        shared: set[int] = set()
        for connection in self.connections_between(ring_a, ring_b):
            shared |= connection.vertices
        return sorted(shared)
    
    def ring_neighbours(self, ring_id: int) -> list[int]:
        """Ids of rings connected to ``ring_id``, in connection order."""
        result: list[int] = []
        for connection in self.ring_connections:
            if connection.involves(ring_id):
                other = connection.other(ring_id)
                if other not in result:
                    result.append(other)
        return result
    
    # Positions
    
    def center_of_mass(self) -> Vector2:
        """Centroid of all positioned vertices."""
        return Vector2.centroid(v.position for v in self.vertices if v.positioned)
    
    def closest_vertex(self, vertex_id: int) -> Vertex | None:
        origin = self.vertex(vertex_id).position
        best: Vertex | None = None
        best_dist = float("inf")
        for vertex in self.vertices:
            if vertex.id == vertex_id:
                continue
            dist = vertex.position.distance_sq(origin)
            if dist < best_dist:
                best = vertex
                best_dist = dist
        return best
    
    def vertices_at(self, position: Vector2, radius: float, exclude: int | None = None) -> list[int]:
        """Ids of vertices within ``radius`` of ``position``."""
        radius_sq = radius * radius
        return [
            v.id for v in self.vertices
            if v.id != exclude and v.position.distance_sq(position) < radius_sq
        ]
    
    def heavy_atom_count(self) -> int:
        """Number of atoms other than hydrogen."""
        return sum(1 for v in self.vertices if v.atom.element.upper() != "H")
    
    # Stereochemistry
    
    def annotate_chirality(self) -> None:
        """Turn tetrahedral chirality tags into wedge annotations on edges.
        
        The neighbours of a center are ordered as written (parent first,
        then hydrogens, ring closures, branches and the successor). For
        ``@`` the fourth neighbour gets a solid wedge and the second a
        dashed one; ``@@`` swaps them. A center with three neighbours has
        an implicit neighbour right after the parent.
        
        Raises:
            ChiralityError: If a tagged center has fewer than 3 or more
                than 4 neighbours.
        """
        for vertex in self.vertices:
            chirality = vertex.atom.chirality
            if chirality is None:
                continue
            
            neighbours = vertex.neighbours()
            if len(neighbours) not in (3, 4):
                raise ChiralityError(
                    f"Chirality '{chirality}' on vertex {vertex.id} with {len(neighbours)} neighbours",
                    vertex_id=vertex.id,
                )
            
            if vertex.parent_id is not None:
                self.vertices[vertex.parent_id].atom.set_order(vertex.id, 0)
            
            ordered: list[int | None] = sorted(
                neighbours,
                key=lambda n: _order_key(self.vertices[n].atom.get_order(vertex.id)),
            )
            if len(ordered) == 3:
                ordered.insert(1 if vertex.parent_id is not None else 0, None)
            
            up, down = (ordered[3], ordered[1]) if chirality == "@" else (ordered[1], ordered[3])
            self._set_wedge(vertex.id, up, "up")
            self._set_wedge(vertex.id, down, "down")
    
    def _set_wedge(self, center: int, neighbour: int | None, wedge: str) -> None:
        if neighbour is None:
            return
        edge = self.edge_between(center, neighbour)
        if edge is None or (edge.wedge and edge.wedge != wedge):
            return
        edge.wedge = wedge
        edge.wedge_origin = center


def _key(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a < b else (b, a)


def _order_key(order: int | None) -> int:
    return order if order is not None else 1 << 30


class _GraphBuilder:
    """Depth-first conversion of a parse tree into a :class:`Graph`."""
    
    def __init__(self, isomeric: bool) -> None:
        self._isomeric = isomeric
        self._graph = Graph()
        # ring index -> (vertex id, bond symbol, position in the vertex's ringbonds)
        self._open_rings: dict[int, tuple[int, str | None, int]] = {}
        self._closures: list[tuple[int, int]] = []
    
    def build(self, tree: ParseNode) -> Graph:
        graph = self._graph
        # (node, parent id, order relative to the parent)
        stack: list[tuple[ParseNode, int | None, int]] = [(tree, None, 0)]
        
        while stack:
            node, parent_id, order = stack.pop()
            vertex = self._add_atom(node, parent_id, order)
            
            offset = node.ringbond_count + 1 + vertex.atom.expanded_hydrogens
            if node.next is not None:
                stack.append((node.next, vertex.id, node.branch_count + offset))
            for i in reversed(range(node.branch_count)):
                stack.append((node.branches[i], vertex.id, i + offset))
        
        if self._open_rings:
            unclosed = sorted(self._open_rings)
            raise RingError(
                f"Unclosed ring indices: {unclosed}",
                ring_index=unclosed[0],
            )
        
        # Ring partners follow the spanning-tree children
        for a, b in self._closures:
            graph.vertices[a].children.append(b)
            graph.vertices[b].children.append(a)
        
        logger.debug("Built graph with %d vertices and %d edges", len(graph.vertices), len(graph.edges))
        return graph
    
    def _add_atom(self, node: ParseNode, parent_id: int | None, order: int) -> Vertex:
        graph = self._graph
        element = node.atom.element
        if element != "*" and Element.from_symbol(element) is None:
            raise ElementError(f"Unknown element symbol: '{element}'", symbol=element)
        if node.bond not in BOND_SYMBOLS:
            raise BondError(f"Unknown bond symbol: '{node.bond}'", symbol=node.bond)
        
        bracket = node.atom.bracket
        atom = Atom(
            element,
            bracket=bracket,
            bond_type=node.bond,
            ringbonds=list(node.ringbonds),
            explicit=bracket is not None and (bracket.charge != 0 or bracket.isotope is not None),
        )
        vertex = graph.add_vertex(atom)
        if parent_id is not None:
            self._link(parent_id, vertex, order, node.bond)
        
        if self._isomeric and bracket is not None and bracket.hcount > 0:
            for i in range(bracket.hcount):
                hydrogen = graph.add_vertex(Atom("H"))
                self._link(vertex.id, hydrogen, i + 1, DEFAULT_BOND)
            atom.expanded_hydrogens = bracket.hcount
        
        for index, ringbond in enumerate(node.ringbonds):
            self._ring_marker(vertex, ringbond, index)
        
        return vertex
    
    def _link(self, parent_id: int, child: Vertex, order: int, bond: str) -> None:
        parent = self._graph.vertices[parent_id]
        child.parent_id = parent_id
        child.atom.set_order(parent_id, order)
        parent.children.append(child.id)
        parent.spanning_tree_children.append(child.id)
        self._graph.add_edge(parent_id, child.id, bond)
    
    def _ring_marker(self, vertex: Vertex, ringbond: RingBond, index: int) -> None:
        if ringbond.bond is not None and ringbond.bond not in BOND_SYMBOLS:
            raise BondError(f"Unknown bond symbol: '{ringbond.bond}'", symbol=ringbond.bond)
        
        if ringbond.id not in self._open_rings:
            self._open_rings[ringbond.id] = (vertex.id, ringbond.bond, index)
            return
        
        opener_id, opener_bond, opener_index = self._open_rings.pop(ringbond.id)
        if opener_id == vertex.id:
            raise RingError(
                f"Ring closure {ringbond.id} opens and closes on the same atom",
                ring_index=ringbond.id,
            )
        if self._graph.edge_between(opener_id, vertex.id) is not None:
            raise RingError(
                f"Ring closure {ringbond.id} duplicates an existing bond",
                ring_index=ringbond.id,
            )
        
        opener = self._graph.vertices[opener_id]
        bond = _ring_bond_type(opener_bond, ringbond.bond)
        self._graph.add_edge(opener_id, vertex.id, bond, is_ring_closure=True)
        opener.atom.set_order(vertex.id, vertex.atom.expanded_hydrogens + index + 1)
        vertex.atom.set_order(opener_id, opener.atom.expanded_hydrogens + opener_index + 1)
        self._closures.append((opener_id, vertex.id))


def _ring_bond_type(first: str | None, second: str | None) -> str:
    """Bond type of a ring closure; an explicit non-single symbol wins."""
    for symbol in (first, second):
        if symbol is not None and symbol not in ("-", "/", "\\"):
            return symbol
    return first or second or DEFAULT_BOND
