"""
Core graph record types.

Vertices, edges, rings and ring connections refer to each other only by
integer id; the owning :class:`~chiralayout.graph.Graph` resolves ids.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from chiralayout.elements import BOND_SYMBOLS, display_symbol
from chiralayout.geometry import Vector2
from chiralayout.tree import BracketInfo, RingBond


@dataclass(slots=True)
class PseudoElement:
    """A terminal group collapsed into the label of its neighbour."""
    
    element: str
    previous_element: str | None
    hydrogen_count: int = 0
    count: int = 1


@dataclass(slots=True)
class Atom:
    """Chemical payload of a vertex.
    
    Attributes:
        element: Element symbol as written (lowercase for aromatic atoms).
        bracket: Bracket attributes, or None for organic-subset atoms.
        bond_type: Symbol of the bond leading into this atom.
        ringbonds: Ring-closure markers written on this atom.
        rings: Ids of the currently active rings containing this atom.
        original_rings: Backup of ``rings`` taken before bridged merging.
        anchored_rings: Ids of rings whose center moves with this atom.
        bridged_ring: Id of the bridged ring this atom belongs to, if any.
        is_bridge: True for atoms strictly inside a bridged ring.
        is_bridge_node: True for boundary atoms shared by bridged sub-rings.
        is_connected_to_ring: True for substituents placed off a ring.
        is_drawn: False once the atom was collapsed into a pseudo-element.
        explicit: True if the label must always be drawn.
        order: Neighbour-relative order used for chirality, keyed by the
            id of the center the order is relative to.
        expanded_hydrogens: Number of bracket hydrogens turned into vertices.
    """
    
    element: str
    bracket: BracketInfo | None = None
    bond_type: str = "-"
    ringbonds: list[RingBond] = field(default_factory=list)
    rings: list[int] = field(default_factory=list)
    original_rings: list[int] = field(default_factory=list)
    anchored_rings: list[int] = field(default_factory=list)
    bridged_ring: int | None = None
    is_bridge: bool = False
    is_bridge_node: bool = False
    is_connected_to_ring: bool = False
    is_drawn: bool = True
    explicit: bool = False
    pseudo_elements: dict[str, PseudoElement] = field(default_factory=dict)
    order: dict[int, int] = field(default_factory=dict)
    expanded_hydrogens: int = 0
    
    @property
    def is_aromatic(self) -> bool:
        """Aromatic atoms are written in lowercase."""
        return self.element[0].islower()
    
    @property
    def symbol(self) -> str:
        return display_symbol(self.element)
    
    @property
    def chirality(self) -> str | None:
        return self.bracket.chirality if self.bracket else None
    
    @property
    def has_pseudo_elements(self) -> bool:
        return bool(self.pseudo_elements)
    
    def set_order(self, center: int, order: int) -> None:
        self.order[center] = order
    
    def get_order(self, center: int) -> int | None:
        return self.order.get(center)
    
    def attach_pseudo_element(
        self,
        element: str,
        previous_element: str | None,
        hydrogen_count: int = 0,
    ) -> None:
        """Collapse a terminal neighbour into this atom's label.
        
        Identical groups are counted rather than repeated, so three methyl
        groups become ``(CH3)3``.
        """
        key = f"{hydrogen_count}{element}"
        if key in self.pseudo_elements:
            self.pseudo_elements[key].count += 1
        else:
            self.pseudo_elements[key] = PseudoElement(element, previous_element, hydrogen_count)
    
    def backup_rings(self) -> None:
        self.original_rings = list(self.rings)
    
    def restore_rings(self) -> None:
        self.rings = list(self.original_rings)


@dataclass(slots=True)
class Vertex:
    """A node of the molecular graph."""
    
    id: int
    atom: Atom
    parent_id: int | None = None
    children: list[int] = field(default_factory=list)
    spanning_tree_children: list[int] = field(default_factory=list)
    edges: list[int] = field(default_factory=list)
    position: Vector2 = field(default_factory=Vector2)
    previous_position: Vector2 = field(default_factory=Vector2)
    positioned: bool = False
    flippable: bool = False
    flip_center: int | None = None
    flip_rings: list[int] = field(default_factory=list)
    flip_neighbour: int | None = None
    
    def neighbours(self, exclude: int | None = None) -> list[int]:
        """Children followed by the parent, optionally without ``exclude``."""
        result = list(self.children)
        if self.parent_id is not None:
            result.append(self.parent_id)
        if exclude is not None:
            result = [n for n in result if n != exclude]
        return result
    
    def spanning_tree_neighbours(self, exclude: int | None = None) -> list[int]:
        result = list(self.spanning_tree_children)
        if self.parent_id is not None:
            result.append(self.parent_id)
        if exclude is not None:
            result = [n for n in result if n != exclude]
        return result
    
    @property
    def neighbour_count(self) -> int:
        return len(self.children) + (1 if self.parent_id is not None else 0)
    
    def is_terminal(self) -> bool:
        if self.atom.has_pseudo_elements:
            return True
        return (self.parent_id is None and len(self.children) < 2) or not self.children
    
    def set_position(self, position: Vector2) -> None:
        self.position = position
        self.positioned = True
    
    def angle(self, reference: Vector2 | None = None) -> float:
        """Direction of this vertex seen from ``reference``.
        
        Defaults to the previous position, giving the inbound bond angle.
        """
        origin = self.previous_position if reference is None else reference
        return (self.position - origin).angle()


@dataclass(slots=True)
class Edge:
    """A bond between two vertices.
    
    Attributes:
        wedge: ``"up"`` (solid wedge), ``"down"`` (dashed wedge) or ``""``.
        wedge_origin: Id of the stereo center the wedge starts from.
        center: Draw the strands of a multiple bond symmetric about the
            vertex-to-vertex line.
    """
    
    id: int
    source_id: int
    target_id: int
    bond_type: str = "-"
    is_ring_closure: bool = False
    wedge: str = ""
    wedge_origin: int | None = None
    center: bool = False
    
    @property
    def bond_count(self) -> int:
        return int(BOND_SYMBOLS[self.bond_type])
    
    def other(self, vertex_id: int) -> int:
        return self.target_id if vertex_id == self.source_id else self.source_id


@dataclass(slots=True)
class Ring:
    """A ring of the molecular graph.
    
    ``members`` starts at ``source_id`` and ends at ``target_id``; the two
    are joined by the ring-closure bond that spawned the ring. Bridged rings
    additionally list the ids of the constituent rings they replace and the
    vertices lying inside their boundary.
    """
    
    id: int
    source_id: int
    target_id: int
    members: list[int] = field(default_factory=list)
    center: Vector2 = field(default_factory=Vector2)
    neighbours: list[int] = field(default_factory=list)
    positioned: bool = False
    is_spiro: bool = False
    is_fused: bool = False
    is_bridged: bool = False
    rings: list[int] = field(default_factory=list)
    insiders: list[int] = field(default_factory=list)
    can_flip: bool = True
    
    @property
    def size(self) -> int:
        return len(self.members)
    
    @property
    def central_angle(self) -> float:
        return 2.0 * math.pi / self.size
    
    @property
    def angle(self) -> float:
        """Interior angle of the regular polygon of this ring."""
        return math.pi - self.central_angle
    
    def set_flipped(self) -> None:
        self.can_flip = False


@dataclass(slots=True)
class RingConnection:
    """Two rings and the vertices they share."""
    
    id: int
    first_ring_id: int
    second_ring_id: int
    vertices: set[int] = field(default_factory=set)
    
    def involves(self, ring_id: int) -> bool:
        return ring_id in (self.first_ring_id, self.second_ring_id)
    
    def connects(self, ring_a: int, ring_b: int) -> bool:
        return {ring_a, ring_b} == {self.first_ring_id, self.second_ring_id}
    
    def other(self, ring_id: int) -> int:
        return self.second_ring_id if ring_id == self.first_ring_id else self.first_ring_id
    
    def update_other(self, ring_id: int, other_ring_id: int) -> None:
        """Replace the ring on the far side of ``other_ring_id`` with ``ring_id``."""
        if self.first_ring_id == other_ring_id:
            self.second_ring_id = ring_id
        else:
            self.first_ring_id = ring_id
