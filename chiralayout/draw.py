"""
Draw-command emission.

Turns a laid-out graph into an ordered list of backend-agnostic draw
commands. Nothing here touches positions: emission is a read-only pass
over vertices, edges and rings.

Commands are emitted in this order:

* one or more lines per edge (plain, wedge or dashed wedge),
* one inscribed circle per aromatic ring,
* one label or ball per visible atom,
* debug annotations, when enabled.

    >>> from chiralayout import draw_smiles
    >>> result = draw_smiles("CCO")
    >>> [c.element for c in result.commands if isinstance(c, TextCommand)]
    ['O']
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Union

from chiralayout.elements import DOT_BOND, display_symbol, get_max_bonds
from chiralayout.geometry import Line, Vector2, apothem_from_side_length, mean_angle

if TYPE_CHECKING:
    from chiralayout.graph import Graph
    from chiralayout.session import LayoutSession
    from chiralayout.types import Edge, PseudoElement, Ring, Vertex

logger = logging.getLogger(__name__)

PLAIN: Final[str] = "plain"
WEDGE: Final[str] = "wedge"
DASHED_WEDGE: Final[str] = "dashed-wedge"

_WEDGE_STYLES: Final[dict[str, str]] = {"up": WEDGE, "down": DASHED_WEDGE}


@dataclass(frozen=True, slots=True)
class LineCommand:
    """A bond stroke.

    Attributes:
        start: First end point; for wedges the stereo center.
        end: Second end point.
        element_from: Element at ``start``, for colouring the half-bond.
        element_to: Element at ``end``.
        chiral_from: True if ``start`` is a stereo center.
        chiral_to: True if ``end`` is a stereo center.
        style: ``"plain"``, ``"wedge"`` or ``"dashed-wedge"``.
    """

    start: Vector2
    end: Vector2
    element_from: str | None = None
    element_to: str | None = None
    chiral_from: bool = False
    chiral_to: bool = False
    style: str = PLAIN


@dataclass(frozen=True, slots=True)
class TextCommand:
    """An atom label with hydrogens, charge, isotope and collapsed groups."""

    position: Vector2
    element: str
    hydrogens: int
    direction: str
    is_terminal: bool
    charge: int = 0
    isotope: int | None = None
    pseudo_elements: tuple[PseudoElement, ...] = ()
    color: str = ""


@dataclass(frozen=True, slots=True)
class BallCommand:
    position: Vector2
    element: str
    color: str = ""


@dataclass(frozen=True, slots=True)
class AromaticRingCommand:
    """A circle inscribed into an aromatic ring."""

    center: Vector2
    radius: float


@dataclass(frozen=True, slots=True)
class DebugTextCommand:
    position: Vector2
    text: str


@dataclass(frozen=True, slots=True)
class DebugPointCommand:
    position: Vector2
    text: str


DrawCommand = Union[
    LineCommand, TextCommand, BallCommand, AromaticRingCommand, DebugTextCommand, DebugPointCommand
]


@dataclass(slots=True)
class DrawResult:
    """Draw commands of a layout together with the session that produced them."""

    session: LayoutSession
    commands: list[DrawCommand] = field(default_factory=list)

    @property
    def lines(self) -> list[LineCommand]:
        return [c for c in self.commands if isinstance(c, LineCommand)]

    @property
    def texts(self) -> list[TextCommand]:
        return [c for c in self.commands if isinstance(c, TextCommand)]

    @property
    def aromatic_rings(self) -> list[AromaticRingCommand]:
        return [c for c in self.commands if isinstance(c, AromaticRingCommand)]

    def bounding_box(self) -> tuple[float, float, float, float]:
        """Extent of all vertices as ``(min_x, min_y, max_x, max_y)``, padded.

        Returns:
            The padded box, or a box of just the padding around the origin
            for an empty graph.
        """
        padding = self.session.options.padding
        positions = [v.position for v in self.session.graph.vertices]
        if not positions:
            return (-padding, -padding, padding, padding)
        xs = [p.x for p in positions]
        ys = [p.y for p in positions]
        return (min(xs) - padding, min(ys) - padding, max(xs) + padding, max(ys) + padding)


# Pseudo-elements

def init_pseudo_elements(graph: Graph) -> None:
    """Collapse terminal neighbours into the label of their center atom.

    An atom with at least three neighbours, or two when it hangs off a
    ring, absorbs its terminal neighbours if at most one neighbour is not
    terminal. The absorbed atoms are no longer drawn.
    """
    for vertex in graph.vertices:
        count = vertex.neighbour_count
        if count < 3 and not (vertex.atom.is_connected_to_ring and count == 2):
            continue

        neighbours = [graph.vertices[n] for n in vertex.neighbours()]
        non_terminal = [n for n in neighbours if n.neighbour_count > 1]
        if len(non_terminal) > 1:
            continue

        previous = non_terminal[-1].atom.element if non_terminal else None
        for neighbour in neighbours:
            if neighbour.neighbour_count > 1:
                continue
            neighbour.atom.is_drawn = False
            vertex.atom.attach_pseudo_element(
                neighbour.atom.element,
                previous,
                _hydrogen_count(graph, neighbour),
            )


def _hydrogen_count(graph: Graph, vertex: Vertex) -> int:
    """Implicit hydrogens shown in the label of a vertex."""
    atom = vertex.atom
    if atom.bracket is not None:
        return 0 if atom.expanded_hydrogens else atom.bracket.hcount
    max_bonds = get_max_bonds(atom.element)
    if max_bonds is None:
        return 0
    hydrogens = max_bonds - graph.bond_count(vertex.id)
    if atom.is_aromatic:
        hydrogens -= 1
    return max(hydrogens, 0)


# Edges

def _edge_normals(graph: Graph, edge: Edge) -> tuple[Vector2, Vector2]:
    a = graph.vertices[edge.source_id].position
    b = graph.vertices[edge.target_id].position
    first, second = Vector2.normals(a, b)
    return first.normalized(), second.normalized()


def _largest_or_aromatic_common_ring(graph: Graph, a: int, b: int) -> Ring | None:
    best = None
    for ring_id in graph.common_rings(a, b):
        ring = graph.ring(ring_id)
        if graph.is_ring_aromatic(ring):
            return ring
        if best is None or ring.size > best.size:
            best = ring
    return best


@dataclass(slots=True)
class _Sides:
    """Neighbour counts on both sides of a bond."""

    side_count: tuple[int, int]
    total_side_count: tuple[int, int]
    a_count: int
    b_count: int


def _choose_side(graph: Graph, a: Vertex, b: Vertex, probe: Vector2) -> _Sides:
    an = a.neighbours(exclude=b.id)
    bn = b.neighbours(exclude=a.id)

    side = [0, 0]
    for n in an + bn:
        side[0 if graph.vertices[n].position.same_side_as(a.position, b.position, probe) else 1] += 1

    total = [0, 0]
    for vertex in graph.vertices:
        total[0 if vertex.position.same_side_as(a.position, b.position, probe) else 1] += 1

    return _Sides((side[0], side[1]), (total[0], total[1]), len(an), len(bn))


def emit_edges(session: LayoutSession) -> list[DrawCommand]:
    graph = session.graph
    options = session.options
    spacing = options.bond_spacing
    shortening = options.shortening
    commands: list[DrawCommand] = []

    for edge in graph.edges:
        if edge.bond_type == DOT_BOND:
            continue
        vertex_a = graph.vertices[edge.source_id]
        vertex_b = graph.vertices[edge.target_id]
        if (not vertex_a.atom.is_drawn or not vertex_b.atom.is_drawn) and options.atom_visualization == "default":
            continue

        a = vertex_a.position
        b = vertex_b.position
        element_a = vertex_a.atom.element
        element_b = vertex_b.atom.element
        main = Line(a, b, element_a, element_b)
        normals = _edge_normals(graph, edge)

        if edge.bond_type == "=":
            lines = _double_bond(graph, edge, vertex_a, vertex_b, main, normals, spacing, shortening)
        elif edge.bond_type in ("#", "$"):
            offset = spacing / 1.5
            lines = [
                main.offset(normals[0] * offset).shortened(shortening),
                main.offset(normals[1] * offset).shortened(shortening),
                main,
            ]
        else:
            line, style = _single_bond(vertex_a, vertex_b, edge)
            commands.append(_line_command(line, style))
            continue

        commands.extend(_line_command(line) for line in lines)

    return commands


def _line_command(line: Line, style: str = PLAIN) -> LineCommand:
    return LineCommand(
        line.start, line.end,
        line.element_start, line.element_end,
        line.chiral_start, line.chiral_end,
        style,
    )


def _double_bond(
    graph: Graph,
    edge: Edge,
    vertex_a: Vertex,
    vertex_b: Vertex,
    main: Line,
    normals: tuple[Vector2, Vector2],
    spacing: float,
    shortening: float,
) -> list[Line]:
    a = vertex_a.position
    b = vertex_b.position
    sides = _choose_side(graph, vertex_a, vertex_b, a + normals[0] * 10.0)

    # Inside a ring the inner strand goes toward the ring center
    if graph.in_same_ring(vertex_a.id, vertex_b.id):
        ring = _largest_or_aromatic_common_ring(graph, vertex_a.id, vertex_b.id)
        inner = normals[0] if ring.center.same_side_as(a, b, a + normals[0] * spacing) else normals[1]
        return [main.offset(inner * spacing).shortened(shortening), main]

    if edge.center:
        half = spacing / 2.0
        return [
            main.offset(normals[0] * half).shortened(shortening),
            main.offset(normals[1] * half).shortened(shortening),
        ]

    a_count, b_count = sides.a_count, sides.b_count
    if (a_count == 0 and b_count > 1) or (b_count == 0 and a_count > 1) or (a_count == 0 and b_count == 0):
        half = spacing / 2.0
        return [main.offset(normals[0] * half), main.offset(normals[1] * half)]

    if sides.side_count[0] != sides.side_count[1]:
        side = normals[0] if sides.side_count[0] > sides.side_count[1] else normals[1]
    else:
        side = normals[0] if sides.total_side_count[0] > sides.total_side_count[1] else normals[1]
    return [main.offset(side * spacing).shortened(shortening), main]


def _single_bond(vertex_a: Vertex, vertex_b: Vertex, edge: Edge) -> tuple[Line, str]:
    """Plain or wedged line; wedges start at their stereo center."""
    chiral_a = vertex_a.atom.chirality is not None
    chiral_b = vertex_b.atom.chirality is not None
    line = Line(
        vertex_a.position, vertex_b.position,
        vertex_a.atom.element, vertex_b.atom.element,
        chiral_a, chiral_b,
    )
    if edge.wedge and edge.wedge_origin == vertex_b.id:
        line = Line(line.end, line.start, line.element_end, line.element_start, chiral_b, chiral_a)
    return line, _WEDGE_STYLES.get(edge.wedge, PLAIN)


# Rings

def emit_aromatic_rings(session: LayoutSession) -> list[DrawCommand]:
    """One inscribed circle per ring whose members are all aromatic."""
    graph = session.graph
    options = session.options
    return [
        AromaticRingCommand(
            ring.center,
            apothem_from_side_length(options.bond_length, ring.size) - options.bond_spacing,
        )
        for ring in graph.rings
        if graph.is_ring_aromatic(ring)
    ]


# Vertices

def text_direction(graph: Graph, vertex: Vertex) -> str:
    """Side of the atom a label's hydrogens go to, away from its bonds.

    Returns:
        ``"right"``, ``"left"``, ``"up"`` or ``"down"``; y grows downward.
    """
    angles = [
        (vertex.position - graph.vertices[n].position).angle()
        for n in graph.drawn_neighbours(vertex.id)
    ]
    if not angles:
        return "right"

    quadrant = round(mean_angle(angles) / (math.pi / 2.0))
    if quadrant == 1:
        return "down"
    if quadrant == -1:
        return "up"
    if abs(quadrant) == 2:
        return "left"
    return "right"


def emit_vertices(session: LayoutSession) -> list[DrawCommand]:
    """Labels (or balls) for every atom that is not an implicit carbon."""
    graph = session.graph
    options = session.options
    commands: list[DrawCommand] = []

    for vertex in graph.vertices:
        atom = vertex.atom
        if not atom.is_drawn:
            continue

        element = display_symbol(atom.element)
        is_carbon = atom.element.lower() == "c"
        if options.terminal_carbons or element != "C" or atom.has_pseudo_elements:
            is_terminal = vertex.is_terminal()
        else:
            is_terminal = False

        if is_carbon and not (atom.explicit or is_terminal or atom.has_pseudo_elements):
            continue

        color = options.color_for(atom.element)
        if options.atom_visualization == "balls":
            commands.append(BallCommand(vertex.position, element, color))
            continue

        bracket = atom.bracket
        commands.append(TextCommand(
            vertex.position,
            element,
            _hydrogen_count(graph, vertex),
            text_direction(graph, vertex),
            is_terminal,
            charge=bracket.charge if bracket else 0,
            isotope=bracket.isotope if bracket else None,
            pseudo_elements=tuple(atom.pseudo_elements.values()),
            color=color,
        ))

    return commands


def emit_debug(session: LayoutSession) -> list[DrawCommand]:
    graph = session.graph
    commands: list[DrawCommand] = []
    for edge in graph.edges:
        midpoint = Vector2.midpoint(graph.vertices[edge.source_id].position, graph.vertices[edge.target_id].position)
        commands.append(DebugTextCommand(midpoint, f"e: {edge.id}"))
    for vertex in graph.vertices:
        ringbonds = ",".join(str(r.id) for r in vertex.atom.ringbonds)
        commands.append(DebugTextCommand(vertex.position, f"v: {vertex.id} [{ringbonds}]"))
    for ring in graph.rings:
        commands.append(DebugPointCommand(ring.center, f"r: {ring.id}"))
    return commands


def emit_commands(session: LayoutSession) -> list[DrawCommand]:
    """All draw commands of a laid-out session, in drawing order."""
    commands = emit_edges(session)
    commands.extend(emit_aromatic_rings(session))
    commands.extend(emit_vertices(session))
    if session.options.debug:
        commands.extend(emit_debug(session))
    logger.debug("Emitted %d draw commands", len(commands))
    return commands
