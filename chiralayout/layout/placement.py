"""
Directional placement of vertices and rings.

Coordinates are assigned depth-first over the spanning tree. Chain atoms
are placed at conventional angles relative to their inbound bond, ring
systems are inscribed into regular polygons, and bridged systems are
relaxed with :func:`~chiralayout.layout.force.force_layout`.

The traversal is driven by an explicit worklist of pending steps. Every
step pushes its follow-up steps in reverse, so they run in the same order
as a recursive depth-first walk would run them, without growing the
interpreter stack on long chains.
"""

from __future__ import annotations

import logging
import math
import warnings
from functools import partial
from typing import TYPE_CHECKING, Callable, Final, Iterator

from chiralayout.geometry import Vector2, apothem, central_angle, poly_circumradius, to_rad
from chiralayout.layout.force import force_layout

if TYPE_CHECKING:
    from chiralayout.session import LayoutSession
    from chiralayout.types import Ring, Vertex

logger = logging.getLogger(__name__)

MAX_RING_WALK: Final[int] = 100

_DEG_30: Final[float] = to_rad(30)
_DEG_36: Final[float] = to_rad(36)
_DEG_60: Final[float] = to_rad(60)
_DEG_90: Final[float] = to_rad(90)
_DEG_108: Final[float] = to_rad(108)
_DEG_120: Final[float] = to_rad(120)


class CoordinateAssigner:
    """Assigns a position to every vertex and a center to every ring.

    Args:
        session: Layout session whose graph has been through ring
            perception.

    Example:
        >>> from chiralayout import draw_smiles
        >>> result = draw_smiles("CCO")
        >>> result.session.graph.vertices[0].position
        Vector2(x=16.0, y=0.0)
    """

    def __init__(self, session: LayoutSession) -> None:
        self.session = session
        self.graph = session.graph
        self.bond_length = session.bond_length
        self._worklist: list[Callable[[], None]] = []

    def run(self) -> None:
        """Place the whole graph starting from :meth:`start_vertex`."""
        if not self.graph.vertices:
            return

        start = self.start_vertex()
        self._schedule(partial(self.create_next_bond, start))
        self._drain()

        unplaced = [v.id for v in self.graph.vertices if not v.positioned]
        if unplaced:
            warnings.warn(f"Vertices left unplaced by the layout: {unplaced}")
        logger.debug("Placed %d vertices from start vertex %d", len(self.graph.vertices), start)

    def start_vertex(self) -> int:
        """First vertex to place.

        Inside a bridged ring the walk starts from a member belonging to a
        single original ring, which gives a clean boundary start point.
        """
        for ring in self.graph.rings:
            if not ring.is_bridged:
                continue
            for member in ring.members:
                if len(self.graph.vertices[member].atom.original_rings) == 1:
                    return member
            return ring.members[-1]
        return 0

    # Worklist

    def _schedule(self, *steps: Callable[[], None]) -> None:
        """Queue steps to run next, in the given order."""
        self._worklist.extend(reversed(steps))

    def _drain(self) -> None:
        while self._worklist:
            step = self._worklist.pop()
            step()

    # Chain placement

    def create_next_bond(
        self,
        vertex_id: int,
        previous_id: int | None = None,
        angle: float | None = None,
        center: Vector2 | None = None,
        direction: int = 0,
    ) -> None:
        """Position a vertex next to an already positioned one.

        Args:
            vertex_id: Vertex to place.
            previous_id: Positioned neighbour the bond starts from; None
                for the very first vertex.
            angle: Absolute angle of the new bond for chain continuations.
            center: Center of the ring the previous vertex belongs to, for
                bonds leaving a ring.
            direction: Zig-zag sign (1 or -1), 0 when undecided.
        """
        graph = self.graph
        vertex = graph.vertices[vertex_id]
        if vertex.positioned:
            return

        if previous_id is None:
            self._place_first(vertex)
        else:
            self._place_after(vertex, graph.vertices[previous_id], angle, center)

        if vertex.atom.rings:
            ring = graph.ring(vertex.atom.rings[0])
            heading = self._direction(vertex.position - vertex.previous_position)
            ring_center = vertex.position + heading * poly_circumradius(self.bond_length, ring.size)
            self._schedule(partial(self.create_ring, ring.id, ring_center, vertex.id))
            return

        neighbours = vertex.neighbours(exclude=previous_id)
        previous = graph.vertices[previous_id] if previous_id is not None else None
        inbound = vertex.angle()

        if len(neighbours) == 1:
            self._branch_one(vertex, previous, neighbours[0], inbound, direction)
        elif len(neighbours) == 2:
            self._branch_two(vertex, neighbours, inbound, direction)
        elif len(neighbours) == 3:
            self._branch_three(vertex, neighbours, inbound, direction)
        elif len(neighbours) == 4:
            self._branch_four(vertex, neighbours, inbound)
        elif len(neighbours) > 4:
            self._branch_many(vertex, neighbours, inbound)

    def _place_first(self, vertex: Vertex) -> None:
        bond = Vector2(self.bond_length, 0.0)
        vertex.previous_position = bond.rotate(-_DEG_120)
        vertex.set_position(bond)

    def _place_after(
        self,
        vertex: Vertex,
        previous: Vertex,
        angle: float | None,
        center: Vector2 | None,
    ) -> None:
        bond_length = self.bond_length
        atom = vertex.atom
        prev_atom = previous.atom
        origin = previous.position

        if not prev_atom.rings and not atom.is_bridge and not prev_atom.is_bridge:
            position = origin + Vector2(bond_length, 0.0).rotate(angle or 0.0)
        elif prev_atom.is_bridge_node and atom.is_bridge:
            target = center if center is not None else self._ring_center_of(previous)
            position = origin + self._direction(target - origin) * bond_length
        elif atom.is_bridge:
            if angle is not None:
                position = origin + Vector2(bond_length, 0.0).rotate(angle)
            else:
                target = center if center is not None else self._ring_center_of(previous)
                position = origin + self._direction(target - origin) * bond_length
        elif len(prev_atom.rings) == 1 or prev_atom.is_bridge:
            away = center if center is not None else self._ring_center_of(previous)
            position = origin + self._direction(origin - away) * bond_length
        else:
            # Between two rings: leave along the bisector of the two centers
            center_a = self.graph.ring(prev_atom.rings[0]).center
            center_b = self.graph.ring(prev_atom.rings[1]).center
            axis = (center_b - center_a).normalized()
            projection = center_a + axis * (origin - center_a).dot(axis)
            position = origin + self._direction(origin - projection) * bond_length

        vertex.previous_position = origin
        vertex.set_position(position)

    def _ring_center_of(self, vertex: Vertex) -> Vector2:
        atom = vertex.atom
        if atom.rings:
            return self.graph.ring(atom.rings[0]).center
        if atom.bridged_ring is not None:
            return self.graph.ring(atom.bridged_ring).center
        return vertex.previous_position

    def _direction(self, vector: Vector2) -> Vector2:
        """Unit vector along ``vector``, or a random unit vector when it has no length.

        Coincident points have no direction; the session generator picks one
        so the placed vertex still lands a bond length away.
        """
        if vector.length_sq() == 0.0:
            angle = float(self.session.rng.random()) * 2.0 * math.pi
            return Vector2(math.cos(angle), math.sin(angle))
        return vector.normalized()

    def _away_from_center_of_mass(self, vertex: Vertex) -> float:
        """Pick +60 or -60 degrees, whichever points away from the placed atoms."""
        bond = Vector2(self.bond_length, 0.0)
        candidate_a = vertex.position + bond.rotate(_DEG_60)
        candidate_b = vertex.position + bond.rotate(-_DEG_60)
        center_of_mass = self.graph.center_of_mass()
        if candidate_a.distance(center_of_mass) < candidate_b.distance(center_of_mass):
            return -_DEG_60
        return _DEG_60

    def _bond_step(self, vertex_id: int, previous_id: int, angle: float, direction: int = 0) -> Callable[[], None]:
        return partial(self.create_next_bond, vertex_id, previous_id, angle, None, direction)

    def _branch_one(
        self,
        vertex: Vertex,
        previous: Vertex | None,
        next_id: int,
        inbound: float,
        direction: int,
    ) -> None:
        graph = self.graph
        atom = vertex.atom
        triple = atom.bond_type == "#" or (previous is not None and previous.atom.bond_type == "#")
        cumulated = atom.bond_type == "=" and previous is not None and previous.atom.bond_type == "="

        if triple or cumulated:
            # Triple bonds and cumulated double bonds are kept straight and
            # their carbons labelled
            atom.explicit = True
            if previous is not None:
                graph.edge_between(vertex.id, previous.id).center = True
            graph.edge_between(vertex.id, next_id).center = True
            self._schedule(self._bond_step(next_id, vertex.id, inbound, -direction))
            return

        if (previous is not None and previous.atom.rings) or not direction:
            turn = self._away_from_center_of_mass(vertex)
            direction = -1 if turn > 0 else 1
        else:
            turn = _DEG_60 * direction
            direction = -direction

        self._schedule(self._bond_step(next_id, vertex.id, inbound + turn, direction))

    def _branch_two(self, vertex: Vertex, neighbours: list[int], inbound: float, direction: int) -> None:
        depth_a = self.graph.tree_depth(neighbours[0], vertex.id)
        depth_b = self.graph.tree_depth(neighbours[1], vertex.id)
        # The deeper subtree takes the trans slot
        cis, trans = (neighbours[1], neighbours[0]) if depth_a > depth_b else (neighbours[0], neighbours[1])

        if vertex.position.clockwise(vertex.previous_position) == 1:
            self._schedule(
                self._bond_step(trans, vertex.id, inbound + _DEG_60, -direction),
                self._bond_step(cis, vertex.id, inbound - _DEG_60, -direction),
            )
        else:
            self._schedule(
                self._bond_step(cis, vertex.id, inbound + _DEG_60, -direction),
                self._bond_step(trans, vertex.id, inbound - _DEG_60, -direction),
            )

    def _branch_three(self, vertex: Vertex, neighbours: list[int], inbound: float, direction: int) -> None:
        graph = self.graph
        d1, d2, d3 = (graph.tree_depth(n, vertex.id) for n in neighbours)
        straight, left, right = neighbours
        if d2 > d1 and d2 > d3:
            straight, left, right = neighbours[1], neighbours[0], neighbours[2]
        elif d3 > d1 and d3 > d2:
            straight, left, right = neighbours[2], neighbours[0], neighbours[1]

        if (
            graph.tree_depth(left, vertex.id) == 1
            and graph.tree_depth(right, vertex.id) == 1
            and graph.tree_depth(straight, vertex.id) > 1
        ):
            if not direction:
                turn = self._away_from_center_of_mass(vertex)
                direction = -1 if turn > 0 else 1
            else:
                turn = _DEG_60 * direction
                direction = -direction

            steps = [self._bond_step(straight, vertex.id, inbound + turn, -direction)]
            # Anticlockwise centers swap the draw order so the drawing stays the same
            if vertex.atom.chirality == "@@":
                steps.append(self._bond_step(right, vertex.id, inbound + _DEG_30 * direction))
                steps.append(self._bond_step(left, vertex.id, inbound + _DEG_90 * direction))
            else:
                steps.append(self._bond_step(left, vertex.id, inbound + _DEG_30 * direction))
                steps.append(self._bond_step(right, vertex.id, inbound + _DEG_90 * direction))
            self._schedule(*steps)
        else:
            self._schedule(
                self._bond_step(straight, vertex.id, inbound),
                self._bond_step(left, vertex.id, inbound + _DEG_90),
                self._bond_step(right, vertex.id, inbound - _DEG_90),
            )

    def _branch_four(self, vertex: Vertex, neighbours: list[int], inbound: float) -> None:
        depths = [self.graph.tree_depth(n, vertex.id) for n in neighbours]
        deepest = 0
        for i in range(1, 4):
            if all(depths[i] > depths[j] for j in range(4) if j != i):
                deepest = i
        w = neighbours[deepest]
        x, y, z = (n for i, n in enumerate(neighbours) if i != deepest)

        self._schedule(
            self._bond_step(w, vertex.id, inbound - _DEG_36),
            self._bond_step(x, vertex.id, inbound + _DEG_36),
            self._bond_step(y, vertex.id, inbound - _DEG_108),
            self._bond_step(z, vertex.id, inbound + _DEG_108),
        )

    def _branch_many(self, vertex: Vertex, neighbours: list[int], inbound: float) -> None:
        step = 2.0 * math.pi / (len(neighbours) + 1)
        self._schedule(*(
            self._bond_step(n, vertex.id, inbound - math.pi + (i + 1) * step)
            for i, n in enumerate(neighbours)
        ))

    # Ring placement

    def create_ring(
        self,
        ring_id: int,
        center: Vector2 | None = None,
        start_id: int | None = None,
        previous_id: int | None = None,
    ) -> None:
        """Inscribe a ring into a regular polygon and queue what hangs off it.

        Members are walked from ``start_id`` away from ``previous_id`` and
        put on the circumcircle at equal angular steps. Neighbouring rings
        are queued by decreasing number of shared vertices, then the
        substituents of every member.

        Args:
            ring_id: Ring to place; a ring that is already positioned is
                left alone.
            center: Center of the polygon.
            start_id: Member the walk starts from; its angle relative to
                ``center`` is the starting angle.
            previous_id: Neighbour of ``start_id`` the walk moves away from.
        """
        graph = self.graph
        ring = graph.ring(ring_id)
        if ring.positioned:
            return

        center = center if center is not None else Vector2()
        radius = poly_circumradius(self.bond_length, ring.size)
        step = central_angle(ring.size)

        angle = 0.0
        if start_id is not None:
            angle = (graph.vertices[start_id].position - center).angle()
        if start_id not in ring.members:
            start_id = ring.members[0]
            previous_id = None

        mark_positioned = not ring.is_bridged or len(ring.rings) < 3
        for member in self._walk_ring(ring, start_id, previous_id):
            vertex = graph.vertices[member]
            if not vertex.positioned:
                vertex.position = center + Vector2(math.cos(angle), math.sin(angle)) * radius
            angle += step
            if mark_positioned:
                vertex.positioned = True

        steps: list[Callable[[], None]] = []
        if ring.is_bridged:
            result = force_layout(self.session, ring.members + ring.insiders, center, start_id, ring)
            self.session.force_displacements[ring.id] = result.displacements
            steps.extend(self._bridged_substituent_steps(ring))

        graph.vertices[ring.members[0]].atom.anchored_rings.append(ring.id)
        ring.positioned = True
        ring.center = center

        for neighbour_id in self._ordered_neighbours(ring):
            steps.append(partial(self._place_neighbour_ring, ring.id, neighbour_id))

        for member in ring.members:
            for neighbour in graph.vertices[member].neighbours():
                if self._ring_or_neighbours_contain(ring, neighbour):
                    continue
                steps.append(partial(self._place_substituent, ring.id, member, neighbour))

        self._schedule(*steps)

    def _walk_ring(self, ring: Ring, start_id: int, previous_id: int | None) -> Iterator[int]:
        """Yield ring members in order, moving from ``start_id`` away from ``previous_id``.

        Members the walk cannot reach without revisiting a vertex follow at
        the end, so every member is yielded exactly once.
        """
        vertices = self.graph.vertices
        visited: list[int] = []
        current: int | None = start_id
        while current is not None and len(visited) < MAX_RING_WALK:
            visited.append(current)
            yield current
            following = next(
                (n for n in vertices[current].neighbours()
                 if ring.id in vertices[n].atom.rings and n != previous_id and n not in visited),
                None,
            )
            previous_id = current
            current = following
        yield from (m for m in ring.members if m not in visited)

    def _ordered_neighbours(self, ring: Ring) -> list[int]:
        """Neighbouring rings by decreasing number of shared vertices."""
        return sorted(
            ring.neighbours,
            key=lambda n: len(self.graph.shared_vertices(ring.id, n)),
            reverse=True,
        )

    def _ring_or_neighbours_contain(self, ring: Ring, vertex_id: int) -> bool:
        if vertex_id in ring.members:
            return True
        return any(vertex_id in self.graph.ring(n).members for n in ring.neighbours)

    def _place_neighbour_ring(self, ring_id: int, neighbour_id: int) -> None:
        graph = self.graph
        ring = graph.ring(ring_id)
        neighbour = graph.ring(neighbour_id)
        if neighbour.positioned:
            return

        shared = graph.shared_vertices(ring_id, neighbour_id)
        radius = poly_circumradius(self.bond_length, neighbour.size)

        if len(shared) == 2:
            ring.is_fused = neighbour.is_fused = True
            vertex_a = graph.vertices[shared[0]]
            vertex_b = graph.vertices[shared[1]]
            midpoint = Vector2.midpoint(vertex_a.position, vertex_b.position)
            distance = apothem(radius, neighbour.size)
            candidates = [
                midpoint + normal.normalized() * distance
                for normal in Vector2.normals(vertex_a.position, vertex_b.position)
            ]
            next_center = candidates[1] if self.is_point_in_ring(candidates[0]) else candidates[0]

            if (vertex_a.position - next_center).clockwise(vertex_b.position - next_center) == -1:
                self.create_ring(neighbour_id, next_center, vertex_a.id, vertex_b.id)
            else:
                self.create_ring(neighbour_id, next_center, vertex_b.id, vertex_a.id)
        elif len(shared) == 1:
            ring.is_spiro = neighbour.is_spiro = True
            shared_vertex = graph.vertices[shared[0]]
            heading = self._direction(shared_vertex.position - ring.center)
            self.create_ring(neighbour_id, shared_vertex.position + heading * radius, shared_vertex.id)
        else:
            logger.debug("Rings %d and %d share %d vertices, not placed together", ring_id, neighbour_id, len(shared))

    def _place_substituent(self, ring_id: int, member_id: int, vertex_id: int) -> None:
        self.graph.vertices[vertex_id].atom.is_connected_to_ring = True
        self.create_next_bond(vertex_id, member_id, center=self.graph.ring(ring_id).center)

    def is_point_in_ring(self, point: Vector2) -> bool:
        """Check whether a point lies inside the circumcircle of a placed ring."""
        for ring in self.graph.rings:
            if not ring.positioned:
                continue
            radius = poly_circumradius(self.bond_length, ring.size)
            if point.distance_sq(ring.center) < radius * radius:
                return True
        return False

    # Bridged rings

    def subring_center(self, ring: Ring, vertex_id: int) -> Vector2:
        """Center of the smallest constituent ring of ``ring`` containing a vertex."""
        best = None
        for subring_id in ring.rings:
            subring = self.graph.ring(subring_id)
            if vertex_id in subring.members and (best is None or subring.size < best.size):
                best = subring
        return best.center if best is not None else ring.center

    def _bridged_substituent_steps(self, ring: Ring) -> list[Callable[[], None]]:
        """Steps placing whatever hangs off the relaxed vertices of a bridged ring."""
        graph = self.graph
        in_neighbour_rings = {
            member for n in ring.neighbours for member in graph.ring(n).members
        }
        steps = []
        for vertex_id in ring.members + ring.insiders:
            for neighbour in graph.vertices[vertex_id].neighbours():
                if neighbour in in_neighbour_rings:
                    continue
                steps.append(partial(self._place_bridged_substituent, ring.id, vertex_id, neighbour))
        return steps

    def _place_bridged_substituent(self, ring_id: int, vertex_id: int, neighbour_id: int) -> None:
        neighbour = self.graph.vertices[neighbour_id]
        if neighbour.positioned:
            return
        if not neighbour.atom.rings:
            neighbour.atom.is_connected_to_ring = True
        center = self.subring_center(self.graph.ring(ring_id), vertex_id)
        self.create_next_bond(neighbour_id, vertex_id, center=center)


def assign_coordinates(session: LayoutSession) -> None:
    """Place every vertex of the session's graph."""
    CoordinateAssigner(session).run()
