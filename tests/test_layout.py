"""Tests for coordinate assignment.

Layouts are checked geometrically: bond lengths, ring polygons, the
relative position of fused and spiro rings, and the convergence of the
force relaxation of bridged systems.
"""

import math

import numpy as np
import pytest

from chiralayout import DrawerOptions, draw_smiles
from chiralayout.geometry import Vector2, apothem_from_side_length, poly_circumradius
from chiralayout.layout import CoordinateAssigner
from chiralayout.layout.force import ITERATIONS, REFINE_ITERATIONS

BOND_LENGTH = 16.0


def layout(smiles: str, **options):
    """Draw a SMILES string and return its session."""
    return draw_smiles(smiles, DrawerOptions(**options)).session


def bond_lengths(graph) -> list[float]:
    return [
        graph.vertices[e.source_id].position.distance(graph.vertices[e.target_id].position)
        for e in graph.edges
        if e.bond_type != "."
    ]


class TestChains:
    """Test placement of acyclic molecules."""

    def test_first_atoms(self):
        """The chain starts at (bl, 0) and zig-zags away."""
        graph = layout("CCO").graph
        positions = [v.position for v in graph.vertices]
        assert positions[0].x == pytest.approx(16.0)
        assert positions[0].y == pytest.approx(0.0)
        assert positions[1].x == pytest.approx(16.0)
        assert positions[1].y == pytest.approx(16.0)
        assert positions[2].x == pytest.approx(16.0 + 8.0 * math.sqrt(3.0))
        assert positions[2].y == pytest.approx(24.0)

    def test_all_vertices_positioned(self, chain_smiles):
        for smiles in chain_smiles:
            graph = layout(smiles).graph
            assert all(v.positioned for v in graph.vertices), smiles

    def test_bond_lengths(self, chain_smiles):
        for smiles in chain_smiles:
            lengths = bond_lengths(layout(smiles).graph)
            assert lengths == pytest.approx([BOND_LENGTH] * len(lengths)), smiles

    def test_zig_zag_angles(self):
        """Consecutive bonds of a chain meet at 120 degrees."""
        graph = layout("CCCCCC").graph
        for i in range(1, 5):
            a = graph.vertices[i - 1].position
            b = graph.vertices[i].position
            c = graph.vertices[i + 1].position
            assert a.distance(c) == pytest.approx(BOND_LENGTH * math.sqrt(3.0))

    def test_two_branches_spread_evenly(self):
        graph = layout("CC(C)C").graph
        center = graph.vertices[1].position
        others = [graph.vertices[i].position for i in (0, 2, 3)]
        for i in range(3):
            for j in range(i + 1, 3):
                assert others[i].distance(others[j]) == pytest.approx(BOND_LENGTH * math.sqrt(3.0))
        assert all(p.distance(center) == pytest.approx(BOND_LENGTH) for p in others)

    def test_three_branches_form_a_cross(self):
        graph = layout("CC(C)(C)C").graph
        center = graph.vertices[1].position
        angles = sorted(
            math.degrees((graph.vertices[i].position - center).angle()) % 360.0
            for i in (0, 2, 3, 4)
        )
        gaps = [b - a for a, b in zip(angles, angles[1:])]
        assert gaps == pytest.approx([90.0, 90.0, 90.0])

    def test_triple_bond_is_straight(self):
        """Both bonds at the far atom of a triple bond are collinear."""
        graph = layout("CC#CC").graph
        _, b, _, d = (v.position for v in graph.vertices)
        assert b.distance(d) == pytest.approx(2 * BOND_LENGTH)

    def test_long_chain_does_not_recurse(self):
        """Placement is iterative, so very long chains are fine."""
        graph = layout("C" * 1500).graph
        assert all(v.positioned for v in graph.vertices)

    def test_disconnected_components(self):
        graph = layout("[Na+].[Cl-]").graph
        na, cl = graph.vertices
        assert na.position.distance(cl.position) == pytest.approx(BOND_LENGTH)


class TestRings:
    """Test polygon placement."""

    def test_members_on_circumcircle(self, ring_smiles):
        for smiles in ring_smiles:
            session = layout(smiles)
            for ring in session.graph.rings:
                radius = poly_circumradius(BOND_LENGTH, ring.size)
                for member in ring.members:
                    distance = session.graph.vertices[member].position.distance(ring.center)
                    assert distance == pytest.approx(radius), smiles

    def test_bond_lengths(self, ring_smiles, fused_smiles, spiro_smiles):
        for smiles in ring_smiles + fused_smiles + spiro_smiles:
            lengths = bond_lengths(layout(smiles).graph)
            assert lengths == pytest.approx([BOND_LENGTH] * len(lengths)), smiles

    def test_rings_are_positioned(self, ring_smiles, fused_smiles, spiro_smiles):
        for smiles in ring_smiles + fused_smiles + spiro_smiles:
            assert all(ring.positioned for ring in layout(smiles).graph.rings), smiles

    def test_fused_ring_centers(self):
        """Fused hexagons sit two apothems apart."""
        session = layout("c1ccc2ccccc2c1")
        first, second = session.graph.rings
        expected = 2 * apothem_from_side_length(BOND_LENGTH, 6)
        assert first.center.distance(second.center) == pytest.approx(expected)

    def test_anthracene_is_linear(self):
        session = layout("c1ccc2cc3ccccc3cc2c1")
        centers = [r.center for r in session.graph.rings]
        spacing = 2 * apothem_from_side_length(BOND_LENGTH, 6)
        widest = max(a.distance(b) for a in centers for b in centers)
        assert widest == pytest.approx(2 * spacing)

    def test_spiro_rings_are_opposite(self, spiro_smiles):
        """The shared atom lies on the segment between both ring centers."""
        for smiles in spiro_smiles:
            graph = layout(smiles).graph
            first, second = graph.rings
            shared = set(first.members) & set(second.members)
            assert len(shared) == 1
            pivot = graph.vertices[shared.pop()].position
            total = first.center.distance(pivot) + pivot.distance(second.center)
            assert first.center.distance(second.center) == pytest.approx(total), smiles

    def test_substituent_points_away_from_ring(self):
        session = layout("Cc1ccccc1")
        graph = session.graph
        ring = graph.rings[0]
        methyl = graph.vertices[0].position
        anchor = graph.vertices[1].position
        radius = poly_circumradius(BOND_LENGTH, 6)
        assert methyl.distance(ring.center) == pytest.approx(radius + BOND_LENGTH)
        assert anchor.distance(ring.center) == pytest.approx(radius)

    def test_substituent_of_atom_on_ring_center(self):
        """A member sitting on its ring center still gets a full-length bond."""
        positions = []
        for _ in range(2):
            session = draw_smiles("C1CCCCC1C", info_only=True).session
            member, substituent = session.graph.vertices[5], session.graph.vertices[6]
            member.set_position(Vector2())
            CoordinateAssigner(session)._place_after(substituent, member, None, Vector2())
            assert substituent.positioned
            assert substituent.position.distance(member.position) == pytest.approx(BOND_LENGTH)
            positions.append(substituent.position)
        assert positions[0] == positions[1]

    def test_fused_flags_set(self):
        session = layout("C1CCC2CCCCC2C1")
        assert all(ring.is_fused for ring in session.graph.rings)


class TestBridgedRings:
    """Test force relaxation of bridged systems."""

    def test_start_vertex_is_in_one_ring(self, bridged_smiles):
        for smiles in bridged_smiles:
            session = draw_smiles(smiles, info_only=True).session
            start = CoordinateAssigner(session).start_vertex()
            assert len(session.graph.vertices[start].atom.original_rings) == 1, smiles

    def test_all_vertices_positioned(self, bridged_smiles):
        for smiles in bridged_smiles:
            graph = layout(smiles).graph
            assert all(v.positioned for v in graph.vertices), smiles
            assert all(
                math.isfinite(v.position.x) and math.isfinite(v.position.y)
                for v in graph.vertices
            ), smiles

    def test_displacements_recorded(self, bridged_smiles):
        for smiles in bridged_smiles:
            session = layout(smiles)
            assert set(session.force_displacements) == set(session.bridged_ring_ids), smiles
            for displacements in session.force_displacements.values():
                assert displacements.shape == (ITERATIONS + REFINE_ITERATIONS,)
                assert np.all(np.isfinite(displacements))

    @pytest.mark.parametrize("smiles", [
        "C1CC2CCC1C2",
        "C1CC2CCC1CC2",
        "C1C2CC3CC1CC(C2)C3",
        "C12C3C4C1C5C2C3C45",
        "C1CC2CC3CCC2C3C1",
    ])
    def test_relaxation_settles(self, smiles):
        """The last sweeps barely move and every bond ends at the bond length."""
        session = layout(smiles)
        for displacements in session.force_displacements.values():
            assert displacements[-50:].max() < BOND_LENGTH / 100.0
        lengths = bond_lengths(session.graph)
        assert lengths == pytest.approx([BOND_LENGTH] * len(lengths), rel=1e-2)

    def test_cage_is_laid_out(self):
        """Cubane has no boundary bond and is relaxed as a whole."""
        graph = layout("C12C3C4C1C5C2C3C45").graph
        assert all(v.positioned for v in graph.vertices)
        assert all(
            math.isfinite(v.position.x) and math.isfinite(v.position.y)
            for v in graph.vertices
        )

    def test_only_insiders_move(self):
        """With fewer than three sub-rings the boundary polygon stays fixed."""
        session = layout("C1CC2CCC1C2")
        graph = session.graph
        bridged = graph.ring(session.bridged_ring_ids[0])
        radius = poly_circumradius(BOND_LENGTH, bridged.size)
        for member in bridged.members:
            distance = graph.vertices[member].position.distance(bridged.center)
            assert distance == pytest.approx(radius)

    def test_subring_centers_written_back(self):
        session = layout("C1CC2CCC1C2")
        graph = session.graph
        bridged = graph.ring(session.bridged_ring_ids[0])
        for subring_id in bridged.rings:
            subring = graph.ring(subring_id)
            centroid = Vector2.centroid(graph.vertices[m].position for m in subring.members)
            assert subring.center.distance(centroid) < 2 * BOND_LENGTH

    def test_drawing_uses_original_rings(self):
        """After layout the constituent rings are active again."""
        session = layout("C1CC2CCC1C2")
        assert session.ring_count == 2
        assert session.has_bridged_ring
        (bridged,) = session.bridged_rings
        assert bridged.is_bridged
        assert sorted(bridged.rings) == sorted(ring.id for ring in session.graph.rings)

    def test_bridged_flags_agree_with_info_only(self, bridged_smiles, fused_smiles):
        for smiles in bridged_smiles + fused_smiles:
            info = draw_smiles(smiles, info_only=True).session
            full = layout(smiles)
            assert full.has_bridged_ring == info.has_bridged_ring, smiles
            assert [r.id for r in full.bridged_rings] == [r.id for r in info.bridged_rings], smiles

    def test_seed_determinism(self, bridged_smiles):
        for smiles in bridged_smiles:
            first = [v.position for v in layout(smiles, seed=3).graph.vertices]
            second = [v.position for v in layout(smiles, seed=3).graph.vertices]
            assert first == second, smiles

    def test_substituents_of_bridged_ring(self):
        graph = layout("CC1(C)C2CCC1(C)C(=O)C2").graph
        assert all(v.positioned for v in graph.vertices)
        oxygen = graph.vertices[9]
        carbon = graph.vertices[8]
        assert oxygen.position.distance(carbon.position) == pytest.approx(BOND_LENGTH)


class TestComplexMolecules:
    """Smoke tests on real-world molecules."""

    def test_layout_completes(self, complex_smiles):
        for smiles in complex_smiles:
            graph = layout(smiles).graph
            assert all(v.positioned for v in graph.vertices), smiles

    def test_bond_lengths_without_bridges(self, complex_smiles):
        for smiles in complex_smiles:
            session = layout(smiles)
            if session.bridged_ring_ids:
                continue
            lengths = bond_lengths(session.graph)
            assert lengths == pytest.approx([BOND_LENGTH] * len(lengths)), smiles

    def test_bond_length_option(self):
        lengths = bond_lengths(layout("c1ccccc1CCO", bond_length=25.0).graph)
        assert lengths == pytest.approx([25.0] * len(lengths))
