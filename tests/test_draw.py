"""Tests for draw-command emission."""

import math

import pytest

from chiralayout import DrawerOptions, draw_smiles
from chiralayout.draw import (
    DASHED_WEDGE,
    PLAIN,
    WEDGE,
    AromaticRingCommand,
    BallCommand,
    DebugPointCommand,
    DebugTextCommand,
    TextCommand,
    text_direction,
)
from chiralayout.geometry import apothem_from_side_length


def draw(smiles: str, **options):
    return draw_smiles(smiles, DrawerOptions(**options))


class TestLabels:
    """Test atom labels."""

    def test_implicit_carbons_are_not_labelled(self):
        result = draw("CCO")
        assert [t.element for t in result.texts] == ["O"]
        assert result.texts[0].hydrogens == 1

    def test_terminal_carbons_option(self):
        result = draw("CCO", terminal_carbons=True)
        assert [t.element for t in result.texts] == ["C", "O"]
        assert result.texts[0].hydrogens == 3
        assert result.texts[0].is_terminal

    def test_straight_chain_carbon_is_labelled(self):
        """The carbon after a triple bond is drawn with its symbol."""
        result = draw("CC#CC")
        (text,) = result.texts
        assert text.element == "C"
        assert text.hydrogens == 0
        assert text.position == result.session.graph.vertices[2].position

    def test_cumulated_carbon_is_labelled(self):
        result = draw("CC=C=CC")
        assert [t.element for t in result.texts] == ["C"]
        assert result.session.graph.vertices[3].atom.explicit

    def test_bracket_atom(self):
        (text,) = draw("[NH4+]").texts
        assert text.element == "N"
        assert text.charge == 1
        assert text.hydrogens == 4
        assert text.direction == "right"

    def test_isotope(self):
        (text,) = draw("[13CH4]").texts
        assert text.isotope == 13
        assert text.hydrogens == 4

    def test_aromatic_symbols_are_capitalised(self):
        texts = draw("c1ccncc1").texts
        assert [t.element for t in texts] == ["N"]
        assert texts[0].hydrogens == 0

    def test_aromatic_nitrogen_with_hydrogen(self):
        texts = draw("c1cc[nH]c1").texts
        assert [(t.element, t.hydrogens) for t in texts] == [("N", 1)]

    def test_colors_follow_theme(self):
        light = draw("CCO").texts[0]
        dark = draw("CCO", theme="dark").texts[0]
        assert light.color == dark.color == "#e74c3c"
        carbon = draw("CCO", terminal_carbons=True).texts[0]
        assert carbon.color == "#222"


class TestTextDirection:
    """Test on which side hydrogens are written."""

    def test_lone_atom(self):
        result = draw("O")
        assert text_direction(result.session.graph, result.session.graph.vertices[0]) == "right"

    def test_bond_below(self):
        """The first atom sits above its neighbour, so hydrogens go up."""
        (text,) = draw("OC").texts
        assert text.direction == "up"

    def test_bond_to_the_left(self):
        (text,) = draw("CCO").texts
        assert text.direction == "right"


class TestBonds:
    """Test bond lines."""

    def test_single_bonds(self):
        lines = draw("CCO").lines
        assert len(lines) == 2
        assert all(line.style == PLAIN for line in lines)

    def test_kekule_benzene(self):
        """Three double bonds of two strands each plus three single bonds."""
        assert len(draw("C1=CC=CC=C1").lines) == 9

    def test_triple_bond(self):
        assert len(draw("CC#N").lines) == 4

    def test_inner_strand_is_shortened(self):
        lines = draw("CC=CC").lines
        lengths = sorted(line.start.distance(line.end) for line in lines)
        options = DrawerOptions()
        assert lengths[0] == pytest.approx(options.bond_length - options.shortening)
        assert lengths[-1] == pytest.approx(options.bond_length)

    def test_ring_double_bond_points_inward(self):
        result = draw("C1=CCCCC1")
        ring = result.session.graph.rings[0]
        inner, outer = sorted(
            result.lines[:2],
            key=lambda line: line.start.distance(line.end),
        )
        mid_inner = (inner.start + inner.end) / 2
        mid_outer = (outer.start + outer.end) / 2
        assert mid_inner.distance(ring.center) < mid_outer.distance(ring.center)

    def test_dot_bond_is_not_drawn(self):
        result = draw("[Na+].[Cl-]")
        assert result.lines == []
        assert sorted(t.element for t in result.texts) == ["Cl", "Na"]

    def test_line_elements(self):
        lines = draw("CO").lines
        assert {lines[0].element_from, lines[0].element_to} == {"C", "O"}


class TestAromaticRings:
    """Test inscribed circles."""

    def test_benzene_circle(self):
        result = draw("c1ccccc1")
        (circle,) = result.aromatic_rings
        assert isinstance(circle, AromaticRingCommand)
        assert circle.radius == pytest.approx(apothem_from_side_length(16.0, 6) - 4.0)
        assert circle.center == result.session.graph.rings[0].center

    def test_naphthalene_has_two_circles(self):
        assert len(draw("c1ccc2ccccc2c1").aromatic_rings) == 2

    def test_kekule_ring_has_no_circle(self):
        assert draw("C1=CC=CC=C1").aromatic_rings == []

    def test_partially_aromatic_system(self):
        """Only the lowercase ring of tetralin gets a circle."""
        assert len(draw("c1ccc2CCCCc2c1").aromatic_rings) == 1


class TestWedges:
    """Test stereo bonds."""

    def test_wedge_and_dash(self):
        result = draw("C[C@H](O)F", isomeric=True, compact_drawing=False)
        center = result.session.graph.vertices[1].position
        styles = sorted(line.style for line in result.lines)
        assert styles == sorted([PLAIN, PLAIN, WEDGE, DASHED_WEDGE])
        for line in result.lines:
            if line.style != PLAIN:
                assert line.start == center
                assert line.chiral_from

    def test_expanded_hydrogen_is_labelled(self):
        result = draw("C[C@H](O)F", isomeric=True, compact_drawing=False)
        assert sorted(t.element for t in result.texts) == ["F", "H", "O"]

    def test_no_wedges_without_isomeric(self):
        result = draw("C[C@H](O)F", compact_drawing=False)
        assert all(line.style == PLAIN for line in result.lines)


class TestPseudoElements:
    """Test collapsing of terminal groups."""

    def test_tert_butyl(self):
        result = draw("CC(C)(C)C")
        assert result.lines == []
        (text,) = result.texts
        (pseudo,) = text.pseudo_elements
        assert pseudo.element == "C"
        assert pseudo.hydrogen_count == 3
        assert pseudo.count == 4

    def test_compact_drawing_disabled(self):
        result = draw("CC(C)(C)C", compact_drawing=False)
        assert len(result.lines) == 4
        assert result.texts == []

    def test_mixed_groups(self):
        """Different terminal groups get their own entries."""
        result = draw("CC(F)(F)C(=O)O")
        centers = [t for t in result.texts if t.pseudo_elements]
        elements = {p.element: p.count for t in centers for p in t.pseudo_elements}
        assert elements.get("F") == 2


class TestModes:
    """Test ball drawing and debug annotations."""

    def test_balls(self):
        result = draw("CCO", atom_visualization="balls")
        balls = [c for c in result.commands if isinstance(c, BallCommand)]
        assert [b.element for b in balls] == ["O"]
        assert result.texts == []

    def test_debug_annotations(self):
        result = draw("C1CCCCC1O", debug=True)
        texts = [c for c in result.commands if isinstance(c, DebugTextCommand)]
        points = [c for c in result.commands if isinstance(c, DebugPointCommand)]
        graph = result.session.graph
        assert len(texts) == len(graph.edges) + len(graph.vertices)
        assert len(points) == 1
        assert points[0].text == "r: 0"

    def test_no_debug_by_default(self):
        result = draw("CCO")
        assert not any(isinstance(c, (DebugTextCommand, DebugPointCommand)) for c in result.commands)


class TestBoundingBox:
    """Test the padded extent of a drawing."""

    def test_ethanol(self):
        box = draw("CCO").bounding_box()
        assert box == pytest.approx((-4.0, -20.0, 36.0 + 8.0 * math.sqrt(3.0), 44.0))

    def test_padding_option(self):
        box = draw("C", padding=5.0).bounding_box()
        assert box == pytest.approx((11.0, -5.0, 21.0, 5.0))
