"""Tests for graph construction from parse trees.

Atom and bond counts are compared against RDKit.
"""

import pytest
from rdkit import Chem

from chiralayout import Graph, ParseNode, Vector2, parse_tree
from chiralayout.exceptions import BondError, ChiralityError, ElementError, GraphError, RingError
from chiralayout.tree import AtomSpec, BracketInfo


def graph_of(smiles: str, isomeric: bool = False) -> Graph:
    return Graph.from_tree(parse_tree(smiles), isomeric=isomeric)


def rdkit_bond_count(smiles: str) -> int:
    """Get number of bonds from RDKit for comparison."""
    mol = Chem.MolFromSmiles(smiles)
    return mol.GetNumBonds() if mol else 0


class TestConstruction:
    """Test vertices and edges built from a tree."""

    def test_vertex_ids_follow_depth_first_order(self):
        graph = graph_of("CC(N)O")
        assert [v.atom.element for v in graph.vertices] == ["C", "C", "N", "O"]
        assert [v.id for v in graph.vertices] == [0, 1, 2, 3]

    def test_parent_and_children(self):
        graph = graph_of("CC(N)O")
        middle = graph.vertices[1]
        assert middle.parent_id == 0
        assert middle.children == [2, 3]
        assert middle.neighbours() == [2, 3, 0]
        assert middle.neighbours(exclude=2) == [3, 0]

    def test_edge_count_matches_rdkit(self, chain_smiles, ring_smiles, fused_smiles, bridged_smiles):
        """Every bond, ring closures included, becomes one edge."""
        for smiles in chain_smiles + ring_smiles + fused_smiles + bridged_smiles:
            assert len(graph_of(smiles).edges) == rdkit_bond_count(smiles), smiles

    def test_bond_types(self):
        graph = graph_of("C=CC#N")
        assert [e.bond_type for e in graph.edges] == ["=", "-", "#"]
        assert graph.bond_count(1) == 3

    def test_ring_closure_edge(self):
        graph = graph_of("C1CCC1")
        closure = graph.edge_between(0, 3)
        assert closure is not None
        assert closure.is_ring_closure
        assert 3 in graph.vertices[0].children
        assert 0 in graph.vertices[3].children
        # Ring partners are not spanning-tree children
        assert 3 not in graph.vertices[0].spanning_tree_children

    def test_ring_closure_bond_symbol(self):
        """An explicit bond on either marker sets the closure bond."""
        assert graph_of("C=1CCCCC1").edge_between(0, 5).bond_type == "="
        assert graph_of("C1CCCCC=1").edge_between(0, 5).bond_type == "="

    def test_dot_bond_is_an_edge(self):
        graph = graph_of("[Na+].[Cl-]")
        assert len(graph.edges) == 1
        assert graph.edges[0].bond_type == "."

    def test_charged_atoms_are_explicit(self):
        graph = graph_of("C[N+](C)(C)C")
        assert graph.vertices[1].atom.explicit
        assert not graph.vertices[0].atom.explicit

    def test_isomeric_expands_hydrogens(self):
        plain = graph_of("C[C@H](O)F")
        isomeric = graph_of("C[C@H](O)F", isomeric=True)
        assert len(plain.vertices) == 4
        assert len(isomeric.vertices) == 5
        assert isomeric.vertices[2].atom.element == "H"
        assert isomeric.vertices[2].parent_id == 1
        assert isomeric.vertices[1].atom.expanded_hydrogens == 1

    def test_heavy_atom_count(self):
        assert graph_of("C[C@H](O)F", isomeric=True).heavy_atom_count() == 4

    def test_adjacency_matrix(self):
        matrix = graph_of("CCO").adjacency_matrix()
        assert matrix == [[0, 1, 0], [1, 0, 1], [0, 1, 0]]


class TestTraversal:
    """Test subtree traversal and depth."""

    def test_traverse_tree_excludes_parent_side(self):
        graph = graph_of("CC(CC)CCC")
        assert sorted(graph.traverse_tree(2, 1)) == [2, 3]
        assert sorted(graph.traverse_tree(4, 1)) == [4, 5, 6]

    def test_traverse_tree_follows_rings(self):
        graph = graph_of("CC1CCCCC1")
        assert sorted(graph.traverse_tree(1, 0)) == [1, 2, 3, 4, 5, 6]

    def test_tree_depth(self):
        graph = graph_of("CC(C)CCC")
        assert graph.tree_depth(2, 1) == 1
        assert graph.tree_depth(3, 1) == 3
        assert graph.tree_depth(None, 1) == 0


class TestPositionQueries:
    """Test queries over vertex positions."""

    def laid_out(self) -> Graph:
        graph = graph_of("CCO")
        for vertex, (x, y) in zip(graph.vertices, [(0.0, 0.0), (10.0, 0.0), (30.0, 0.0)]):
            vertex.set_position(Vector2(x, y))
        return graph

    def test_center_of_mass(self):
        assert self.laid_out().center_of_mass() == Vector2(40.0 / 3.0, 0.0)

    def test_closest_vertex(self):
        graph = self.laid_out()
        assert graph.closest_vertex(0).id == 1
        assert graph.closest_vertex(2).id == 1

    def test_vertices_at(self):
        graph = self.laid_out()
        assert graph.vertices_at(Vector2(5.0, 0.0), 6.0) == [0, 1]
        assert graph.vertices_at(Vector2(5.0, 0.0), 6.0, exclude=0) == [1]
        assert graph.vertices_at(Vector2(100.0, 0.0), 6.0) == []


class TestErrors:
    """Test invalid trees."""

    def test_unclosed_ring(self):
        with pytest.raises(RingError) as info:
            graph_of("C1CC")
        assert info.value.ring_index == 1

    def test_ring_closing_on_same_atom(self):
        with pytest.raises(RingError):
            graph_of("C11")

    def test_duplicate_ring_bond(self):
        with pytest.raises(RingError):
            graph_of("C12CCCC12")

    def test_unknown_element(self):
        with pytest.raises(ElementError) as info:
            Graph.from_tree(ParseNode(AtomSpec("Xx")))
        assert info.value.symbol == "Xx"

    def test_unknown_bond(self):
        root = ParseNode(AtomSpec("C"))
        root.next = ParseNode(AtomSpec("C"), bond="?")
        with pytest.raises(BondError):
            Graph.from_tree(root)

    def test_bad_lookup(self):
        graph = graph_of("CC")
        with pytest.raises(GraphError):
            graph.vertex(5)
        with pytest.raises(GraphError):
            graph.ring(0)


class TestChirality:
    """Test wedge annotation of stereo centers."""

    def test_clockwise_center(self):
        graph = graph_of("C[C@H](O)F", isomeric=True)
        graph.annotate_chirality()
        # Neighbours in written order: C0, H2, O3, F4
        assert graph.edge_between(1, 4).wedge == "up"
        assert graph.edge_between(1, 2).wedge == "down"
        assert graph.edge_between(1, 4).wedge_origin == 1

    def test_anticlockwise_center_swaps(self):
        graph = graph_of("C[C@@H](O)F", isomeric=True)
        graph.annotate_chirality()
        assert graph.edge_between(1, 4).wedge == "down"
        assert graph.edge_between(1, 2).wedge == "up"

    def test_three_neighbours(self):
        """An implicit neighbour is assumed after the parent."""
        graph = graph_of("C[C@H](O)F")
        graph.annotate_chirality()
        # Written order: C0, (implicit H), O2, F3
        assert graph.edge_between(1, 3).wedge == "up"
        assert graph.edge_between(1, 2).wedge == ""

    def test_too_few_neighbours(self):
        graph = graph_of("[C@H]C", isomeric=True)
        with pytest.raises(ChiralityError):
            graph.annotate_chirality()

    def test_untagged_centers_get_no_wedges(self):
        graph = graph_of("CC(O)F")
        graph.annotate_chirality()
        assert all(edge.wedge == "" for edge in graph.edges)

    def test_bracket_info_without_chirality(self):
        root = ParseNode(AtomSpec("C", BracketInfo(hcount=4)))
        graph = Graph.from_tree(root, isomeric=True)
        graph.annotate_chirality()
        assert len(graph.vertices) == 5
