"""Tests for ring perception.

SSSR sizes are compared against RDKit's SSSR. Ring systems are checked
for their fused, spiro and bridged classification.
"""

import pytest
from rdkit import Chem

from chiralayout import Graph, draw_smiles, parse_tree
from chiralayout.rings import (
    expected_ring_count,
    find_sssr,
    perceive_rings,
    reduced_adjacency,
    restore_ring_information,
)


def rdkit_ring_sizes(smiles: str) -> list[int]:
    """Get sorted SSSR ring sizes from RDKit for comparison.

    ``GetRingInfo`` holds the symmetrized SSSR, which has an extra ring for
    systems like bicyclo[2.2.2]octane, so the strict SSSR is used.
    """
    mol = Chem.MolFromSmiles(smiles)
    if mol is None:
        raise ValueError(f"RDKit could not parse: {smiles}")
    return sorted(len(ring) for ring in Chem.GetSSSR(mol))


def graph_of(smiles: str) -> Graph:
    return Graph.from_tree(parse_tree(smiles))


def ring_sizes(smiles: str) -> list[int]:
    return sorted(len(bonds) for bonds in find_sssr(graph_of(smiles)))


class TestSSSR:
    """Test smallest set of smallest rings."""

    def test_no_rings(self, chain_smiles):
        for smiles in chain_smiles:
            assert find_sssr(graph_of(smiles)) == [], smiles

    def test_single_rings(self, ring_smiles):
        for smiles in ring_smiles:
            assert ring_sizes(smiles) == rdkit_ring_sizes(smiles), smiles

    def test_fused_rings(self, fused_smiles):
        for smiles in fused_smiles:
            assert ring_sizes(smiles) == rdkit_ring_sizes(smiles), smiles

    def test_spiro_rings(self, spiro_smiles):
        for smiles in spiro_smiles:
            assert ring_sizes(smiles) == rdkit_ring_sizes(smiles), smiles

    def test_bridged_rings(self, bridged_smiles):
        for smiles in bridged_smiles:
            assert ring_sizes(smiles) == rdkit_ring_sizes(smiles), smiles

    def test_complex_molecules(self, complex_smiles):
        for smiles in complex_smiles:
            assert ring_sizes(smiles) == rdkit_ring_sizes(smiles), smiles

    @pytest.mark.parametrize("smiles", ["C1CC2CCC1CC2", "C1C2CC3CC1CC(C2)C3", "C1CC2CC3CCC2C3C1"])
    def test_bridged_ring_count_is_cycle_rank(self, smiles):
        """An SSSR has exactly bonds - atoms + 1 rings for a connected graph."""
        mol = Chem.MolFromSmiles(smiles)
        expected = mol.GetNumBonds() - mol.GetNumAtoms() + 1
        assert len(find_sssr(graph_of(smiles))) == expected

    def test_reduced_adjacency_strips_chains(self):
        matrix, vertex_ids = reduced_adjacency(graph_of("CCC1CCC1C"))
        assert list(vertex_ids) == [2, 3, 4, 5]
        assert expected_ring_count(matrix) == 1

    def test_ring_bonds_are_vertex_pairs(self):
        rings = find_sssr(graph_of("CC1CCC1"))
        atoms = {a for bond in rings[0] for a in bond}
        assert atoms == {1, 2, 3, 4}


class TestRingRecords:
    """Test ring records and membership."""

    def test_members_start_at_ring_closure(self):
        graph = graph_of("CC1CCCCC1")
        perceive_rings(graph)
        ring = graph.rings[0]
        assert ring.members[0] == 1
        assert ring.members[-1] == 6
        assert sorted(ring.members) == [1, 2, 3, 4, 5, 6]

    def test_atom_ring_membership(self):
        graph = graph_of("CC1CCCCC1")
        perceive_rings(graph)
        assert graph.vertices[0].atom.rings == []
        assert graph.vertices[3].atom.rings == [0]

    def test_fused_classification(self):
        session = draw_smiles("c1ccc2ccccc2c1", info_only=True).session
        assert session.ring_count == 2
        assert len(session.fused_rings) == 2
        assert not session.spiro_rings
        assert not session.has_bridged_ring

    def test_spiro_classification(self, spiro_smiles):
        for smiles in spiro_smiles:
            session = draw_smiles(smiles, info_only=True).session
            assert len(session.spiro_rings) == 2, smiles
            assert not session.fused_rings, smiles

    def test_ring_connection_vertices(self):
        graph = graph_of("C1CCC2CCCCC2C1")
        perceive_rings(graph)
        assert len(graph.ring_connections) == 1
        assert graph.ring_connections[0].vertices == {3, 8}

    def test_ring_neighbours(self):
        graph = graph_of("c1ccc2cc3ccccc3cc2c1")
        perceive_rings(graph)
        counts = sorted(len(ring.neighbours) for ring in graph.rings)
        assert counts == [1, 1, 2]


class TestBridgedRings:
    """Test merging of bridged ring systems."""

    def test_norbornane(self):
        session = draw_smiles("C1CC2CCC1C2", info_only=True).session
        assert session.has_bridged_ring
        assert session.ring_count == 1
        bridged = session.bridged_rings[0]
        assert len(bridged.rings) == 2
        assert bridged.insiders == [6]
        assert sorted(bridged.members) == [0, 1, 2, 3, 4, 5]

    def test_bridge_flags(self):
        graph = draw_smiles("C1CC2CCC1C2", info_only=True).session.graph
        assert graph.vertices[6].atom.is_bridge
        assert graph.vertices[2].atom.is_bridge_node
        assert graph.vertices[5].atom.is_bridge_node
        assert not graph.vertices[0].atom.is_bridge_node

    def test_bridged_systems_are_single_rings(self, bridged_smiles):
        for smiles in bridged_smiles:
            session = draw_smiles(smiles, info_only=True).session
            assert session.ring_count == 1, smiles
            assert session.has_bridged_ring, smiles

    def test_fused_and_spiro_are_not_bridged(self, fused_smiles, spiro_smiles):
        for smiles in fused_smiles + spiro_smiles:
            assert not draw_smiles(smiles, info_only=True).session.has_bridged_ring, smiles

    def test_backup_and_restore(self):
        graph = graph_of("C1CC2CCC1C2")
        backup = perceive_rings(graph)
        assert len(graph.rings) == 1
        restore_ring_information(graph, backup)
        assert len(graph.rings) == 2
        assert not any(ring.is_bridged for ring in graph.rings)
        assert graph.vertices[6].atom.rings == [0, 1]

    def test_bridged_ring_with_substituent_neighbour(self):
        """Camphor keeps its methyl groups outside the merged ring."""
        session = draw_smiles("CC1(C)C2CCC1(C)C(=O)C2", info_only=True).session
        bridged = session.bridged_rings[0]
        assert 0 not in bridged.members
        assert 0 not in bridged.insiders

    def test_target_is_bonded_to_source(self):
        session = draw_smiles("C1CC2CCC1C2", info_only=True).session
        graph = session.graph
        bridged = session.bridged_rings[0]
        assert bridged.target_id != bridged.source_id
        assert bridged.target_id in bridged.members
        assert graph.edge_between(bridged.source_id, bridged.target_id) is not None

    def test_target_of_every_bridged_system(self, bridged_smiles):
        for smiles in bridged_smiles:
            session = draw_smiles(smiles, info_only=True).session
            graph = session.graph
            bridged = session.bridged_rings[0]
            if bridged.source_id not in bridged.members:
                continue
            assert bridged.target_id in bridged.members, smiles
            assert graph.edge_between(bridged.source_id, bridged.target_id) is not None, smiles

    def test_cage_without_boundary_keeps_all_vertices_as_members(self):
        """Cubane has no bond in a single ring, so nothing is an insider."""
        session = draw_smiles("C12C3C4C1C5C2C3C45", info_only=True).session
        bridged = session.bridged_rings[0]
        assert sorted(bridged.members) == list(range(8))
        assert bridged.insiders == []
        assert not any(v.atom.is_bridge for v in session.graph.vertices)


class TestRingInfo:
    """Test the textual ring summary."""

    def test_cyclopropane(self):
        info = draw_smiles("C1CC1", info_only=True).session.ring_info()
        assert info == "0;0,1,2;;False;False;False;0;"

    def test_one_line_per_ring(self):
        info = draw_smiles("c1ccc2ccccc2c1", info_only=True).session.ring_info()
        lines = info.split("\n")
        assert len(lines) == 2
        assert all(line.split(";")[4] == "True" for line in lines)

    def test_no_rings(self):
        assert draw_smiles("CCO", info_only=True).session.ring_info() == ""
