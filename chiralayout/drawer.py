"""
Drawer façade.

:class:`MoleculeDrawer` runs the whole pipeline on a parse tree: graph
construction, ring perception, coordinate assignment, overlap resolution
and draw-command emission. Every call gets a fresh
:class:`~chiralayout.session.LayoutSession`, so one drawer can be reused
across molecules and threads.

    >>> drawer = MoleculeDrawer()
    >>> result = drawer.draw(parse_tree("c1ccccc1"))
    >>> result.session.ring_count, len(result.aromatic_rings)
    (1, 1)
"""

from __future__ import annotations

import logging

from chiralayout.draw import DrawResult, emit_commands, init_pseudo_elements
from chiralayout.graph import Graph
from chiralayout.layout import (
    assign_coordinates,
    overlap_score,
    resolve_primary_overlaps,
    resolve_rotatable_edges,
    resolve_secondary_overlaps,
)
from chiralayout.options import DrawerOptions
from chiralayout.rings import perceive_rings, restore_ring_information
from chiralayout.session import LayoutSession
from chiralayout.smiles import parse_tree
from chiralayout.tree import ParseNode

logger = logging.getLogger(__name__)


class MoleculeDrawer:
    """Lays out parse trees and turns them into draw commands.

    Args:
        options: Drawer options; defaults to :class:`DrawerOptions()`.
    """

    def __init__(self, options: DrawerOptions | None = None) -> None:
        self.options = options if options is not None else DrawerOptions()

    def draw(self, tree: ParseNode, info_only: bool = False) -> DrawResult:
        """Lay out a molecule.

        Args:
            tree: Root of the parse tree.
            info_only: Stop after ring perception; the result then carries
                no commands and no positions, only structural information.

        Returns:
            The draw commands and the session holding the positioned graph.

        Raises:
            RingError: If a ring-closure marker is never paired.
            ElementError: If an element symbol is unknown.
            BondError: If a bond symbol is unknown.
            ChiralityError: If a stereo center has an unsupported number of
                neighbours (isomeric mode only).
        """
        options = self.options
        graph = Graph.from_tree(tree, isomeric=options.isomeric)
        session = LayoutSession.create(graph, options)

        session.ring_backup = perceive_rings(graph)
        session.bridged_ring_ids = [ring.id for ring in graph.rings if ring.is_bridged]

        if options.isomeric:
            graph.annotate_chirality()

        if info_only:
            return DrawResult(session)

        assign_coordinates(session)
        resolve_primary_overlaps(session)

        # Layout is done on merged bridged rings, drawing on the real ones
        restore_ring_information(graph, session.ring_backup)
        for bridged_id in session.bridged_ring_ids:
            for subring_id in graph.ring(bridged_id).rings:
                subring = graph.ring(subring_id)
                graph.vertices[subring.members[0]].atom.anchored_rings.append(subring.id)

        overlap = resolve_rotatable_edges(session)
        resolve_secondary_overlaps(session, overlap.scores)
        session.total_overlap_score = overlap_score(graph, options.bond_length).total
        logger.debug("Final overlap score: %.4f", session.total_overlap_score)

        if options.compact_drawing:
            init_pseudo_elements(graph)

        return DrawResult(session, emit_commands(session))


def draw_smiles(smiles: str, options: DrawerOptions | None = None, info_only: bool = False) -> DrawResult:
    """Build a parse tree from a SMILES string and draw it.

    Example:
        >>> result = draw_smiles("CCO")
        >>> len(result.session.graph.vertices)
        3

    Raises:
        ParseError: If the SMILES string is malformed.
    """
    return MoleculeDrawer(options).draw(parse_tree(smiles), info_only=info_only)
