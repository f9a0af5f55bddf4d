"""
Per-invocation layout state.

A :class:`LayoutSession` owns everything a single layout mutates: the
graph, the options it was built with, the seeded random generator used by
the force relaxation and the running overlap score. Sessions are never
shared, so independent molecules can be laid out in parallel.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from chiralayout.graph import Graph
from chiralayout.options import DrawerOptions
from chiralayout.rings import RingBackup
from chiralayout.types import Ring


@dataclass(slots=True)
class LayoutSession:
    """Mutable state of one layout.

    Attributes:
        graph: Graph being laid out.
        options: Drawer options the layout uses.
        rng: Random generator for degenerate-distance nudges.
        ring_backup: Ring information from before bridged-ring merging.
        bridged_ring_ids: Ids of the bridged rings created while merging.
        total_overlap_score: Overlap score of the current layout.
        force_displacements: Per bridged ring, the maximum vertex
            displacement of every force relaxation iteration.
    """

    graph: Graph
    options: DrawerOptions
    rng: np.random.Generator
    ring_backup: RingBackup | None = None
    bridged_ring_ids: list[int] = field(default_factory=list)
    total_overlap_score: float = 0.0
    force_displacements: dict[int, np.ndarray] = field(default_factory=dict)

    @classmethod
    def create(cls, graph: Graph, options: DrawerOptions) -> LayoutSession:
        return cls(graph, options, np.random.default_rng(options.seed))

    @property
    def bond_length(self) -> float:
        return self.options.bond_length

    # Introspection

    @property
    def ring_count(self) -> int:
        return len(self.graph.ring_ids)

    @property
    def has_bridged_ring(self) -> bool:
        return bool(self.bridged_ring_ids)

    @property
    def heavy_atom_count(self) -> int:
        return self.graph.heavy_atom_count()

    @property
    def bridged_rings(self) -> list[Ring]:
        """Bridged rings created while merging.

        They stay available after the constituent rings are restored for
        drawing.
        """
        return [self.graph.ring(ring_id) for ring_id in self.bridged_ring_ids]

    @property
    def fused_rings(self) -> list[Ring]:
        return [ring for ring in self.graph.rings if ring.is_fused]

    @property
    def spiro_rings(self) -> list[Ring]:
        return [ring for ring in self.graph.rings if ring.is_spiro]

    def ring_info(self) -> str:
        """One line per active ring describing its membership.

        Fields are separated by ``;``: id, members, neighbours, spiro,
        fused and bridged flags, number of constituent rings and insiders.

        Example:
            >>> from chiralayout import draw_smiles
            >>> print(draw_smiles("C1CC1", info_only=True).session.ring_info())
            0;0,1,2;;False;False;False;0;
        """
        lines = []
        for ring in self.graph.rings:
            lines.append(";".join([
                str(ring.id),
                ",".join(str(m) for m in ring.members),
                ",".join(str(n) for n in ring.neighbours),
                str(ring.is_spiro),
                str(ring.is_fused),
                str(ring.is_bridged),
                str(len(ring.rings)),
                ",".join(str(i) for i in ring.insiders),
            ]))
        return "\n".join(lines)
