"""
Parse-tree input types.

A parse tree is a chain of :class:`ParseNode` objects. Each node carries one
atom, the bond leading into it, its ring-closure markers, ordered side
branches and an optional linear successor (``next``).

    >>> root = ParseNode(AtomSpec("C"))
    >>> root.next = ParseNode(AtomSpec("O"), bond="=")
    >>> root.has_next
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator


@dataclass(slots=True)
class BracketInfo:
    """Attributes only available on bracket atoms.
    
    Attributes:
        hcount: Number of attached hydrogens.
        charge: Formal charge.
        isotope: Mass number, or None.
        chirality: ``"@"``, ``"@@"`` or None.
        atom_class: Atom class (``:n``), or None.
    """
    
    hcount: int = 0
    charge: int = 0
    isotope: int | None = None
    chirality: str | None = None
    atom_class: int | None = None


@dataclass(slots=True)
class AtomSpec:
    """Element symbol plus optional bracket attributes."""
    
    element: str
    bracket: BracketInfo | None = None


@dataclass(slots=True)
class RingBond:
    """A ring-closure marker.
    
    Attributes:
        id: Ring-closure number as written (1-9, %nn or %(n)).
        bond: Explicit bond symbol written with the marker, or None.
    """
    
    id: int
    bond: str | None = None


@dataclass(slots=True)
class ParseNode:
    """One atom of the parse tree with its outgoing structure."""
    
    atom: AtomSpec
    bond: str = "-"
    ringbonds: list[RingBond] = field(default_factory=list)
    branches: list[ParseNode] = field(default_factory=list)
    next: ParseNode | None = None
    
    @property
    def branch_count(self) -> int:
        return len(self.branches)
    
    @property
    def ringbond_count(self) -> int:
        return len(self.ringbonds)
    
    @property
    def has_next(self) -> bool:
        return self.next is not None
    
    def walk(self) -> Iterator[ParseNode]:
        """Yield nodes in document order (atom, branches, then successor)."""
        stack: list[ParseNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            if node.next is not None:
                stack.append(node.next)
            stack.extend(reversed(node.branches))
