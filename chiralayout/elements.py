"""
Chemical elements and bond constants.

This module provides the element registry used to validate atom symbols,
the bond symbol table shared by the tree builder and the graph, and the
drawing valences used to derive implicit hydrogen counts for atom labels.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Final, FrozenSet


class BondOrder(IntEnum):
    """Bond order enumeration.

    ``ZERO`` is the order of the component separator ``.``, which links
    disconnected fragments in the layout but is never drawn.
    """
    
    ZERO = 0
    SINGLE = 1
    DOUBLE = 2
    TRIPLE = 3
    QUADRUPLE = 4
    
    def __str__(self) -> str:
        return self.name.lower()


# Bond symbols accepted in parse trees. Aromatic (:) and directional (/ \)
# bonds are laid out and counted as single bonds.
BOND_SYMBOLS: Final[dict[str, BondOrder]] = {
    "-": BondOrder.SINGLE,
    "/": BondOrder.SINGLE,
    "\\": BondOrder.SINGLE,
    ":": BondOrder.SINGLE,
    "=": BondOrder.DOUBLE,
    "#": BondOrder.TRIPLE,
    "$": BondOrder.QUADRUPLE,
    ".": BondOrder.ZERO,
}

DEFAULT_BOND: Final[str] = "-"
DOT_BOND: Final[str] = "."


@dataclass(frozen=True, slots=True)
class Element:
    """Immutable element data.
    
    Attributes:
        atomic_number: Atomic number (proton count).
        symbol: Element symbol (e.g., "C", "Cl").
        max_bonds: Drawing valence used to derive implicit hydrogens,
            or None when labels never carry implicit hydrogens.
    """
    
    atomic_number: int
    symbol: str
    max_bonds: int | None = None
    
    _by_symbol: ClassVar[dict[str, "Element"]] = {}
    
    def __post_init__(self) -> None:
        Element._by_symbol[self.symbol] = self
        Element._by_symbol.setdefault(self.symbol.lower(), self)
    
    @classmethod
    def from_symbol(cls, symbol: str) -> "Element | None":
        """Look up element by symbol (lowercase accepted for aromatic atoms)."""
        if symbol in cls._by_symbol:
            return cls._by_symbol[symbol]
        return cls._by_symbol.get(symbol.capitalize())


_PERIODIC_TABLE: Final[str] = (
    "H He Li Be B C N O F Ne Na Mg Al Si P S Cl Ar K Ca Sc Ti V Cr Mn Fe Co "
    "Ni Cu Zn Ga Ge As Se Br Kr Rb Sr Y Zr Nb Mo Tc Ru Rh Pd Ag Cd In Sn Sb "
    "Te I Xe Cs Ba La Ce Pr Nd Pm Sm Eu Gd Tb Dy Ho Er Tm Yb Lu Hf Ta W Re Os "
    "Ir Pt Au Hg Tl Pb Bi Po At Rn Fr Ra Ac Th Pa U Np Pu Am Cm Bk Cf Es Fm "
    "Md No Lr Rf Db Sg Bh Hs Mt Ds Rg Cn Nh Fl Mc Lv Ts Og"
)

# Valences for which atom labels show implicit hydrogens
_MAX_BONDS: Final[dict[str, int]] = {
    "H": 1,
    "B": 3,
    "C": 4,
    "N": 3,
    "O": 2,
    "F": 1,
    "P": 3,
    "S": 2,
    "Cl": 1,
    "Br": 1,
    "I": 1,
}

ELEMENTS: Final[tuple[Element, ...]] = tuple(
    Element(number, symbol, _MAX_BONDS.get(symbol))
    for number, symbol in enumerate(_PERIODIC_TABLE.split(), start=1)
)

# Wildcard atom, accepted but never given implicit hydrogens
WILDCARD: Final[Element] = Element(0, "*")

# Daylight "organic subset" - atoms that can appear without brackets
ORGANIC_SUBSET: Final[FrozenSet[str]] = frozenset({
    "B", "C", "N", "O", "P", "S", "F", "Cl", "Br", "I",
})

# Aromatic element symbols allowed in lowercase SMILES form
AROMATIC_SUBSET: Final[FrozenSet[str]] = frozenset({
    "b", "c", "n", "o", "p", "s", "as", "se",
})

TWO_LETTER_ORGANIC: Final[FrozenSet[str]] = frozenset({"Cl", "Br"})


def is_aromatic_symbol(symbol: str) -> bool:
    """Check whether a symbol is written in aromatic (lowercase) form."""
    return symbol in AROMATIC_SUBSET


def display_symbol(symbol: str) -> str:
    """Return the symbol as it is printed in a label ("c" -> "C", "se" -> "Se")."""
    if symbol == "*":
        return symbol
    return symbol[0].upper() + symbol[1:]


def get_max_bonds(symbol: str) -> int | None:
    """Get the drawing valence of an element.
    
    Args:
        symbol: Element symbol in any case.
    
    Returns:
        Maximum number of bonds, or None if the element has no entry.
    """
    element = Element.from_symbol(symbol)
    return element.max_bonds if element else None


def bond_order(symbol: str) -> BondOrder:
    """Map a bond symbol to its order.
    
    Raises:
        KeyError: If the symbol is not a known bond symbol.
    """
    return BOND_SYMBOLS[symbol]
