"""
Drawer configuration.

Options are immutable; derive variants with :meth:`DrawerOptions.replace`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Final, Mapping

from chiralayout.elements import display_symbol


DARK_THEME: Final[Mapping[str, str]] = {
    "C": "#fff",
    "O": "#e74c3c",
    "N": "#3498db",
    "F": "#27ae60",
    "CL": "#16a085",
    "BR": "#d35400",
    "I": "#8e44ad",
    "P": "#d35400",
    "S": "#f1c40f",
    "B": "#e67e22",
    "SI": "#e67e22",
    "H": "#252525",
    "BACKGROUND": "#141414",
}

LIGHT_THEME: Final[Mapping[str, str]] = {
    **DARK_THEME,
    "C": "#222",
    "H": "#d5d5d5",
    "BACKGROUND": "#fff",
}

ATOM_VISUALIZATIONS: Final[frozenset[str]] = frozenset({"default", "balls"})


def _default_themes() -> dict[str, Mapping[str, str]]:
    return {"dark": DARK_THEME, "light": LIGHT_THEME}


@dataclass(frozen=True, slots=True)
class DrawerOptions:
    """Geometric constants, feature toggles and colour themes.
    
    Attributes:
        bond_length: Length of a bond in drawing units.
        short_bond_length: Fraction of ``bond_length`` kept by the inner
            strand of double and triple bonds.
        bond_spacing: Distance between the strands of a multiple bond.
        font_size_large: Font size of element symbols.
        font_size_small: Font size of hydrogen counts, charges and isotopes.
        padding: Margin added around the bounding box of the layout.
        atom_visualization: ``"default"`` (labels) or ``"balls"``.
        allow_flips: Allow substituents to be flipped into rings while
            resolving overlaps.
        isomeric: Expand bracket hydrogens and draw stereo wedges.
        debug: Emit vertex ids and ring centers as annotations.
        terminal_carbons: Label terminal carbons.
        compact_drawing: Collapse terminal groups into pseudo-elements.
        theme: Name of the active entry in ``themes``.
        themes: Element to colour maps, each with a ``BACKGROUND`` entry.
        seed: Seed for the random nudges of the force layout.
    
    Example:
        >>> opts = DrawerOptions(bond_length=20.0)
        >>> opts.replace(isomeric=True).isomeric
        True
    """
    
    bond_length: float = 16.0
    short_bond_length: float = 0.8
    bond_spacing: float = 4.0
    font_size_large: float = 6.0
    font_size_small: float = 4.0
    padding: float = 20.0
    atom_visualization: str = "default"
    allow_flips: bool = False
    isomeric: bool = False
    debug: bool = False
    terminal_carbons: bool = False
    compact_drawing: bool = True
    theme: str = "light"
    themes: Mapping[str, Mapping[str, str]] = field(default_factory=_default_themes)
    seed: int = 0
    
    def __post_init__(self) -> None:
        for name in ("bond_length", "bond_spacing", "font_size_large", "font_size_small"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if not 0.0 < self.short_bond_length <= 1.0:
            raise ValueError(
                f"short_bond_length must be in (0, 1], got {self.short_bond_length}"
            )
        if self.padding < 0:
            raise ValueError(f"padding must not be negative, got {self.padding}")
        if self.atom_visualization not in ATOM_VISUALIZATIONS:
            raise ValueError(f"Unknown atom visualization: {self.atom_visualization!r}")
        if self.theme not in self.themes:
            raise ValueError(f"Unknown theme: {self.theme!r}")
    
    def replace(self, **changes) -> DrawerOptions:
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)
    
    @property
    def colors(self) -> Mapping[str, str]:
        return self.themes[self.theme]
    
    @property
    def background(self) -> str:
        return self.colors["BACKGROUND"]
    
    @property
    def shortening(self) -> float:
        """Length removed from inner strands of multiple bonds."""
        return self.bond_length * (1.0 - self.short_bond_length)
    
    def color_for(self, element: str) -> str:
        """Theme colour of an element, falling back to the carbon colour."""
        key = display_symbol(element).upper()
        return self.colors.get(key, self.colors["C"])
