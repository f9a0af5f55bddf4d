"""
Chiralayout - 2D depiction of molecules from SMILES.

Turns a SMILES string into a molecular graph, perceives its rings and
computes 2D coordinates for every atom. The result is a list of abstract
draw commands (lines, labels, aromatic circles) that any backend can render.

    >>> from chiralayout import draw_smiles
    >>> result = draw_smiles("c1ccccc1O")
    >>> [text.element for text in result.texts]
    ['O']

Submodules:
    chiralayout.rings  - SSSR, ring connections and bridged-ring merging
    chiralayout.layout - Coordinate assignment, force layout, overlap resolution
"""

__version__ = "0.1.0"
__author__ = "chiralayout developers"

# Core types
from chiralayout.types import Atom, Vertex, Edge, Ring, RingConnection, PseudoElement
from chiralayout.graph import Graph
from chiralayout.geometry import Vector2, Line

# Parsing
from chiralayout.tree import ParseNode
from chiralayout.smiles import parse_tree, SmilesTreeBuilder

# Drawing
from chiralayout.options import DrawerOptions
from chiralayout.session import LayoutSession
from chiralayout.draw import (
    DrawResult,
    LineCommand,
    TextCommand,
    BallCommand,
    AromaticRingCommand,
    DebugTextCommand,
    DebugPointCommand,
)
from chiralayout.drawer import MoleculeDrawer, draw_smiles

# Exceptions
from chiralayout.exceptions import (
    ChemError,
    ParseError,
    RingError,
    ElementError,
    BondError,
    ChiralityError,
    GraphError,
)

# Submodules
from chiralayout import rings, layout

__all__ = [
    # Types
    "Atom", "Vertex", "Edge", "Ring", "RingConnection", "PseudoElement",
    "Graph", "Vector2", "Line",
    # Parsing
    "ParseNode", "parse_tree", "SmilesTreeBuilder",
    # Drawing
    "DrawerOptions", "LayoutSession", "MoleculeDrawer", "draw_smiles",
    "DrawResult", "LineCommand", "TextCommand", "BallCommand",
    "AromaticRingCommand", "DebugTextCommand", "DebugPointCommand",
    # Exceptions
    "ChemError", "ParseError", "RingError", "ElementError", "BondError",
    "ChiralityError", "GraphError",
    # Submodules
    "rings", "layout",
]
