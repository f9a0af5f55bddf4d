"""Custom exceptions for chiralayout."""

from __future__ import annotations


class ChemError(Exception):
    """Base exception for chemistry-related errors."""
    pass


class ParseError(ChemError):
    """Error while building a parse tree from a SMILES string."""
    
    def __init__(self, message: str, smiles: str | None = None, position: int | None = None):
        self.message = message
        self.smiles = smiles
        self.position = position
        
        if smiles is not None and position is not None:
            super().__init__(f"{message}\n  {smiles}\n  {' ' * position}^")
        elif smiles is not None:
            super().__init__(f"{message} in: {smiles}")
        else:
            super().__init__(message)


class RingError(ChemError):
    """Invalid or unpaired ring closure."""
    
    def __init__(self, message: str, ring_index: int | None = None):
        self.ring_index = ring_index
        super().__init__(message)


class ElementError(ChemError):
    """Unknown element symbol in the parse tree."""
    
    def __init__(self, message: str, symbol: str | None = None):
        self.symbol = symbol
        super().__init__(message)


class BondError(ChemError):
    """Unknown bond symbol in the parse tree."""
    
    def __init__(self, message: str, symbol: str | None = None):
        self.symbol = symbol
        super().__init__(message)


class ChiralityError(ChemError):
    """Chirality tag on a vertex with an unsupported neighbourhood."""
    
    def __init__(self, message: str, vertex_id: int | None = None):
        self.vertex_id = vertex_id
        super().__init__(message)


class GraphError(ChemError):
    """Lookup of a vertex, edge or ring id that does not exist."""
    pass
