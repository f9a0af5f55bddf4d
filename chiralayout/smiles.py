"""
SMILES to parse-tree builder.

The layout engine consumes parse trees (:mod:`chiralayout.tree`); this
module turns SMILES strings into such trees so that callers and tests do
not have to assemble them by hand.

Supported notation:
    - Organic subset atoms (B, C, N, O, P, S, F, Cl, Br, I) and their
      aromatic lowercase forms
    - Bracket atoms with isotopes, chirality (@, @@), hydrogens, charges
      and atom classes
    - Bonds - = # $ : / \\ and the component separator .
    - Branches (parentheses)
    - Ring closures (1-9, %10-99, %(100+))

Ring-closure markers are recorded as written; pairing them up is left to
graph construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Final

from chiralayout.elements import (
    AROMATIC_SUBSET,
    BOND_SYMBOLS,
    ORGANIC_SUBSET,
    TWO_LETTER_ORGANIC,
    Element,
)
from chiralayout.exceptions import ParseError
from chiralayout.tree import AtomSpec, BracketInfo, ParseNode, RingBond


class _Tokenizer:
    """Character cursor over a SMILES string with lookahead."""
    
    __slots__ = ("_string", "_pos")
    
    def __init__(self, string: str) -> None:
        self._string = string
        self._pos = 0
    
    @property
    def position(self) -> int:
        return self._pos
    
    def peek(self, offset: int = 0) -> str | None:
        """Look at the character ``offset`` places ahead without consuming it."""
        pos = self._pos + offset
        if pos >= len(self._string):
            return None
        return self._string[pos]
    
    def next(self) -> str | None:
        if self._pos >= len(self._string):
            return None
        char = self._string[self._pos]
        self._pos += 1
        return char
    
    def read_while(self, predicate: Callable[[str], bool]) -> str:
        start = self._pos
        while self._pos < len(self._string) and predicate(self._string[self._pos]):
            self._pos += 1
        return self._string[start:self._pos]
    
    def read_number(self) -> int | None:
        """Read an unsigned integer, or None if no digits are present."""
        digits = self.read_while(str.isdigit)
        return int(digits) if digits else None
    
    def is_eof(self) -> bool:
        return self._pos >= len(self._string)
    
    def expect(self, char: str) -> None:
        """Consume ``char`` or raise.
        
        Raises:
            ParseError: If the next character is something else.
        """
        actual = self.next()
        if actual != char:
            raise ParseError(
                f"Expected '{char}', got '{actual}'",
                self._string,
                self._pos - 1,
            )


@dataclass
class _BuilderState:
    """Mutable state of the tree builder."""
    
    root: ParseNode | None = None
    prev: ParseNode | None = None
    pending_bond: str | None = None
    pending_bond_pos: int = 0
    # Nodes to return to on ')', with the position of their '('
    branch_stack: list[tuple[ParseNode, int]] = field(default_factory=list)
    opening_branch: bool = False


class SmilesTreeBuilder:
    """Build a :class:`~chiralayout.tree.ParseNode` tree from SMILES.
    
    Example:
        >>> tree = SmilesTreeBuilder("CC(=O)O").build()
        >>> tree.next.branches[0].bond
        '='
    
    For convenience, use the module-level :func:`parse_tree`.
    """
    
    _BOND_CHARS: Final[frozenset[str]] = frozenset(BOND_SYMBOLS)
    
    def __init__(self, smiles: str) -> None:
        self._smiles = smiles
        self._tokenizer = _Tokenizer(smiles)
        self._state = _BuilderState()
    
    def build(self) -> ParseNode:
        """Build the tree.
        
        Returns:
            The root node.
        
        Raises:
            ParseError: If the SMILES syntax is invalid.
        """
        tok = self._tokenizer
        state = self._state
        
        while not tok.is_eof():
            char = tok.peek()
            assert char is not None
            
            if char in self._BOND_CHARS:
                self._parse_bond()
            elif char == "(":
                self._open_branch()
            elif char == ")":
                self._close_branch()
            elif char.isdigit() or char == "%":
                self._parse_ring_closure()
            elif char == "[":
                self._parse_bracket_atom()
            elif char == "*" or char.isalpha():
                self._parse_organic_atom()
            else:
                raise ParseError(
                    f"Unexpected character: '{char}'",
                    self._smiles,
                    tok.position,
                )
        
        if state.branch_stack:
            raise ParseError("Unclosed branch", self._smiles, state.branch_stack[-1][1])
        if state.pending_bond is not None:
            raise ParseError(
                f"Bond '{state.pending_bond}' without a following atom",
                self._smiles,
                state.pending_bond_pos,
            )
        if state.root is None:
            raise ParseError("Empty SMILES", self._smiles)
        return state.root
    
    def _parse_bond(self) -> None:
        tok = self._tokenizer
        state = self._state
        position = tok.position
        char = tok.next()
        if state.prev is None:
            raise ParseError("Bond without preceding atom", self._smiles, position)
        if state.pending_bond is not None:
            raise ParseError("Consecutive bond symbols", self._smiles, position)
        state.pending_bond = char
        state.pending_bond_pos = position
    
    def _open_branch(self) -> None:
        tok = self._tokenizer
        state = self._state
        position = tok.position
        tok.next()
        if state.prev is None or state.pending_bond is not None or state.opening_branch:
            raise ParseError("Branch without preceding atom", self._smiles, position)
        state.branch_stack.append((state.prev, position))
        state.opening_branch = True
    
    def _close_branch(self) -> None:
        tok = self._tokenizer
        state = self._state
        position = tok.position
        tok.next()
        if not state.branch_stack:
            raise ParseError("Unmatched ')'", self._smiles, position)
        if state.opening_branch or state.pending_bond is not None:
            raise ParseError("Empty branch", self._smiles, position)
        state.prev = state.branch_stack.pop()[0]
    
    def _parse_ring_closure(self) -> None:
        tok = self._tokenizer
        state = self._state
        position = tok.position
        ring_idx = self._read_ring_index()
        
        if state.prev is None or state.opening_branch:
            raise ParseError("Ring closure without preceding atom", self._smiles, position)
        
        state.prev.ringbonds.append(RingBond(ring_idx, state.pending_bond))
        state.pending_bond = None
    
    def _read_ring_index(self) -> int:
        """Read a ring closure index (1-9, %nn, %(n))."""
        tok = self._tokenizer
        
        if tok.peek() == "%":
            tok.next()
            
            if tok.peek() == "(":
                tok.next()
                num = tok.read_number()
                if num is None:
                    raise ParseError(
                        "Empty ring index in %()",
                        self._smiles,
                        tok.position,
                    )
                tok.expect(")")
                return num
            
            d1 = tok.next()
            d2 = tok.next()
            if not (d1 and d1.isdigit() and d2 and d2.isdigit()):
                raise ParseError(
                    "Expected two digits after %",
                    self._smiles,
                    tok.position,
                )
            return int(d1 + d2)
        
        char = tok.next()
        assert char is not None and char.isdigit()
        return int(char)
    
    def _parse_organic_atom(self) -> None:
        """Parse an atom written without brackets."""
        tok = self._tokenizer
        position = tok.position
        
        symbol = tok.next()
        assert symbol is not None
        
        char2 = tok.peek()
        if char2 and char2.islower():
            candidate = symbol + char2
            if candidate in TWO_LETTER_ORGANIC or candidate in AROMATIC_SUBSET:
                tok.next()
                symbol = candidate
        
        if symbol != "*" and symbol not in ORGANIC_SUBSET and symbol not in AROMATIC_SUBSET:
            raise ParseError(
                f"Atom '{symbol}' must be written in brackets",
                self._smiles,
                position,
            )
        
        self._add_node(AtomSpec(symbol))
    
    def _parse_bracket_atom(self) -> None:
        """Parse a bracket atom such as [13CH3+], [C@@H] or [nH]."""
        tok = self._tokenizer
        start_pos = tok.position
        tok.expect("[")
        
        isotope = tok.read_number()
        symbol = self._read_element_symbol()
        if symbol is None:
            raise ParseError("Missing element symbol", self._smiles, tok.position)
        
        bracket = BracketInfo(isotope=isotope)
        
        if tok.peek() == "@":
            tok.next()
            if tok.peek() == "@":
                tok.next()
                bracket.chirality = "@@"
            else:
                bracket.chirality = "@"
        
        if tok.peek() == "H":
            tok.next()
            count = tok.read_number()
            bracket.hcount = count if count is not None else 1
        
        bracket.charge = self._parse_charge()
        
        if tok.peek() == ":":
            tok.next()
            bracket.atom_class = tok.read_number()
            if bracket.atom_class is None:
                raise ParseError("Missing atom class", self._smiles, tok.position)
        
        if tok.peek() != "]":
            raise ParseError("Unclosed bracket atom", self._smiles, start_pos)
        tok.next()
        
        self._add_node(AtomSpec(symbol, bracket))
    
    def _read_element_symbol(self) -> str | None:
        """Read an element symbol (one or two letters) or the wildcard."""
        tok = self._tokenizer
        char1 = tok.peek()
        if char1 == "*":
            tok.next()
            return char1
        if not char1 or not char1.isalpha():
            return None
        tok.next()
        symbol = char1
        char2 = tok.peek()
        if char2 and char2.islower():
            candidate = symbol + char2
            if Element.from_symbol(candidate) is not None or candidate in AROMATIC_SUBSET:
                if char1.isupper() or candidate in AROMATIC_SUBSET:
                    tok.next()
                    symbol = candidate
        return symbol
    
    def _parse_charge(self) -> int:
        """Parse an optional charge (+, -, ++, --, +2, -3)."""
        tok = self._tokenizer
        
        char = tok.peek()
        if char is None or char not in "+-":
            return 0
        
        sign = 1 if char == "+" else -1
        count = 0
        while tok.peek() == char:
            tok.next()
            count += 1
        
        magnitude = tok.read_number()
        if magnitude is not None:
            if count > 1:
                raise ParseError("Ambiguous charge", self._smiles, tok.position)
            return sign * magnitude
        return sign * count
    
    def _add_node(self, atom: AtomSpec) -> None:
        state = self._state
        node = ParseNode(atom, bond=state.pending_bond or "-")
        
        if state.prev is None:
            state.root = node
        elif state.opening_branch:
            state.prev.branches.append(node)
        else:
            state.prev.next = node
        
        state.prev = node
        state.pending_bond = None
        state.opening_branch = False


def parse_tree(smiles: str) -> ParseNode:
    """Build a parse tree from a SMILES string.
    
    Args:
        smiles: SMILES string.
    
    Returns:
        Root :class:`~chiralayout.tree.ParseNode`.
    
    Raises:
        ParseError: If the SMILES syntax is invalid.
    
    Example:
        >>> parse_tree("CCO").next.next.atom.element
        'O'
    """
    return SmilesTreeBuilder(smiles).build()
