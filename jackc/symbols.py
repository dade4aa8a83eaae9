"""
Jack Symbol Table

Two scopes map identifiers to their storage: the class scope holds statics
and fields for the whole class body, the subroutine scope holds arguments
and locals and is emptied at the start of every subroutine.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Dict, Optional

from .errors import SemanticError


class Kind(Enum):
    """Storage class of a declared identifier."""

    STATIC = 'static'
    FIELD = 'field'
    ARGUMENT = 'argument'
    LOCAL = 'local'

    @property
    def is_class_scope(self) -> bool:
        return self in (Kind.STATIC, Kind.FIELD)


# Lookup precedence, innermost first
LOOKUP_ORDER = (Kind.ARGUMENT, Kind.LOCAL, Kind.FIELD, Kind.STATIC)


@dataclass(frozen=True)
class Symbol:
    """A declared identifier."""

    name: str
    type: str
    kind: Kind
    index: int


class SymbolTable:
    """Class and subroutine scoped identifier table."""

    def __init__(self):
        self.tables: Dict[Kind, Dict[str, Symbol]] = {kind: {} for kind in Kind}

    def start_subroutine(self) -> None:
        """Forget the arguments and locals of the previous subroutine."""
        self.tables[Kind.ARGUMENT] = {}
        self.tables[Kind.LOCAL] = {}

    def define(self, name: str, type: str, kind: Kind) -> Symbol:
        """
        Declare a new identifier with the next free index of its kind.

        Raises:
            SemanticError: if name is already declared in the same scope
        """
        if self.is_defined_in_scope(name, kind):
            scope = 'class' if kind.is_class_scope else 'subroutine'
            raise SemanticError(f"'{name}' is already declared in {scope} scope")

        table = self.tables[kind]
        symbol = Symbol(name, type, kind, len(table))
        table[name] = symbol
        return symbol

    def is_defined_in_scope(self, name: str, kind: Kind) -> bool:
        """Check if name is taken in the scope that kind belongs to."""
        if kind.is_class_scope:
            scope = (Kind.STATIC, Kind.FIELD)
        else:
            scope = (Kind.ARGUMENT, Kind.LOCAL)
        return any(name in self.tables[k] for k in scope)

    def count(self, kind: Kind) -> int:
        """Number of identifiers of the given kind in its current scope."""
        return len(self.tables[kind])

    def lookup(self, name: str) -> Optional[Symbol]:
        """Resolve name, innermost scope first."""
        for kind in LOOKUP_ORDER:
            symbol = self.tables[kind].get(name)
            if symbol is not None:
                return symbol
        return None

    def kind_of(self, name: str) -> Optional[Kind]:
        symbol = self.lookup(name)
        return symbol.kind if symbol else None

    def type_of(self, name: str) -> str:
        return self._resolve(name).type

    def index_of(self, name: str) -> int:
        return self._resolve(name).index

    def _resolve(self, name: str) -> Symbol:
        symbol = self.lookup(name)
        if symbol is None:
            raise KeyError(name)
        return symbol
