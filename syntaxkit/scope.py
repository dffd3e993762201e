"""Scopes: compact, dot-separated hierarchies of atoms naming pieces of text."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

ATOM_LEN_BITS = 3
"""Multiplier on the power of two used when computing match scores."""

_U64 = (1 << 64) - 1
_U16_MAX = 0xFFFF
_MAX_ATOMS = 8


class ParseScopeError(ValueError):
    """A string could not be turned into a scope."""


def _trailing_zeros(value: int) -> int:
    if value == 0:
        return 64
    return (value & -value).bit_length() - 1


@dataclass(frozen=True, order=True)
class Scope:
    """A scope packed into two 64-bit words, 16 bits per atom, at most eight atoms.

    Atom numbers are one-based indexes into the repository that built the
    scope; zero marks an unused slot.
    """

    a: int = 0
    b: int = 0

    @classmethod
    def parse(cls, s: str) -> "Scope":
        """Parse a scope from atoms separated by dots, using the global repository."""
        return SCOPE_REPO.build(s.strip())

    def atom_at(self, index: int) -> int:
        """Return the atom number stored at ``index`` (0 for an unused slot)."""
        if 0 <= index < 4:
            shifted = self.a >> ((3 - index) * 16)
        elif 4 <= index < 8:
            shifted = self.b >> ((7 - index) * 16)
        else:
            raise IndexError(f"atom index out of bounds {index}")
        return shifted & _U16_MAX

    def _missing_atoms(self) -> int:
        if self.b == 0:
            trail = _trailing_zeros(self.a) + 64
        else:
            trail = _trailing_zeros(self.b)
        return trail // 16

    def __len__(self) -> int:
        return _MAX_ATOMS - self._missing_atoms()

    def build_string(self) -> str:
        """Return the dotted string form, looked up in the global repository."""
        return SCOPE_REPO.to_string(self)

    def is_prefix_of(self, s: "Scope") -> bool:
        """True if this scope is a prefix of ``s``; the empty scope is a prefix of all."""
        missing = self._missing_atoms()
        if missing == 8:
            mask = (0, 0)
        elif missing == 4:
            mask = (_U64, 0)
        elif missing > 4:
            mask = ((_U64 << ((missing - 4) * 16)) & _U64, 0)
        else:
            mask = (_U64, (_U64 << (missing * 16)) & _U64)
        ax = (self.a ^ s.a) & mask[0]
        bx = (self.b ^ s.b) & mask[1]
        return ax == 0 and bx == 0

    def __str__(self) -> str:
        return self.build_string()

    def __repr__(self) -> str:
        return f"<{self.build_string()}>"


def _pack_atoms(atoms: list[int]) -> Scope:
    a = 0
    b = 0
    for i, n in enumerate(atoms):
        if n >= _U16_MAX - 2:
            raise ParseScopeError("Too many atoms. Max 2^16-2 atoms allowed.")
        small = n + 1  # zero is reserved for unused slots
        if i < 4:
            a |= small << ((3 - i) * 16)
        else:
            b |= small << ((7 - i) * 16)
    return Scope(a, b)


class ScopeRepository:
    """Maps atom strings to numbers and back. Scopes compare validly only within one repository."""

    def __init__(self) -> None:
        self._atoms: list[str] = []
        self._atom_index: dict[str, int] = {}
        self._lock = threading.RLock()

    def build(self, s: str) -> Scope:
        """Build a scope from a dotted string, registering new atoms."""
        if not s:
            return Scope()
        with self._lock:
            parts = [self._atom_to_index(atom) for atom in s.rstrip(".").split(".")]
        if len(parts) > _MAX_ATOMS:
            raise ParseScopeError("Too many atoms. Max 2^16-2 atoms allowed.")
        return _pack_atoms(parts)

    def to_string(self, scope: Scope) -> str:
        """Return the dotted string form of ``scope``."""
        names = []
        with self._lock:
            for i in range(_MAX_ATOMS):
                atom_number = scope.atom_at(i)
                if atom_number == 0:
                    break
                names.append(self.atom_str(atom_number))
        return ".".join(names)

    def _atom_to_index(self, atom: str) -> int:
        index = self._atom_index.get(atom)
        if index is None:
            self._atoms.append(atom)
            index = len(self._atoms) - 1
            self._atom_index[atom] = index
        return index

    def atom_str(self, atom_number: int) -> str:
        """Return the string for an atom number as returned by :meth:`Scope.atom_at`."""
        if atom_number < 1:
            raise IndexError(f"invalid atom number {atom_number}")
        return self._atoms[atom_number - 1]


SCOPE_REPO = ScopeRepository()
"""The global repository used by :meth:`Scope.parse` and :meth:`Scope.build_string`."""


@dataclass(frozen=True)
class ClearAmount:
    """How many scopes a ``clear_scopes`` context clears; ``count=None`` clears all."""

    count: Optional[int] = None

    @property
    def is_all(self) -> bool:
        return self.count is None