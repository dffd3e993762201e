"""Scope stacks: the hierarchy of scopes applying to a token, and the operations that change it."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence

from .scope import ATOM_LEN_BITS, ClearAmount, Scope


class ScopeError(Exception):
    """A scope stack operation could not be applied."""


class OpKind(Enum):
    PUSH = "push"
    POP = "pop"
    CLEAR = "clear"
    RESTORE = "restore"
    NOOP = "noop"


@dataclass(frozen=True)
class ScopeStackOp:
    """A change to a scope stack, applied with :meth:`ScopeStack.apply`."""

    kind: OpKind
    scope: Optional[Scope] = None
    count: int = 0
    amount: Optional[ClearAmount] = None

    @classmethod
    def push(cls, scope: Scope) -> "ScopeStackOp":
        return cls(OpKind.PUSH, scope=scope)

    @classmethod
    def pop(cls, count: int) -> "ScopeStackOp":
        return cls(OpKind.POP, count=count)

    @classmethod
    def clear(cls, amount: ClearAmount) -> "ScopeStackOp":
        """Clear scopes, as done by the ``clear_scopes`` feature."""
        return cls(OpKind.CLEAR, amount=amount)

    @classmethod
    def restore(cls) -> "ScopeStackOp":
        """Restore the most recently cleared scopes."""
        return cls(OpKind.RESTORE)

    @classmethod
    def noop(cls) -> "ScopeStackOp":
        return cls(OpKind.NOOP)


@dataclass(frozen=True)
class BasicScopeStackOp:
    """A single push (``scope`` set) or pop (``scope`` is None), as reported to hooks."""

    scope: Optional[Scope] = None

    @property
    def is_pop(self) -> bool:
        return self.scope is None


Hook = Callable[[BasicScopeStackOp, Sequence[Scope]], None]


def _no_hook(_op: BasicScopeStackOp, _scopes: Sequence[Scope]) -> None:
    return None


@dataclass
class ScopeStack:
    """A stack of scopes, bottom first; also used as a selector."""

    scopes: list[Scope] = field(default_factory=list)
    _clear_stack: list[list[Scope]] = field(default_factory=list, repr=False)

    @classmethod
    def parse(cls, s: str) -> "ScopeStack":
        """Parse a stack from a whitespace separated list of scopes."""
        return cls([Scope.parse(name) for name in s.split()])

    def push(self, scope: Scope) -> None:
        self.scopes.append(scope)

    def pop(self) -> None:
        if self.scopes:
            self.scopes.pop()

    def apply(self, op: ScopeStackOp) -> None:
        """Modify this stack according to ``op``."""
        self.apply_with_hook(op, _no_hook)

    def apply_with_hook(self, op: ScopeStackOp, hook: Hook) -> None:
        """Like :meth:`apply`, calling ``hook`` after every basic push or pop."""
        if op.kind is OpKind.PUSH:
            assert op.scope is not None
            self.scopes.append(op.scope)
            hook(BasicScopeStackOp(op.scope), tuple(self.scopes))
        elif op.kind is OpKind.POP:
            for _ in range(op.count):
                self.pop()
                hook(BasicScopeStackOp(), tuple(self.scopes))
        elif op.kind is OpKind.CLEAR:
            amount = op.amount if op.amount is not None else ClearAmount()
            if amount.is_all:
                cleared, self.scopes = self.scopes, []
            else:
                to_leave = len(self.scopes) - min(amount.count, len(self.scopes))
                cleared = self.scopes[to_leave:]
                del self.scopes[to_leave:]
            self._clear_stack.append(cleared)
            for _ in cleared:
                hook(BasicScopeStackOp(), tuple(self.scopes))
        elif op.kind is OpKind.RESTORE:
            if not self._clear_stack:
                raise ScopeError("Tried to restore cleared scopes, but none were cleared")
            for scope in self._clear_stack.pop():
                self.scopes.append(scope)
                hook(BasicScopeStackOp(scope), tuple(self.scopes))

    def bottom_n(self, n: int) -> list[Scope]:
        """Return the bottom ``n`` scopes of the stack."""
        if n < 0 or n > len(self.scopes):
            raise IndexError(f"cannot take {n} scopes from a stack of {len(self.scopes)}")
        return self.scopes[:n]

    def __len__(self) -> int:
        return len(self.scopes)

    def does_match(self, stack: Sequence[Scope]) -> Optional[float]:
        """Score this stack as a selector against ``stack``; None if it does not match.

        Deeper and longer matches score higher.
        """
        sel_index = 0
        score = 0.0
        for i, scope in enumerate(stack):
            sel_scope = self.scopes[sel_index]
            if sel_scope.is_prefix_of(scope):
                score += len(sel_scope) * 2.0 ** (ATOM_LEN_BITS * i)
                sel_index += 1
                if sel_index >= len(self.scopes):
                    return score
        return None

    def __str__(self) -> str:
        return "".join(f"{scope} " for scope in self.scopes)