"""Linked syntaxes as held by a syntax set."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .scope import Scope
from .syntax_definition import Context, ContextId


@dataclass
class LazyContexts:
    """The contexts of one syntax together with their ids by name."""

    context_ids: dict[str, ContextId] = field(default_factory=dict)
    contexts: list[Context] = field(default_factory=list)


@dataclass
class SyntaxReference:
    """A linked syntax, meaningful only within the syntax set that contains it."""

    name: str
    scope: Scope
    file_extensions: list[str] = field(default_factory=list)
    first_line_match: Optional[str] = None
    hidden: bool = False
    variables: dict[str, str] = field(default_factory=dict)
    lazy_contexts: LazyContexts = field(default_factory=LazyContexts, repr=False)

    def context_ids(self) -> dict[str, ContextId]:
        """Map from context name to its id."""
        return self.lazy_contexts.context_ids

    def contexts(self) -> list[Context]:
        """The contexts of this syntax, indexed by ``ContextId.context_index``."""
        return self.lazy_contexts.contexts