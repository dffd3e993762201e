"""A set of linked syntaxes and the ways of finding a syntax in it."""

from __future__ import annotations

import copy
import os
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional, Union

from .scope import Scope
from .syntax_definition import (
    Context,
    ContextId,
    DirectReference,
    MatchPattern,
    OperationKind,
    ParsingError,
    Regex,
    SyntaxDefinition,
)
from .syntax_reference import SyntaxReference

if TYPE_CHECKING:
    from .builder import SyntaxSetBuilder

_ASCII_LOWER = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")


def _ascii_equal_ignore_case(a: str, b: str) -> bool:
    return a.translate(_ASCII_LOWER) == b.translate(_ASCII_LOWER)


class SyntaxSet:
    """Syntaxes linked together; build one with a ``SyntaxSetBuilder``.

    Lookups search from the most recently added syntax backwards, so later
    syntaxes override earlier ones.
    """

    def __init__(
        self,
        syntaxes: Iterable[SyntaxReference] = (),
        path_syntaxes: Iterable[tuple[str, int]] = (),
    ) -> None:
        self._syntaxes: list[SyntaxReference] = list(syntaxes)
        self._path_syntaxes: list[tuple[str, int]] = list(path_syntaxes)

    @classmethod
    def load_from_folder(cls, folder: Union[str, os.PathLike]) -> "SyntaxSet":
        """Load every ``.sublime-syntax`` file below ``folder`` (lines without newlines)."""
        from .builder import SyntaxSetBuilder

        builder = SyntaxSetBuilder()
        builder.add_from_folder(folder, False)
        return builder.build()

    def syntaxes(self) -> list[SyntaxReference]:
        """The syntaxes in the set, in the order they were added."""
        return self._syntaxes

    def _latest(self):
        return reversed(self._syntaxes)

    def find_syntax_by_scope(self, scope: Scope) -> Optional[SyntaxReference]:
        """Find a syntax by its top-level scope, e.g. ``source.regexp``."""
        return next((s for s in self._latest() if s.scope == scope), None)

    def find_syntax_by_name(self, name: str) -> Optional[SyntaxReference]:
        return next((s for s in self._latest() if s.name == name), None)

    def find_syntax_by_extension(self, extension: str) -> Optional[SyntaxReference]:
        """Find a syntax by file extension, ignoring ASCII case."""
        return next(
            (
                s
                for s in self._latest()
                if any(_ascii_equal_ignore_case(e, extension) for e in s.file_extensions)
            ),
            None,
        )

    def find_syntax_by_token(self, s: str) -> Optional[SyntaxReference]:
        """Find a syntax by extension, then by case-insensitive name."""
        found = self.find_syntax_by_extension(s)
        if found is not None:
            return found
        return next(
            (syntax for syntax in self._latest() if _ascii_equal_ignore_case(syntax.name, s)),
            None,
        )

    @cached_property
    def _first_line_regexes(self) -> list[tuple[Regex, int]]:
        return [
            (Regex(syntax.first_line_match), i)
            for i, syntax in enumerate(self._syntaxes)
            if syntax.first_line_match is not None
        ]

    def find_syntax_by_first_line(self, s: str) -> Optional[SyntaxReference]:
        """Find a syntax whose first-line regex (shebang, mode line...) matches ``s``."""
        for reg, i in reversed(self._first_line_regexes):
            if reg.search(s) is not None:
                return self._syntaxes[i]
        return None

    def find_syntax_by_path(self, path: str) -> Optional[SyntaxReference]:
        """Find a syntax by the end of the path it was loaded from.

        The match must be the whole path or start right after a ``/``.
        """
        slash_path = "/" + path
        for loaded, i in reversed(self._path_syntaxes):
            if loaded.endswith(slash_path) or loaded == path:
                return self._syntaxes[i]
        return None

    def find_syntax_for_file(self, path: Union[str, os.PathLike]) -> Optional[SyntaxReference]:
        """Find a syntax by file name or extension, else by the file's first line.

        Raises ``OSError`` if the first line has to be read and cannot be.
        """
        path_obj = Path(path)
        file_name = path_obj.name
        extension = path_obj.suffix[1:] if path_obj.suffix else ""
        found = self.find_syntax_by_extension(file_name) or self.find_syntax_by_extension(extension)
        if found is not None:
            return found
        with open(path_obj, encoding="utf-8", errors="replace", newline="") as f:
            line = f.readline()
        return self.find_syntax_by_first_line(line)

    def find_syntax_plain_text(self) -> SyntaxReference:
        """Return the ``Plain Text`` syntax; raise ``LookupError`` if the set has none."""
        found = self.find_syntax_by_name("Plain Text")
        if found is None:
            raise LookupError("All syntax sets ought to have a plain text syntax")
        return found

    def into_builder(self) -> "SyntaxSetBuilder":
        """Return a builder holding this set's syntaxes, so more can be added.

        New syntaxes may refer to existing ones, but not the other way around.
        """
        from .builder import SyntaxSetBuilder

        definitions = []
        for syntax in self._syntaxes:
            contexts = syntax.contexts()
            definitions.append(
                SyntaxDefinition(
                    name=syntax.name,
                    scope=syntax.scope,
                    file_extensions=list(syntax.file_extensions),
                    first_line_match=syntax.first_line_match,
                    hidden=syntax.hidden,
                    variables=dict(syntax.variables),
                    contexts={
                        name: copy.deepcopy(contexts[context_id.context_index])
                        for name, context_id in syntax.context_ids().items()
                        if 0 <= context_id.context_index < len(contexts)
                    },
                )
            )
        return SyntaxSetBuilder(definitions=definitions, path_syntaxes=list(self._path_syntaxes))

    def get_context(self, context_id: ContextId) -> Context:
        """Return the context for ``context_id``; raise ``ParsingError`` if it is missing."""
        if not 0 <= context_id.syntax_index < len(self._syntaxes):
            raise ParsingError(f"missing context {context_id}")
        contexts = self._syntaxes[context_id.syntax_index].contexts()
        if not 0 <= context_id.context_index < len(contexts):
            raise ParsingError(f"missing context {context_id}")
        return contexts[context_id.context_index]

    def find_unlinked_contexts(self) -> list[str]:
        """Describe every push or set reference that linking could not resolve, sorted."""
        found: set[str] = set()
        for syntax in self._syntaxes:
            for context in syntax.contexts():
                for pattern in context.patterns:
                    if not isinstance(pattern, MatchPattern):
                        continue
                    if pattern.operation.kind not in (OperationKind.PUSH, OperationKind.SET):
                        continue
                    for ref in pattern.operation.contexts:
                        if not isinstance(ref, DirectReference):
                            found.add(
                                f"Syntax '{syntax.name}' with scope '{syntax.scope}' "
                                f"has unresolved context reference {ref!r}"
                            )
        return sorted(found)