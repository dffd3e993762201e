"""Collecting syntax definitions and building them into a linked syntax set."""

from __future__ import annotations

import os
from typing import Iterable, Optional, Union

from .folder_loading import find_syntax_files, normalized_path
from .linker import link_syntaxes
from .syntax_definition import SyntaxDefinition
from .syntax_set import SyntaxSet
from .yaml_load import ParseSyntaxError, load_syntax_from_str

_PLAIN_TEXT = "---\nname: Plain Text\nfile_extensions: [txt]\nscope: text.plain\ncontexts: {main: []}"


class SyntaxSetBuilder:
    """Gathers syntax definitions; :meth:`build` links them into a :class:`SyntaxSet`."""

    def __init__(
        self,
        definitions: Optional[Iterable[SyntaxDefinition]] = None,
        path_syntaxes: Optional[Iterable[tuple[str, int]]] = None,
    ) -> None:
        self._syntaxes: list[SyntaxDefinition] = list(definitions or ())
        self._path_syntaxes: list[tuple[str, int]] = list(path_syntaxes or ())

    def add(self, syntax: SyntaxDefinition) -> None:
        """Add a syntax to the set."""
        self._syntaxes.append(syntax)

    def syntaxes(self) -> list[SyntaxDefinition]:
        """The syntaxes added so far."""
        return self._syntaxes

    def add_plain_text_syntax(self) -> None:
        """Add a ``Plain Text`` syntax with no highlighting rules."""
        self._syntaxes.append(load_syntax_from_str(_PLAIN_TEXT, False, None))

    def add_from_folder(
        self, folder: Union[str, "os.PathLike[str]"], lines_include_newline: bool
    ) -> None:
        """Load every ``.sublime-syntax`` file below ``folder``, in file name order.

        Pass ``lines_include_newline=True`` when the lines to be parsed keep
        their trailing newline; otherwise regexes matching ``\\n`` are
        rewritten to match the end of the line.
        """
        for path in find_syntax_files(folder):
            text = path.read_text(encoding="utf-8")
            try:
                syntax = load_syntax_from_str(text, lines_include_newline, path.stem)
            except ParseSyntaxError as exc:
                raise ParseSyntaxError(f"Error parsing syntax file {path}: {exc}") from exc
            self._path_syntaxes.append((normalized_path(path), len(self._syntaxes)))
            self._syntaxes.append(syntax)

    def build(self) -> SyntaxSet:
        """Link the added syntaxes so references point directly at contexts."""
        return SyntaxSet(link_syntaxes(self._syntaxes), self._path_syntaxes)