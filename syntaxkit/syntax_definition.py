"""Data structures describing syntax definitions, their contexts and patterns."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Callable, Iterator, Optional, Protocol, Union

import regex

from .scope import ClearAmount, Scope

CaptureMapping = list[tuple[int, list[Scope]]]

_REGEX_META = set("\\.+*?()|[]{}^$#&-~")


class ParsingError(Exception):
    """A problem found while working with linked contexts."""


def _escape(text: str) -> str:
    return "".join("\\" + c if c in _REGEX_META else c for c in text)


@dataclass(frozen=True)
class Regex:
    """A regular expression source string, compiled on first use."""

    regex_str: str

    @cached_property
    def _compiled(self) -> "regex.Pattern[str]":
        return regex.compile(self.regex_str)

    def search(self, text: str, start: int = 0, end: Optional[int] = None) -> Optional["regex.Match[str]"]:
        """Search ``text`` between ``start`` and ``end``; return the match or None."""
        if end is None:
            end = len(text)
        return self._compiled.search(text, start, end)

    @staticmethod
    def try_compile(regex_str: str) -> Optional[regex.error]:
        """Return the compile error for ``regex_str``, or None if it compiles."""
        try:
            regex.compile(regex_str)
        except regex.error as exc:
            return exc
        return None


@dataclass(frozen=True)
class ContextId:
    """Opaque identifier of a context inside a syntax set."""

    syntax_index: int
    context_index: int


class _ContextSource(Protocol):
    def get_context(self, context_id: ContextId) -> "Context": ...


class ContextReference:
    """A reference to a context; only direct references are resolvable."""

    __slots__ = ()

    def resolve(self, syntax_set: _ContextSource) -> "Context":
        """Find the context this reference points to."""
        return syntax_set.get_context(self.id())

    def id(self) -> ContextId:
        """Return the context id this reference points to."""
        raise ParsingError(f"unresolved context reference {self!r}")


@dataclass(frozen=True)
class NamedReference(ContextReference):
    name: str


@dataclass(frozen=True)
class ByScopeReference(ContextReference):
    scope: Scope
    sub_context: Optional[str] = None
    with_escape: bool = False


@dataclass(frozen=True)
class FileReference(ContextReference):
    name: str
    sub_context: Optional[str] = None
    with_escape: bool = False


@dataclass(frozen=True)
class InlineReference(ContextReference):
    name: str


@dataclass(frozen=True)
class DirectReference(ContextReference):
    context_id: ContextId

    def id(self) -> ContextId:
        return self.context_id


class OperationKind(Enum):
    PUSH = "push"
    SET = "set"
    POP = "pop"
    NONE = "none"


@dataclass
class MatchOperation:
    """What a match does to the context stack; ``contexts`` is used by push and set."""

    kind: OperationKind = OperationKind.NONE
    contexts: list[ContextReference] = field(default_factory=list)


def substitute_backrefs_in_regex(regex_str: str, substituter: Callable[[int], Optional[str]]) -> str:
    """Replace ``\\N`` backreferences with what ``substituter(N)`` returns (nothing for None)."""
    out: list[str] = []
    last_was_escape = False
    for c in regex_str:
        if last_was_escape and c.isdigit() and c.isascii():
            sub = substituter(int(c))
            if sub is not None:
                out.append(sub)
        elif last_was_escape:
            out.append("\\")
            out.append(c)
        elif c != "\\":
            out.append(c)
        last_was_escape = c == "\\" and not last_was_escape
    return "".join(out)


@dataclass
class MatchPattern:
    """A ``match`` rule of a context."""

    regex: Regex
    scope: list[Scope] = field(default_factory=list)
    captures: Optional[CaptureMapping] = None
    operation: MatchOperation = field(default_factory=MatchOperation)
    with_prototype: Optional[ContextReference] = None
    has_captures: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.regex, str):
            self.regex = Regex(self.regex)

    def regex_with_refs(self, match: "regex.Match[str]", text: str) -> Regex:
        """Build a regex whose backreferences are filled from groups of ``match`` on ``text``."""

        def group_text(i: int) -> Optional[str]:
            if i > len(match.groups()):
                return None
            start, end = match.span(i)
            if start < 0:
                return None
            return _escape(text[start:end])

        return Regex(substitute_backrefs_in_regex(self.regex.regex_str, group_text))


@dataclass
class IncludePattern:
    """An ``include`` rule of a context."""

    reference: ContextReference


Pattern = Union[MatchPattern, IncludePattern]


@dataclass
class Context:
    """A named list of patterns with the metadata that governs it."""

    meta_include_prototype: bool = True
    meta_scope: list[Scope] = field(default_factory=list)
    meta_content_scope: list[Scope] = field(default_factory=list)
    clear_scopes: Optional[ClearAmount] = None
    prototype: Optional[ContextId] = None
    uses_backrefs: bool = False
    patterns: list[Pattern] = field(default_factory=list)

    def match_at(self, index: int) -> MatchPattern:
        """Return the match pattern at ``index``."""
        pattern = self.patterns[index]
        if not isinstance(pattern, MatchPattern):
            raise ParsingError(f"bad match index {index}")
        return pattern


@dataclass
class SyntaxDefinition:
    """A syntax as loaded from a ``.sublime-syntax`` file, before linking."""

    name: str
    scope: Scope
    file_extensions: list[str] = field(default_factory=list)
    first_line_match: Optional[str] = None
    hidden: bool = False
    variables: dict[str, str] = field(default_factory=dict)
    contexts: dict[str, Context] = field(default_factory=dict)


def context_iter(syntax_set: _ContextSource, context: Context) -> Iterator[tuple[Context, int]]:
    """Yield ``(context, index)`` for every match pattern, following direct includes in order."""
    stack: list[tuple[Context, Iterator[tuple[int, Pattern]]]] = [
        (context, iter(enumerate(context.patterns)))
    ]
    while stack:
        current, patterns = stack[-1]
        item = next(patterns, None)
        if item is None:
            stack.pop()
            continue
        index, pattern = item
        if isinstance(pattern, MatchPattern):
            yield current, index
        elif isinstance(pattern.reference, DirectReference):
            included = syntax_set.get_context(pattern.reference.context_id)
            stack.append((included, iter(enumerate(included.patterns))))