"""Loading syntax definitions from ``.sublime-syntax`` YAML text."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Any, Optional

import regex
import yaml

from .context_naming import ContextNamer, resolve_variables
from .regex_rewrite import regex_for_newlines, regex_for_no_newlines, replace_posix_char_classes
from .regex_scanner import get_consuming_capture_indexes
from .scope import SCOPE_REPO, ClearAmount, ParseScopeError, Scope
from .syntax_definition import (
    ByScopeReference,
    CaptureMapping,
    Context,
    ContextReference,
    FileReference,
    IncludePattern,
    InlineReference,
    MatchOperation,
    MatchPattern,
    NamedReference,
    OperationKind,
    Regex,
    SyntaxDefinition,
    substitute_backrefs_in_regex,
)

_BACKREF = regex.compile(r"\\\d")
_MISSING = object()
_BOOL_TAG = "tag:yaml.org,2002:bool"


class ParseSyntaxError(ValueError):
    """A syntax definition could not be loaded."""


class MissingMandatoryKeyError(ParseSyntaxError):
    """A key that a valid syntax definition needs is absent."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Missing mandatory key in YAML file: {key}")
        self.key = key


class RegexCompileError(ParseSyntaxError):
    """A regex of the syntax definition does not compile."""

    def __init__(self, regex_str: str, error: Exception) -> None:
        super().__init__(f"Error while compiling regex '{regex_str}': {error}")
        self.regex = regex_str
        self.error = error


class _Loader(yaml.SafeLoader):
    """Safe loader that only treats true/false spellings as booleans."""


_Loader.yaml_implicit_resolvers = {
    first: [(tag, rx) for tag, rx in resolvers if tag != _BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_Loader.add_implicit_resolver(
    _BOOL_TAG, re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"), list("tTfF")
)


def _type_mismatch() -> ParseSyntaxError:
    return ParseSyntaxError("Type mismatch")


def _is_kind(value: Any, kind: type) -> bool:
    if kind is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, kind)


def _require(mapping: dict, key: str, kind: type) -> Any:
    if key not in mapping:
        raise MissingMandatoryKeyError(key)
    value = mapping[key]
    if not _is_kind(value, kind):
        raise _type_mismatch()
    return value


def _optional(mapping: dict, key: str, kind: type) -> Any:
    value = mapping.get(key, _MISSING)
    if value is _MISSING or not _is_kind(value, kind):
        return None
    return value


def _build_scope(s: str) -> Scope:
    try:
        return SCOPE_REPO.build(s)
    except ParseScopeError as exc:
        raise ParseSyntaxError(f"Invalid scope: {exc}") from exc


def _str_to_scopes(s: str) -> list[Scope]:
    return [_build_scope(part) for part in s.split()]


class _SyntaxParser:
    def __init__(self, variables: dict[str, str], lines_include_newline: bool) -> None:
        self.variables = variables
        self.lines_include_newline = lines_include_newline
        self.contexts: dict[str, Context] = {}

    def parse_contexts(self, mapping: dict) -> None:
        for key, value in mapping.items():
            if isinstance(key, str) and isinstance(value, list):
                self.parse_context(value, key == "prototype", ContextNamer(key))

    def parse_context(self, items: list, is_prototype: bool, namer: ContextNamer) -> str:
        context = Context(meta_include_prototype=not is_prototype)
        name = namer.next_name()

        for item in items:
            if not isinstance(item, dict):
                raise _type_mismatch()
            is_special = False
            meta_scope = _optional(item, "meta_scope", str)
            if meta_scope is not None:
                context.meta_scope = _str_to_scopes(meta_scope)
                is_special = True
            meta_content_scope = _optional(item, "meta_content_scope", str)
            if meta_content_scope is not None:
                context.meta_content_scope = _str_to_scopes(meta_content_scope)
                is_special = True
            include_prototype = _optional(item, "meta_include_prototype", bool)
            if include_prototype is not None:
                context.meta_include_prototype = include_prototype
                is_special = True
            if _optional(item, "clear_scopes", bool) is True:
                context.clear_scopes = ClearAmount()
                is_special = True
            clear_count = _optional(item, "clear_scopes", int)
            if clear_count is not None:
                context.clear_scopes = ClearAmount(clear_count % (1 << 64))
                is_special = True
            if is_special:
                continue
            if "include" in item:
                reference = self.parse_reference(item["include"], namer, False)
                context.patterns.append(IncludePattern(reference))
            else:
                pattern = self.parse_match_pattern(item, namer)
                if pattern.has_captures:
                    context.uses_backrefs = True
                context.patterns.append(pattern)

        self.contexts[name] = context
        return name

    def parse_reference(self, y: Any, namer: ContextNamer, with_escape: bool) -> ContextReference:
        if isinstance(y, str):
            parts = y.split("#")
            sub_context = parts[1] if len(parts) > 1 else None
            target = parts[0]
            if target.startswith("scope:"):
                return ByScopeReference(_build_scope(target[6:]), sub_context, with_escape)
            if target.endswith(".sublime-syntax"):
                stem = PurePosixPath(target).stem
                if not stem:
                    raise ParseSyntaxError("Invalid file reference")
                return FileReference(stem, sub_context, with_escape)
            return NamedReference(target)
        if isinstance(y, list):
            return InlineReference(self.parse_context(y, False, namer))
        raise _type_mismatch()

    def parse_match_pattern(self, mapping: dict, namer: ContextNamer) -> MatchPattern:
        regex_str = self.parse_regex(_require(mapping, "match", str))

        scope_str = _optional(mapping, "scope", str)
        scope = _str_to_scopes(scope_str) if scope_str is not None else []

        captures_map = _optional(mapping, "captures", dict)
        captures = self.parse_captures(captures_map, regex_str) if captures_map is not None else None

        has_captures = False
        if "pop" in mapping:
            has_captures = _BACKREF.search(regex_str) is not None
            operation = MatchOperation(OperationKind.POP)
        elif "push" in mapping:
            operation = MatchOperation(OperationKind.PUSH, self.parse_pushargs(mapping["push"], namer))
        elif "set" in mapping:
            operation = MatchOperation(OperationKind.SET, self.parse_pushargs(mapping["set"], namer))
        elif "embed" in mapping:
            operation = self.parse_embed(mapping, namer)
        else:
            operation = MatchOperation(OperationKind.NONE)

        with_prototype: Optional[ContextReference] = None
        prototype_items = _optional(mapping, "with_prototype", list)
        if prototype_items is not None:
            with_prototype = InlineReference(self.parse_context(prototype_items, True, namer))
        elif "escape" in mapping:
            escape = mapping["escape"]
            if not isinstance(escape, str):
                raise _type_mismatch()
            subname = namer.next_name()
            context = Context(meta_include_prototype=False)
            pattern = self.parse_match_pattern({"match": f"(?={escape})", "pop": True}, namer)
            if pattern.has_captures:
                context.uses_backrefs = True
            context.patterns.append(pattern)
            self.contexts[subname] = context
            with_prototype = InlineReference(subname)

        return MatchPattern(
            regex=Regex(regex_str),
            scope=scope,
            captures=captures,
            operation=operation,
            with_prototype=with_prototype,
            has_captures=has_captures,
        )

    def parse_embed(self, mapping: dict, namer: ContextNamer) -> MatchOperation:
        """Translate an ``embed`` into the equivalent push of an escape context and the target."""
        if "escape" not in mapping:
            raise MissingMandatoryKeyError("escape")
        escape_items: list[dict] = [{"meta_include_prototype": False}]
        if "embed_scope" in mapping:
            escape_items.append({"meta_content_scope": mapping["embed_scope"]})
        escape_match: dict = {"match": mapping["escape"], "pop": True}
        if "escape_captures" in mapping:
            escape_match["captures"] = mapping["escape_captures"]
        escape_items.append(escape_match)
        escape_context = self.parse_context(escape_items, False, namer)
        target = self.parse_reference(mapping["embed"], namer, True)
        return MatchOperation(OperationKind.PUSH, [InlineReference(escape_context), target])

    def parse_pushargs(self, y: Any, namer: ContextNamer) -> list[ContextReference]:
        is_multiple = (
            isinstance(y, list)
            and bool(y)
            and (
                isinstance(y[0], str)
                or (isinstance(y[0], list) and bool(y[0]) and isinstance(y[0][0], dict))
            )
        )
        if is_multiple:
            return [self.parse_reference(x, namer, False) for x in y]
        return [self.parse_reference(y, namer, False)]

    def parse_regex(self, raw_regex: str) -> str:
        result = replace_posix_char_classes(resolve_variables(raw_regex, self.variables))
        if self.lines_include_newline:
            result = regex_for_newlines(result)
        else:
            result = regex_for_no_newlines(result)
        _try_compile_regex(result)
        return result

    def parse_captures(self, mapping: dict, regex_str: str) -> CaptureMapping:
        valid_indexes = set(get_consuming_capture_indexes(regex_str))
        captures: CaptureMapping = []
        for key, value in mapping.items():
            if _is_kind(key, int) and isinstance(value, str) and key in valid_indexes:
                captures.append((key, _str_to_scopes(value)))
        return captures

    def add_initial_contexts(self, top_level_scope: Scope) -> None:
        """Add the ``__start`` and ``__main`` contexts that emulate top-level behaviour."""
        # `__start` must not include the prototype, or the prototype could pop out of it.
        start_items = [{"meta_include_prototype": False}, {"match": "", "push": "__main"}]
        self.parse_context(start_items, False, ContextNamer("__start"))
        self.contexts["__start"].meta_content_scope = [top_level_scope]

        self.parse_context([{"include": "main"}], False, ContextNamer("__main"))
        main = self.contexts["main"]
        outer_main = self.contexts["__main"]
        outer_main.meta_include_prototype = main.meta_include_prototype
        outer_main.meta_scope = list(main.meta_scope)
        outer_main.meta_content_scope = list(main.meta_content_scope)

        # pushes of main from other syntaxes still add the file scope
        main.meta_content_scope.insert(0, top_level_scope)


def _try_compile_regex(regex_str: str) -> None:
    with_placeholders = substitute_backrefs_in_regex(regex_str, lambda i: f"<placeholder_{i}>")
    error = Regex.try_compile(with_placeholders)
    if error is not None:
        raise RegexCompileError(with_placeholders, error)


def load_syntax_from_str(
    s: str, lines_include_newline: bool = False, fallback_name: Optional[str] = None
) -> SyntaxDefinition:
    """Load a syntax definition from the text of a ``.sublime-syntax`` file.

    ``fallback_name`` is used when the YAML has no ``name`` key.
    Raises ``ParseSyntaxError`` on any problem.
    """
    try:
        docs = list(yaml.load_all(s, Loader=_Loader))
    except yaml.YAMLError as exc:
        raise ParseSyntaxError(f"Invalid YAML file syntax: {exc}") from exc
    if not docs:
        raise ParseSyntaxError("The file must contain at least one YAML document")
    doc = docs[0]
    if not isinstance(doc, dict):
        raise _type_mismatch()

    variables: dict[str, str] = {}
    variables_map = _optional(doc, "variables", dict)
    if variables_map is not None:
        variables = {
            key: value
            for key, value in variables_map.items()
            if isinstance(key, str) and isinstance(value, str)
        }

    contexts_map = _require(doc, "contexts", dict)
    top_level_scope = _build_scope(_require(doc, "scope", str))

    parser = _SyntaxParser(variables, lines_include_newline)
    parser.parse_contexts(contexts_map)
    if "main" not in parser.contexts:
        raise ParseSyntaxError("Context 'main' is missing")
    parser.add_initial_contexts(top_level_scope)

    file_extensions: list[str] = []
    for key in ("file_extensions", "hidden_file_extensions"):
        extensions = _optional(doc, key, list)
        if extensions is not None:
            file_extensions.extend(e for e in extensions if isinstance(e, str))

    name = _optional(doc, "name", str)
    if name is None:
        name = fallback_name if fallback_name is not None else "Unnamed"
    hidden = _optional(doc, "hidden", bool)

    return SyntaxDefinition(
        name=name,
        scope=top_level_scope,
        file_extensions=file_extensions,
        first_line_match=_optional(doc, "first_line_match", str),
        hidden=bool(hidden),
        variables=variables,
        contexts=parser.contexts,
    )