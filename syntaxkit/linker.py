"""Linking: turning syntax definitions into syntaxes whose references point directly at contexts."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterable, Optional

from .syntax_definition import (
    ByScopeReference,
    Context,
    ContextId,
    ContextReference,
    DirectReference,
    FileReference,
    IncludePattern,
    InlineReference,
    MatchOperation,
    MatchPattern,
    NamedReference,
    OperationKind,
    Pattern,
    SyntaxDefinition,
)
from .syntax_reference import LazyContexts, SyntaxReference

_STACK_OPERATIONS = (OperationKind.PUSH, OperationKind.SET)


def _copy_pattern(pattern: Pattern) -> Pattern:
    if isinstance(pattern, IncludePattern):
        return IncludePattern(pattern.reference)
    return replace(
        pattern,
        scope=list(pattern.scope),
        captures=None if pattern.captures is None else [(i, list(s)) for i, s in pattern.captures],
        operation=MatchOperation(pattern.operation.kind, list(pattern.operation.contexts)),
    )


def _copy_context(context: Context) -> Context:
    return replace(
        context,
        meta_scope=list(context.meta_scope),
        meta_content_scope=list(context.meta_content_scope),
        patterns=[_copy_pattern(p) for p in context.patterns],
    )


class _Linker:
    def __init__(self, definitions: list[SyntaxDefinition]) -> None:
        self.syntaxes: list[SyntaxReference] = []
        self.all_ids: list[dict[str, ContextId]] = []
        self.all_contexts: list[list[Context]] = []
        for syntax_index, definition in enumerate(definitions):
            ids: dict[str, ContextId] = {}
            contexts: list[Context] = []
            # sorted by name so the resulting order is deterministic
            for name in sorted(definition.contexts):
                ids[name] = ContextId(syntax_index, len(contexts))
                contexts.append(_copy_context(definition.contexts[name]))
            self.all_ids.append(ids)
            self.all_contexts.append(contexts)
            self.syntaxes.append(
                SyntaxReference(
                    name=definition.name,
                    scope=definition.scope,
                    file_extensions=list(definition.file_extensions),
                    first_line_match=definition.first_line_match,
                    hidden=definition.hidden,
                    variables=dict(definition.variables),
                )
            )

    def context(self, context_id: ContextId) -> Context:
        return self.all_contexts[context_id.syntax_index][context_id.context_index]

    def link(self) -> list[SyntaxReference]:
        for syntax_index, ids in enumerate(self.all_ids):
            prototype = ids.get("prototype")
            no_prototype = self._mark_no_prototype(syntax_index, prototype) if prototype else set()
            for context_id in ids.values():
                context = self.context(context_id)
                if (
                    prototype is not None
                    and context.meta_include_prototype
                    and context_id not in no_prototype
                ):
                    context.prototype = prototype
                self._link_context(context, syntax_index)

        self._propagate_backrefs()

        for syntax, ids, contexts in zip(self.syntaxes, self.all_ids, self.all_contexts):
            syntax.lazy_contexts = LazyContexts(context_ids=ids, contexts=contexts)
        return self.syntaxes

    def _mark_no_prototype(self, syntax_index: int, start: ContextId) -> set[ContextId]:
        """Everything reachable from the prototype must not itself get the prototype."""
        ids = self.all_ids[syntax_index]
        marked: set[ContextId] = set()
        pending = [start]
        while pending:
            context_id = pending.pop()
            if context_id in marked:
                continue
            marked.add(context_id)
            for pattern in self.context(context_id).patterns:
                if isinstance(pattern, MatchPattern):
                    if pattern.operation.kind not in _STACK_OPERATIONS:
                        continue
                    for ref in pattern.operation.contexts:
                        if isinstance(ref, (InlineReference, NamedReference)):
                            found = ids.get(ref.name)
                            if found is not None:
                                pending.append(found)
                        elif isinstance(ref, DirectReference):
                            pending.append(ref.context_id)
                else:
                    ref = pattern.reference
                    if isinstance(ref, NamedReference):
                        found = ids.get(ref.name)
                        if found is not None:
                            pending.append(found)
                    elif isinstance(ref, DirectReference):
                        pending.append(ref.context_id)
        return marked

    def _propagate_backrefs(self) -> None:
        changed = True
        while changed:
            changed = False
            for contexts in self.all_contexts:
                for context in contexts:
                    if context.uses_backrefs:
                        continue
                    if any(
                        isinstance(p, IncludePattern)
                        and isinstance(p.reference, DirectReference)
                        and self.context(p.reference.context_id).uses_backrefs
                        for p in context.patterns
                    ):
                        context.uses_backrefs = True
                        changed = True

    def _link_context(self, context: Context, syntax_index: int) -> None:
        for pattern in context.patterns:
            if isinstance(pattern, MatchPattern):
                operation = pattern.operation
                if operation.kind in _STACK_OPERATIONS:
                    operation.contexts = [
                        self._link_ref(ref, syntax_index) for ref in operation.contexts
                    ]
                if pattern.with_prototype is not None:
                    pattern.with_prototype = self._link_ref(pattern.with_prototype, syntax_index)
            else:
                pattern.reference = self._link_ref(pattern.reference, syntax_index)

    def _link_ref(self, ref: ContextReference, syntax_index: int) -> ContextReference:
        found: Optional[ContextId] = None
        if isinstance(ref, (NamedReference, InlineReference)):
            # approximation of the deprecated top-level main reference
            name = "main" if ref.name == "$top_level_main" else ref.name
            found = self.all_ids[syntax_index].get(name)
        elif isinstance(ref, ByScopeReference):
            found = self._with_plain_text_fallback(
                ref.with_escape,
                self._find_id(ref.sub_context, lambda s: s.scope == ref.scope),
            )
        elif isinstance(ref, FileReference):
            found = self._with_plain_text_fallback(
                ref.with_escape,
                self._find_id(ref.sub_context, lambda s: s.name == ref.name),
            )
        return ref if found is None else DirectReference(found)

    def _with_plain_text_fallback(
        self, with_escape: bool, context_id: Optional[ContextId]
    ) -> Optional[ContextId]:
        if context_id is not None or not with_escape:
            return context_id
        # an embed always has an escape, so plain text is a safe stand-in
        return self._find_id(None, lambda s: s.name == "Plain Text")

    def _find_id(
        self,
        sub_context: Optional[str],
        predicate: Callable[[SyntaxReference], bool],
    ) -> Optional[ContextId]:
        context_name = "main" if sub_context is None else sub_context
        for syntax_index in reversed(range(len(self.syntaxes))):
            if predicate(self.syntaxes[syntax_index]):
                return self.all_ids[syntax_index].get(context_name)
        return None


def link_syntaxes(definitions: Iterable[SyntaxDefinition]) -> list[SyntaxReference]:
    """Link definitions into syntaxes whose resolvable references are direct.

    The definitions are left unchanged; their contexts are copied before linking.
    """
    return _Linker(list(definitions)).link()