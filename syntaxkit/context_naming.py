"""Naming of anonymous contexts and expansion of ``{{variable}}`` references in regexes."""

from __future__ import annotations

from typing import Mapping

import regex

_VARIABLE = regex.compile(r"\{\{([A-Za-z0-9_]+)\}\}")


class ContextNamer:
    """Hands out context names: the base name first, then numbered anonymous names."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._anonymous_index: int | None = None

    def next_name(self) -> str:
        """Return the next name: ``name``, then ``#anon_<name>_0``, ``#anon_<name>_1``, ..."""
        if self._anonymous_index is None:
            result = self.name
            self._anonymous_index = 0
        else:
            result = f"#anon_{self.name}_{self._anonymous_index}"
            self._anonymous_index += 1
        return result


def resolve_variables(raw_regex: str, variables: Mapping[str, str]) -> str:
    """Replace every ``{{name}}`` in ``raw_regex`` with its variable, expanded recursively.

    Unknown variables expand to the empty string.
    """

    def expand(match: "regex.Match[str]") -> str:
        return resolve_variables(variables.get(match.group(1), ""), variables)

    return _VARIABLE.sub(expand, raw_regex)