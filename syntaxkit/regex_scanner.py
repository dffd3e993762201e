"""A small character scanner for regex source text, and capture group analysis built on it."""

from __future__ import annotations

from typing import Optional


class RegexScanner:
    """Walks over a regex pattern one character at a time."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._index = 0

    def peek(self) -> Optional[str]:
        """Return the current character, or None at the end of the text."""
        if self._index < len(self._text):
            return self._text[self._index]
        return None

    def advance(self) -> None:
        """Move past the current character."""
        self._index += 1

    def parse_character_class(self) -> tuple[str, bool]:
        """Consume a ``[...]`` class starting at the current ``[``.

        Returns the class text and whether it explicitly matches a newline
        (an un-negated, un-nested ``\\n``).
        """
        content = ["["]
        negated = False
        nesting = 0
        matches_newline = False

        self.advance()
        if self.peek() == "^":
            self.advance()
            content.append("^")
            negated = True

        # An unescaped `]` right after `[` or `[^` is a literal, not the end of the class.
        if self.peek() == "]":
            self.advance()
            content.append("]")

        while (c := self.peek()) is not None:
            self.advance()
            content.append(c)
            if c == "\\":
                c2 = self.peek()
                if c2 is not None:
                    self.advance()
                    if c2 == "n" and not negated and nesting == 0:
                        matches_newline = True
                    content.append(c2)
            elif c == "[":
                nesting += 1
            elif c == "]":
                if nesting == 0:
                    break
                nesting -= 1

        return "".join(content), matches_newline


def get_consuming_capture_indexes(regex: str) -> list[int]:
    """Return the numbers of capture groups not inside a lookaround, always including 0."""
    scanner = RegexScanner(regex)
    result = [0]
    stack = [False]
    cap_num = 0
    in_lookaround = False

    while (c := scanner.peek()) is not None:
        if c == "\\":
            scanner.advance()
            scanner.advance()
        elif c == "[":
            scanner.parse_character_class()
        elif c == "(":
            scanner.advance()
            # remember the enclosing state so a closing paren can restore it
            stack.append(in_lookaround)
            c2 = scanner.peek()
            if c2 is None:
                continue
            if c2 != "?":
                cap_num += 1
                if not in_lookaround:
                    result.append(cap_num)
                continue
            scanner.advance()
            c3 = scanner.peek()
            if c3 is None:
                continue
            scanner.advance()
            if c3 in ("=", "!"):
                in_lookaround = True
            elif c3 == "<":
                if scanner.peek() in ("=", "!"):
                    scanner.advance()
                    in_lookaround = True
            elif c3 == "P":
                if scanner.peek() == "<":
                    cap_num += 1
                    if not in_lookaround:
                        result.append(cap_num)
        elif c == ")":
            if stack:
                in_lookaround = stack.pop()
            scanner.advance()
        else:
            scanner.advance()
    return result