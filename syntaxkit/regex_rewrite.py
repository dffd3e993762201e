"""Rewrites applied to syntax regexes so they behave as the syntax files expect."""

from __future__ import annotations

from .regex_scanner import RegexScanner

_POSIX_CLASSES = (
    ("[:alpha:]", r"\p{L}"),
    ("[:alnum:]", r"\p{L}\p{N}"),
    ("[:lower:]", r"\p{Ll}"),
    ("[:upper:]", r"\p{Lu}"),
    ("[:digit:]", r"\p{Nd}"),
)


def replace_posix_char_classes(regex: str) -> str:
    """Turn POSIX character classes into Unicode property classes.

    Syntax files expect classes such as ``[:alpha:]`` to match non-ASCII
    characters as well.
    """
    for posix, unicode_class in _POSIX_CLASSES:
        regex = regex.replace(posix, unicode_class)
    return regex


def regex_for_newlines(regex: str) -> str:
    """Make every ``$`` outside a character class match at the end of a line.

    Lines passed in keep their trailing newline, so a bare ``$`` (end of
    text) would match after it rather than before it.
    """
    if "$" not in regex:
        return regex

    scanner = RegexScanner(regex)
    out: list[str] = []
    while (c := scanner.peek()) is not None:
        if c == "$":
            scanner.advance()
            out.append("(?m:$)")
        elif c == "\\":
            scanner.advance()
            out.append(c)
            c2 = scanner.peek()
            if c2 is not None:
                scanner.advance()
                out.append(c2)
        elif c == "[":
            content, _ = scanner.parse_character_class()
            out.append(content)
        else:
            scanner.advance()
            out.append(c)
    return "".join(out)


def regex_for_no_newlines(regex: str) -> str:
    """Rewrite a regex matching ``\\n`` into one matching end of line instead.

    This lets regexes written for lines with a trailing newline work on lines
    without one. It is an approximation: ``$`` is an anchor while ``\\n``
    consumes a character.
    """
    if r"\n" not in regex:
        return regex

    # A pattern the character-level rewrite cannot handle on its own.
    regex = regex.replace("(?:\\n)?", "(?:$|)")

    scanner = RegexScanner(regex)
    out: list[str] = []
    while (c := scanner.peek()) is not None:
        if c == "\\":
            scanner.advance()
            c2 = scanner.peek()
            if c2 is None:
                out.append(c)
                continue
            scanner.advance()
            # `$?`, `$+` and `$*` would not compile, so keep repeated `\n` as is
            c3 = scanner.peek()
            if c2 == "n" and c3 not in ("?", "+", "*"):
                out.append("$")
            else:
                out.append(c)
                out.append(c2)
        elif c == "[":
            content, matches_newline = scanner.parse_character_class()
            if matches_newline and scanner.peek() != "?":
                out.append(f"(?:{content}|$)")
            else:
                out.append(content)
        else:
            scanner.advance()
            out.append(c)
    return "".join(out)