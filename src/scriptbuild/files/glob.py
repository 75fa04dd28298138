"""Glob pattern compilation.

A Glob is a set of wildcard patterns that matches a path if ANY of its
patterns matches. Patterns are translated to anchored regular expressions
once, at compile time, so malformed patterns fail before any matching.

Syntax:
    *       any run of characters within one path segment
    **      any run of characters across segments; "**/" also matches no
            directory at all, so "**/*.txt" matches "A.txt"
    ?       exactly one character other than "/"
    [abc]   one character from the class ("[a-z]" ranges, "[!abc]" negation);
            a class never matches "/"
    {a,b}   one of the comma-separated alternatives (not nestable)
    \\x     the literal character x

There is no negation operator for a whole pattern; exclusion is expressed by
passing a separate list of exclude globs to the resolver.
"""

import re
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Iterable, Union


class PatternError(ValueError):
    """Raised when a glob pattern is malformed."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid glob pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


def _translate_class(pattern: str, start: int) -> tuple[str, int]:
    """Translate the bracket expression starting at pattern[start] == "[".

    Returns the regex fragment and the index just past the closing "]".
    """
    i = start + 1
    negate = i < len(pattern) and pattern[i] in "!^"
    if negate:
        i += 1
    parts: list[str] = []
    first = True
    while i < len(pattern):
        c = pattern[i]
        if c == "]" and not first:
            break
        first = False
        if c == "\\":
            i += 1
            if i >= len(pattern):
                raise PatternError(pattern, "dangling escape in character class")
            parts.append(re.escape(pattern[i]))
        elif c == "-" and parts and i + 1 < len(pattern) and pattern[i + 1] != "]":
            parts.append("-")
        elif c == "/":
            raise PatternError(pattern, "'/' is not allowed in a character class")
        else:
            parts.append(re.escape(c))
        i += 1
    else:
        raise PatternError(pattern, "missing ']'")

    body = "".join(parts)
    if negate:
        return f"[^/{body}]", i + 1
    return f"[{body}]", i + 1


def translate(pattern: str) -> str:
    """Translate one glob pattern to a regular expression (without anchors)."""
    if not pattern:
        raise PatternError(pattern, "empty pattern")

    out: list[str] = []
    in_group = False
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            j = i
            while j < n and pattern[j] == "*":
                j += 1
            if j - i >= 2:
                if j < n and pattern[j] == "/":
                    # "**/" spans zero or more whole directories
                    out.append("(?:.*/)?")
                    j += 1
                else:
                    out.append(".*")
            else:
                out.append("[^/]*")
            i = j
            continue
        if c == "?":
            out.append("[^/]")
        elif c == "[":
            fragment, i = _translate_class(pattern, i)
            out.append(fragment)
            continue
        elif c == "{":
            if in_group:
                raise PatternError(pattern, "nested '{' is not supported")
            in_group = True
            out.append("(?:")
        elif c == "}" and in_group:
            in_group = False
            out.append(")")
        elif c == "," and in_group:
            out.append("|")
        elif c == "\\":
            i += 1
            if i >= n:
                raise PatternError(pattern, "dangling escape")
            out.append(re.escape(pattern[i]))
        else:
            out.append(re.escape(c))
        i += 1

    if in_group:
        raise PatternError(pattern, "missing '}'")
    return "".join(out)


def _normalize(path: Union[str, PurePath]) -> str:
    return str(path).replace("\\", "/")


@dataclass(frozen=True)
class Glob:
    """Immutable compiled set of glob patterns with OR semantics.

    Attributes:
        patterns: Source patterns, in the order they were given
    """

    patterns: tuple[str, ...]
    _matchers: tuple["re.Pattern[str]", ...] = field(default=(), repr=False, compare=False)

    @classmethod
    def of(cls, *patterns: str) -> "Glob":
        return compile_globs(patterns)

    def matches(self, path: Union[str, PurePath]) -> bool:
        """True if at least one pattern matches the whole of ``path``."""
        candidate = _normalize(path)
        return any(m.fullmatch(candidate) for m in self._matchers)

    def __str__(self) -> str:
        return ", ".join(self.patterns)


def _compile(pattern: str) -> "re.Pattern[str]":
    try:
        return re.compile(translate(pattern), re.DOTALL)
    except re.error as e:
        # e.g. a reversed range such as "[z-a]"
        raise PatternError(pattern, e.msg) from e


def compile_globs(patterns: Iterable[str]) -> Glob:
    """Compile glob patterns into a Glob.

    Args:
        patterns: Glob patterns; an empty collection yields a Glob that matches nothing

    Returns:
        Compiled Glob

    Raises:
        PatternError: If any pattern is malformed
    """
    if isinstance(patterns, str):
        patterns = [patterns]
    source = tuple(patterns)
    matchers = tuple(_compile(p) for p in source)
    return Glob(patterns=source, _matchers=matchers)
