"""Include/exclude pattern compilation and matching.

Patterns are compiled once, when an Explorer is built, into regular
expressions evaluated against forward-slash relative cgroup paths.

Glob dialect:
    *       any run of characters within one path segment
    ?       exactly one character within one path segment
    [abc]   character class, [!abc] negated class
    **      as a whole segment, any number of segments (including none)

Regex dialect:
    A Python regular expression searched against the full relative path.
    Anchor it with ^ and $ to require a full match.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from cgroups_explorer.core.errors import PatternError


class PatternSyntax(str, Enum):
    """Syntax used to interpret pattern strings.

    Attributes:
        GLOB: Shell-style glob with ``**`` support (default).
        REGEX: Python regular expression.
    """

    GLOB = "glob"
    REGEX = "regex"


def _translate_class(pattern: str, start: int) -> tuple[str, int]:
    """Translate a ``[...]`` class starting at ``pattern[start] == "["``.

    Returns:
        Tuple of (regex fragment, index just past the closing bracket).

    Raises:
        ValueError: If the class is not terminated.
    """
    i = start + 1
    negate = False
    if i < len(pattern) and pattern[i] in "!^":
        negate = True
        i += 1
    # A ']' right after the opening bracket is a literal member
    if i < len(pattern) and pattern[i] == "]":
        i += 1
    end = pattern.find("]", i)
    if end == -1:
        msg = f"unterminated character class at position {start}"
        raise ValueError(msg)

    body = pattern[start + 1 + (1 if negate else 0) : end]
    if "/" in body:
        msg = f"character class at position {start} cannot match '/'"
        raise ValueError(msg)
    escaped = body.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")
    if escaped.startswith(("^", "-")):
        escaped = "\\" + escaped
    if negate:
        return f"[^/{escaped}]", end + 1
    return f"[{escaped}]", end + 1


def glob_to_regex(pattern: str) -> str:
    """Translate a glob pattern into an anchored regular expression.

    Args:
        pattern: Glob pattern using ``/`` as the segment separator.

    Returns:
        Regular expression source matching the whole relative path.

    Raises:
        ValueError: If the glob is malformed.
    """
    parts: list[str] = []
    segments = pattern.split("/")
    last = len(segments) - 1

    for index, segment in enumerate(segments):
        if segment == "**":
            if index == last:
                parts.append(".*")
            else:
                # Matches zero or more whole segments, each followed by '/'
                parts.append("(?:[^/]*/)*")
            continue
        if "**" in segment:
            msg = f"'**' must be a whole path segment, got {segment!r}"
            raise ValueError(msg)

        i = 0
        while i < len(segment):
            char = segment[i]
            if char == "*":
                parts.append("[^/]*")
                i += 1
            elif char == "?":
                parts.append("[^/]")
                i += 1
            elif char == "[":
                fragment, i = _translate_class(segment, i)
                parts.append(fragment)
            else:
                parts.append(re.escape(char))
                i += 1

        if index != last:
            parts.append("/")

    return "(?s:" + "".join(parts) + r")\Z"


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """A pattern string together with its compiled matcher.

    Attributes:
        source: Pattern string as given by the caller.
        syntax: Syntax the pattern was compiled with.
        regex: Compiled regular expression.
    """

    source: str
    syntax: PatternSyntax
    regex: re.Pattern[str]

    def matches(self, path: str) -> bool:
        """Check a forward-slash relative path against this pattern."""
        if self.syntax == PatternSyntax.GLOB:
            return self.regex.match(path) is not None
        return self.regex.search(path) is not None


def compile_pattern(
    pattern: str,
    syntax: PatternSyntax = PatternSyntax.GLOB,
    kind: str | None = None,
) -> CompiledPattern:
    """Compile a single pattern string.

    Args:
        pattern: Pattern string.
        syntax: Glob or regex.
        kind: List the pattern belongs to ("include"/"exclude"), used in errors.

    Returns:
        The compiled pattern.

    Raises:
        PatternError: If the pattern is empty or syntactically invalid.
    """
    if not pattern:
        raise PatternError(pattern, "pattern cannot be empty", kind)

    try:
        if syntax == PatternSyntax.GLOB:
            regex = re.compile(glob_to_regex(pattern))
        else:
            regex = re.compile(pattern)
    except (ValueError, re.error) as e:
        raise PatternError(pattern, str(e), kind) from e

    return CompiledPattern(source=pattern, syntax=syntax, regex=regex)


@dataclass(frozen=True, slots=True)
class PatternSet:
    """Compiled include and exclude patterns.

    A path matches the set when it matches any include (or the include
    list is empty) and matches no exclude. Excludes always win.

    Attributes:
        includes: Compiled include patterns, in the order they were added.
        excludes: Compiled exclude patterns, in the order they were added.
        syntax: Syntax shared by every pattern in the set.
    """

    includes: tuple[CompiledPattern, ...] = ()
    excludes: tuple[CompiledPattern, ...] = ()
    syntax: PatternSyntax = PatternSyntax.GLOB

    @classmethod
    def compile(
        cls,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
        syntax: PatternSyntax = PatternSyntax.GLOB,
    ) -> "PatternSet":
        """Compile include and exclude pattern strings into a PatternSet.

        Raises:
            PatternError: On the first pattern that fails to compile.
        """
        return cls(
            includes=tuple(compile_pattern(p, syntax, "include") for p in include),
            excludes=tuple(compile_pattern(p, syntax, "exclude") for p in exclude),
            syntax=syntax,
        )

    def is_included(self, path: str) -> bool:
        """Check the include list; an empty list includes everything."""
        if not self.includes:
            return True
        return any(p.matches(path) for p in self.includes)

    def is_excluded(self, path: str) -> bool:
        """Check whether any exclude pattern matches."""
        return any(p.matches(path) for p in self.excludes)

    def matches(self, path: str) -> bool:
        """Check whether a relative path passes the set."""
        if self.is_excluded(path):
            return False
        return self.is_included(path)
