"""Exception hierarchy for cgroups-explorer.

Configuration-time failures (detection, pattern compilation, build
validation) are fatal and raised. Traversal-time conditions are not
exceptions; they are recorded as TraversalIssue diagnostics instead.
"""


class CgroupsExplorerError(Exception):
    """Base exception for all cgroups-explorer errors."""


class DetectionError(CgroupsExplorerError):
    """Raised when no cgroup v1 or v2 layout can be detected on the host."""


class PatternError(CgroupsExplorerError):
    """Raised when a pattern string fails to compile.

    Attributes:
        pattern: The offending pattern string.
        kind: Which list the pattern belongs to ("include" or "exclude").
        reason: Human-readable compilation failure.
    """

    def __init__(self, pattern: str, reason: str, kind: str | None = None) -> None:
        self.pattern = pattern
        self.reason = reason
        self.kind = kind
        where = f" in {kind} list" if kind else ""
        super().__init__(f"Invalid pattern {pattern!r}{where}: {reason}")


class BuildError(CgroupsExplorerError):
    """Raised when an ExplorerBuilder cannot produce an Explorer.

    Attributes:
        cause: The first underlying failure (a PatternError or OSError).
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class ConfigError(CgroupsExplorerError):
    """Base exception for configuration file errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file does not exist."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file cannot be parsed."""
