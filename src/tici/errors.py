"""Error taxonomy shared by every tici component."""


class TiciError(Exception):
    """Base class for all tici errors."""


class InvalidPathError(TiciError):
    """A directory path is not absolute, normalized, or resolvable."""

    def __init__(self, path: str, reason: str = "not an absolute, normalized path"):
        self.path = path
        self.reason = reason
        super().__init__(f"{path!r}: {reason}")


class NoActiveSessionError(TiciError):
    """Save was requested but no live multiplexer session is bound to this terminal."""


class NotFoundError(TiciError):
    """No saved record exists for the requested directory."""

    def __init__(self, directory: str, path: str | None = None):
        self.directory = directory
        self.path = path
        super().__init__(f"No saved session found for {directory}")


class PersistenceError(TiciError):
    """Reading or writing a persisted record failed."""


class GatewayError(TiciError):
    """The multiplexer was unreachable or rejected an operation.

    Attributes:
        reason: Human readable reason (usually tmux's stderr)
        command: argv of the failed invocation, if any
    """

    def __init__(self, reason: str, command: list[str] | None = None):
        self.reason = reason
        self.command = command or []
        super().__init__(reason)


class GatewayTimeoutError(GatewayError):
    """A multiplexer call did not finish within the per-call timeout."""


class SnapshotError(TiciError, ValueError):
    """A snapshot violates a structural invariant (empty window, two active panes, ...)."""


class MissingDirectoryError(TiciError):
    """A pane directory recorded at capture time no longer exists at restore time."""

    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(f"directory no longer exists: {directory}")
