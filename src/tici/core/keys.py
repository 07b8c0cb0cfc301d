"""Directory keys

Maps an absolute working directory to the identifiers tici uses for it:
- digest: first 16 hex chars of sha256(path)
- label: basename reduced to [A-Za-z0-9_-]
- record_name: "session_<digest>_<label>", the persisted record's name
- session_name: "<label>-<digest[:6]>", tmux session name used on restore

The digest carries the uniqueness; the label only makes records readable,
since many directories share a basename.
"""

import hashlib
import os
import re
from dataclasses import dataclass

from ..errors import InvalidPathError

DIGEST_LENGTH = 16
SESSION_SUFFIX_LENGTH = 6

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9_-]")


@dataclass(frozen=True)
class DirectoryKey:
    """Stable identifier derived from an absolute directory path."""

    path: str
    digest: str
    label: str

    @property
    def record_name(self) -> str:
        return f"session_{self.digest}_{self.label}"

    @property
    def session_name(self) -> str:
        # Suffix keeps same-named directories in separate sessions
        return f"{self.label}-{self.digest[:SESSION_SUFFIX_LENGTH]}"

    def __str__(self) -> str:
        return self.record_name


def _sanitize_label(path: str) -> str:
    base = os.path.basename(path)
    if not base:
        return "root"
    return _UNSAFE_CHARS_RE.sub("_", base)


def directory_key(path: str) -> DirectoryKey:
    """Derive the key for an absolute, normalized directory path.

    Args:
        path: Absolute path such as "/home/u/proj"

    Returns:
        DirectoryKey for the path

    Raises:
        InvalidPathError: If the path is empty, relative or not normalized
    """
    if not isinstance(path, str) or not path:
        raise InvalidPathError(str(path), "empty path")
    if not os.path.isabs(path):
        raise InvalidPathError(path, "path is not absolute")
    # normpath keeps a leading "//" on POSIX, which is still not canonical
    if os.path.normpath(path) != path or path.startswith("//"):
        raise InvalidPathError(path, "path is not normalized")

    digest = hashlib.sha256(os.fsencode(path)).hexdigest()[:DIGEST_LENGTH]
    return DirectoryKey(path=path, digest=digest, label=_sanitize_label(path))


def resolve_directory(override: str | None = None, cwd: str | None = None) -> str:
    """Resolve the directory a command operates on.

    Relative overrides are taken relative to ``cwd``. The result is
    canonicalised (symlinks resolved) so the same directory always yields
    the same key.

    Raises:
        InvalidPathError: If the resolved path is not an existing directory
    """
    base = cwd if cwd is not None else os.getcwd()
    target = base if override is None else os.path.join(base, os.path.expanduser(override))
    resolved = os.path.realpath(target)
    if not os.path.isdir(resolved):
        raise InvalidPathError(resolved, "directory does not exist")
    return resolved
