"""Core utilities - directory keys"""

from .keys import DirectoryKey, directory_key, resolve_directory

__all__ = ["DirectoryKey", "directory_key", "resolve_directory"]
