"""tici - save and restore tmux session layouts per working directory."""

__version__ = "0.1.0"
