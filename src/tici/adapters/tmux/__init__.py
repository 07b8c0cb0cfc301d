"""Tmux gateway for tici."""

from .adapter import TmuxGateway, exact_session
from .client import TmuxClient, inside_tmux

__all__ = ["TmuxGateway", "TmuxClient", "inside_tmux", "exact_session"]
