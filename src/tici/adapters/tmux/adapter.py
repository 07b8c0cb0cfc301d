"""Tmux gateway implementing the MultiplexerGateway interface."""

import os

from ...telemetry import get_logger
from ..base import (
    MultiplexerGateway,
    PaneInfo,
    SessionInfo,
    SplitDirection,
    SplitSpec,
    WindowInfo,
    WindowRef,
)
from .client import TmuxClient, inside_tmux

logger = get_logger(__name__)


def exact_session(session: str) -> str:
    """Exact-match target for a session name; IDs ("$1") pass through."""
    if session.startswith(("$", "=")):
        return session
    return f"={session}"


class TmuxGateway(MultiplexerGateway):
    """Tmux gateway.

    Wraps TmuxClient, converting its raw dicts into gateway DTOs and tmux
    target syntax into plain session names / window and pane IDs.
    """

    def __init__(self, client: TmuxClient | None = None, socket_path: str | None = None):
        """Initialize TmuxGateway.

        Args:
            client: Preconfigured client (tests inject mocks here).
            socket_path: Optional tmux socket path, used when client is None.
        """
        self._client = client or TmuxClient(socket_path=socket_path)

    @property
    def name(self) -> str:
        return "tmux"

    @property
    def client(self) -> TmuxClient:
        """Access underlying TmuxClient."""
        return self._client

    async def current_session(self) -> SessionInfo | None:
        """Session bound to this terminal, via $TMUX_PANE.

        The returned SessionInfo carries the pane tici itself runs in.

        Returns None outside tmux, even if a server is running elsewhere.
        """
        if not inside_tmux():
            return None
        info = await self._client.current_session(os.environ.get("TMUX_PANE"))
        if info is None:
            return None
        return SessionInfo(
            session_id=info["session_id"], name=info["session_name"], pane_id=info["pane_id"]
        )

    async def list_sessions(self) -> list[SessionInfo]:
        return [
            SessionInfo(session_id=s["session_id"], name=s["session_name"])
            for s in await self._client.list_sessions()
        ]

    async def has_session(self, name: str) -> bool:
        return await self._client.has_session(exact_session(name))

    async def list_windows(self, session: str) -> list[WindowInfo]:
        windows = [
            WindowInfo(
                window_id=w["window_id"],
                index=w["window_index"],
                name=w["window_name"],
                active=w["active"],
                layout=w["layout"],
                width=w["width"],
                height=w["height"],
            )
            for w in await self._client.list_windows(exact_session(session))
        ]
        return sorted(windows, key=lambda w: w.index)

    async def list_panes(self, window_target: str) -> list[PaneInfo]:
        panes = [
            PaneInfo(
                pane_id=p["pane_id"],
                index=p["pane_index"],
                active=p["active"],
                directory=p["path"],
                command=p["current_command"],
                left=p["x"],
                top=p["y"],
                width=p["width"],
                height=p["height"],
                title=p.get("title", ""),
            )
            for p in await self._client.list_panes(window_target)
        ]
        return sorted(panes, key=lambda p: p.index)

    async def create_session(self, name: str, directory: str) -> WindowRef:
        ref = await self._client.new_session(name, directory)
        logger.info(f"[Tmux] Created session {name} ({ref['window_id']})")
        return WindowRef(window_id=ref["window_id"], pane_id=ref["pane_id"])

    async def create_window(self, session: str, directory: str) -> WindowRef:
        # Trailing ":" makes tmux pick the next free index in that session
        ref = await self._client.new_window(f"{exact_session(session)}:", directory)
        return WindowRef(window_id=ref["window_id"], pane_id=ref["pane_id"])

    async def create_pane(self, pane_target: str, directory: str, split: SplitSpec) -> str:
        return await self._client.split_window(
            pane_target,
            directory,
            horizontal=split.direction == SplitDirection.HORIZONTAL,
            percent=split.percent,
        )

    async def rename_session(self, session: str, name: str) -> None:
        await self._client.rename_session(exact_session(session), name)

    async def rename_window(self, window_target: str, name: str) -> None:
        await self._client.rename_window(window_target, name)

    async def apply_layout(self, window_target: str, layout: str) -> None:
        await self._client.select_layout(window_target, layout)

    async def set_active(self, target: str) -> None:
        """Activate a pane ("%N") or a window ("@N" or any other target)."""
        if target.startswith("%"):
            await self._client.select_pane(target)
        else:
            await self._client.select_window(target)

    async def send_command(self, pane_target: str, text: str) -> None:
        await self._client.send_keys(pane_target, text)

    async def attach_session(self, name: str) -> None:
        target = exact_session(name)
        if inside_tmux():
            await self._client.switch_client(target)
        else:
            await self._client.attach_session(target)
