"""Capture the live session bound to this terminal as a TopologySnapshot."""

import os
from collections.abc import Callable
from datetime import datetime, timezone

from ..adapters.base import MultiplexerGateway, PaneInfo, WindowInfo
from ..config import IDLE_SHELLS
from ..core.keys import DirectoryKey
from ..errors import NoActiveSessionError
from ..telemetry import get_logger
from .layout import relative_geometry
from .models import Pane, Session, TopologySnapshot, Window

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_command(command: str, shell: str | None = None) -> str | None:
    """Map a pane's foreground command to what restore should re-run.

    Idle shells (and login shells such as "-zsh") map to None.

    Args:
        command: Foreground process name reported by the multiplexer
        shell: User shell, defaults to $SHELL
    """
    command = command.strip()
    if not command:
        return None
    name = os.path.basename(command.split()[0]).lstrip("-")
    shell = shell if shell is not None else os.environ.get("SHELL", "")
    if name in IDLE_SHELLS or (shell and name == os.path.basename(shell)):
        return None
    return command


def _pane_directory(pane: PaneInfo, fallback: str) -> str:
    path = pane.directory
    if os.path.isabs(path) and os.path.isdir(path):
        return path
    logger.warning(
        f"[Capture] Pane {pane.pane_id} directory {path!r} is not an existing absolute path, "
        f"using {fallback}"
    )
    return fallback


def _pick_active(flags: list[bool], indexes: list[int], what: str) -> int:
    active = [i for i, flag in zip(indexes, flags) if flag]
    chosen = active[0] if active else indexes[0]
    if len(active) != 1:
        logger.warning(f"[Capture] {what}: {len(active)} active entries reported, using {chosen}")
    return chosen


def _pane_command(pane: PaneInfo, own_pane: str | None) -> str | None:
    # The pane running tici reports tici itself; restore should leave a prompt there
    if own_pane is not None and pane.pane_id == own_pane:
        return None
    return normalize_command(pane.command)


def _build_window(
    window: WindowInfo, panes: list[PaneInfo], fallback_dir: str, own_pane: str | None
) -> Window:
    captured = tuple(
        Pane(
            index=p.index,
            directory=_pane_directory(p, fallback_dir),
            command=_pane_command(p, own_pane),
            geometry=relative_geometry(p, panes),
            title=p.title,
        )
        for p in panes
    )
    return Window(
        index=window.index,
        name=window.name,
        panes=captured,
        active_pane=_pick_active(
            [p.active for p in panes], [p.index for p in panes], f"window {window.index}"
        ),
        layout=window.layout,
    )


async def capture(
    gateway: MultiplexerGateway,
    key: DirectoryKey,
    clock: Callable[[], datetime] = _utcnow,
) -> TopologySnapshot:
    """Capture the current session's windows and panes.

    Windows and panes are visited in the gateway's index order. The session
    name comes from ``key`` so restores are deterministic per directory. The
    pane tici runs in is recorded without a command.

    Raises:
        NoActiveSessionError: No live session is bound to this terminal
        GatewayError: Any introspection call failed (nothing is saved)
    """
    live = await gateway.current_session()
    if live is None:
        raise NoActiveSessionError("not inside a multiplexer session; nothing to save")

    windows: list[Window] = []
    active_flags: list[bool] = []
    for info in sorted(await gateway.list_windows(live.session_id), key=lambda w: w.index):
        panes = sorted(await gateway.list_panes(info.window_id), key=lambda p: p.index)
        if not panes:
            logger.warning(f"[Capture] Window {info.index} ({info.name}) reported no panes, skipped")
            continue
        windows.append(_build_window(info, panes, key.path, live.pane_id))
        active_flags.append(info.active)

    if not windows:
        raise NoActiveSessionError(f"session {live.name} has no windows to capture")

    session = Session(
        name=key.session_name,
        windows=tuple(windows),
        active_window=_pick_active(active_flags, [w.index for w in windows], f"session {live.name}"),
    )
    snapshot = TopologySnapshot(session=session, directory=key.path, captured_at=clock())
    logger.info(
        f"[Capture] {live.name}: {len(windows)} windows, {snapshot.pane_count} panes for {key.path}"
    )
    return snapshot
