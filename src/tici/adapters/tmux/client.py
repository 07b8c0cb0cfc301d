"""Tmux client for subprocess-based tmux interaction."""

import asyncio
import os

from ...config import TMUX_BIN, TMUX_TIMEOUT_SECONDS
from ...errors import GatewayError, GatewayTimeoutError
from ...telemetry import get_logger, metrics, truncate_cmd

logger = get_logger(__name__)

# Use tab as delimiter to avoid conflicts with colons in data (paths, names)
_FIELD_SEP = "\t"

_REF_FORMAT = _FIELD_SEP.join(["#{window_id}", "#{pane_id}"])


def _split_lines(output: str | None) -> list[list[str]]:
    if not output:
        return []
    return [line.split(_FIELD_SEP) for line in output.strip("\n").split("\n") if line]


class TmuxClient:
    """Client for interacting with tmux via subprocess commands.

    Every call is a single tmux invocation bounded by ``timeout`` seconds.
    Failures raise GatewayError; nothing is retried.
    """

    def __init__(
        self,
        socket_path: str | None = None,
        timeout: float = TMUX_TIMEOUT_SECONDS,
        binary: str = TMUX_BIN,
    ):
        """Initialize TmuxClient.

        Args:
            socket_path: Optional tmux socket path. If None, uses default socket.
            timeout: Per-call timeout in seconds.
            binary: tmux executable.
        """
        self._socket_path = socket_path
        self._timeout = timeout
        self._binary = binary

    def _command(self, args: tuple[str, ...]) -> list[str]:
        cmd = [self._binary]
        if self._socket_path:
            cmd.extend(["-S", self._socket_path])
        cmd.extend(args)
        return cmd

    async def run(self, *args: str, check: bool = True) -> str | None:
        """Execute a tmux command.

        Args:
            *args: Command arguments (e.g., "list-windows", "-t", "...")
            check: Raise on non-zero exit. If False, return None instead.

        Returns:
            Command stdout.

        Raises:
            GatewayTimeoutError: tmux did not answer within the timeout
            GatewayError: tmux is missing or rejected the command
        """
        cmd = self._command(args)
        op = args[0] if args else ""
        metrics.inc("gateway.call", {"op": op})
        logger.debug(f"[Tmux] {truncate_cmd(' '.join(cmd))}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            metrics.inc("gateway.error", {"op": op})
            raise GatewayError(f"cannot run {self._binary}: {e}", cmd) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), self._timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            metrics.inc("gateway.error", {"op": op})
            raise GatewayTimeoutError(f"tmux {op} timed out after {self._timeout}s", cmd) from e

        if proc.returncode != 0:
            if not check:
                return None
            reason = stderr.decode(errors="replace").strip() or f"exit status {proc.returncode}"
            metrics.inc("gateway.error", {"op": op})
            logger.warning(f"[Tmux] command failed: {' '.join(cmd)}: {reason}")
            raise GatewayError(reason, cmd)

        # Paths that are not valid UTF-8 survive as surrogate escapes
        return stdout.decode(errors="surrogateescape")

    async def current_session(self, pane: str | None = None) -> dict | None:
        """Get the session that owns ``pane`` (or the client's current pane).

        Returns:
            Dict with session_id, session_name and pane_id, or None if unavailable.
        """
        fmt = _FIELD_SEP.join(["#{session_id}", "#{session_name}", "#{pane_id}"])
        args = ["display-message", "-p"]
        if pane:
            args.extend(["-t", pane])
        args.append(fmt)
        rows = _split_lines(await self.run(*args, check=False))
        if not rows or len(rows[0]) < 3 or not rows[0][0]:
            return None
        return {"session_id": rows[0][0], "session_name": rows[0][1], "pane_id": rows[0][2]}

    async def list_sessions(self) -> list[dict]:
        """List all tmux sessions.

        Returns an empty list when no server is running.
        """
        fmt = _FIELD_SEP.join(["#{session_id}", "#{session_name}"])
        sessions = []
        for parts in _split_lines(await self.run("list-sessions", "-F", fmt, check=False)):
            if len(parts) >= 2:
                sessions.append({"session_id": parts[0], "session_name": parts[1]})
        return sessions

    async def has_session(self, target: str) -> bool:
        """Check whether a session exists."""
        return await self.run("has-session", "-t", target, check=False) is not None

    async def list_windows(self, target: str) -> list[dict]:
        """List windows of one session.

        Returns:
            List of window dicts with keys:
            - window_id: str (e.g., "@1")
            - window_index: int
            - window_name: str
            - active: bool
            - layout: str
            - width: int
            - height: int
        """
        fmt = _FIELD_SEP.join([
            "#{window_id}", "#{window_index}", "#{window_name}",
            "#{window_active}", "#{window_layout}",
            "#{window_width}", "#{window_height}",
        ])
        output = await self.run("list-windows", "-t", target, "-F", fmt)

        windows = []
        for parts in _split_lines(output):
            if len(parts) < 7:
                logger.warning(f"[Tmux] Unexpected window line: {parts!r}")
                continue
            try:
                windows.append({
                    "window_id": parts[0],
                    "window_index": int(parts[1]),
                    "window_name": parts[2],
                    "active": parts[3] == "1",
                    "layout": parts[4],
                    "width": int(parts[5]),
                    "height": int(parts[6]),
                })
            except ValueError as e:
                logger.warning(f"[Tmux] Failed to parse window line: {parts!r}: {e}")
        return windows

    async def list_panes(self, target: str) -> list[dict]:
        """List panes of one window.

        Returns:
            List of pane dicts with keys:
            - pane_id: str (e.g., "%0")
            - pane_index: int
            - active: bool
            - path: str
            - current_command: str
            - x, y, width, height: int (character cells)
            - title: str
        """
        fmt = _FIELD_SEP.join([
            "#{pane_id}", "#{pane_index}", "#{pane_active}",
            "#{pane_current_path}", "#{pane_current_command}",
            "#{pane_left}", "#{pane_top}", "#{pane_width}", "#{pane_height}",
            "#{pane_title}",
        ])
        output = await self.run("list-panes", "-t", target, "-F", fmt)

        panes = []
        for parts in _split_lines(output):
            if len(parts) < 9:
                logger.warning(f"[Tmux] Unexpected pane line: {parts!r}")
                continue
            try:
                panes.append({
                    "pane_id": parts[0],
                    "pane_index": int(parts[1]),
                    "active": parts[2] == "1",
                    "path": parts[3],
                    "current_command": parts[4],
                    "x": int(parts[5]),
                    "y": int(parts[6]),
                    "width": int(parts[7]),
                    "height": int(parts[8]),
                    # Titles may contain the separator; keep the remainder intact
                    "title": _FIELD_SEP.join(parts[9:]),
                })
            except ValueError as e:
                logger.warning(f"[Tmux] Failed to parse pane line: {parts!r}: {e}")
        return panes

    async def _new_ref(self, *args: str) -> dict:
        rows = _split_lines(await self.run(*args, "-P", "-F", _REF_FORMAT))
        if not rows or len(rows[0]) < 2:
            raise GatewayError(f"tmux {args[0]} did not report the new window")
        return {"window_id": rows[0][0], "pane_id": rows[0][1]}

    async def new_session(self, name: str, directory: str) -> dict:
        """Create a detached session; returns its first window_id/pane_id."""
        return await self._new_ref("new-session", "-d", "-s", name, "-c", directory)

    async def new_window(self, target: str, directory: str) -> dict:
        """Append a window to a session; returns window_id/pane_id."""
        return await self._new_ref("new-window", "-d", "-t", target, "-c", directory)

    async def split_window(
        self, target: str, directory: str, horizontal: bool, percent: int
    ) -> str:
        """Split a pane; returns the new pane's ID."""
        output = await self.run(
            "split-window", "-d", "-t", target,
            "-h" if horizontal else "-v",
            "-l", f"{percent}%",
            "-c", directory,
            "-P", "-F", "#{pane_id}",
        )
        pane_id = (output or "").strip()
        if not pane_id:
            raise GatewayError("tmux split-window did not report the new pane")
        return pane_id

    async def rename_session(self, target: str, name: str) -> None:
        await self.run("rename-session", "-t", target, name)

    async def rename_window(self, target: str, name: str) -> None:
        await self.run("rename-window", "-t", target, name)

    async def select_layout(self, target: str, layout: str) -> None:
        await self.run("select-layout", "-t", target, layout)

    async def select_window(self, target: str) -> None:
        await self.run("select-window", "-t", target)

    async def select_pane(self, target: str) -> None:
        await self.run("select-pane", "-t", target)

    async def send_keys(self, target: str, text: str, enter: bool = True) -> None:
        """Type ``text`` literally into a pane, optionally followed by Enter."""
        await self.run("send-keys", "-t", target, "-l", text)
        if enter:
            await self.run("send-keys", "-t", target, "Enter")

    async def switch_client(self, target: str) -> None:
        await self.run("switch-client", "-t", target)

    async def attach_session(self, target: str) -> None:
        """Attach the controlling terminal to a session.

        Runs with inherited stdio and no timeout, since attach only returns
        when the user detaches.
        """
        cmd = self._command(("attach-session", "-t", target))
        try:
            proc = await asyncio.create_subprocess_exec(*cmd)
        except OSError as e:
            raise GatewayError(f"cannot run {self._binary}: {e}", cmd) from e
        returncode = await proc.wait()
        if returncode != 0:
            raise GatewayError(f"attach-session exited with status {returncode}", cmd)


def inside_tmux() -> bool:
    """True when running inside a tmux client."""
    return bool(os.environ.get("TMUX"))
