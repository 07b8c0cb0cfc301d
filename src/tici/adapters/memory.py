"""In-memory multiplexer gateway.

Holds a scripted topology, applies mutations to it, and records every call
in order. Failures can be injected per operation to exercise the restore
failure policy.
"""

from dataclasses import dataclass, field, replace

from ..errors import GatewayError
from .base import (
    GatewayCall,
    MultiplexerGateway,
    PaneInfo,
    SessionInfo,
    SplitSpec,
    WindowInfo,
    WindowRef,
)

MUTATING_OPS = frozenset({
    "create_session", "create_window", "create_pane", "rename_session",
    "rename_window", "apply_layout", "set_active", "send_command", "attach_session",
})


@dataclass
class _MemWindow:
    info: WindowInfo
    panes: list[PaneInfo] = field(default_factory=list)


@dataclass
class _MemSession:
    info: SessionInfo
    windows: list[_MemWindow] = field(default_factory=list)


@dataclass
class _Failure:
    reason: str
    nth: int | None
    seen: int = 0


class MemoryGateway(MultiplexerGateway):
    """Gateway backed by plain Python objects.

    Usage:
        gateway = MemoryGateway()
        gateway.script_session("proj", [
            (WindowInfo("@0", 0, "editor", True), [PaneInfo("%0", 0, True, "/home/u/proj", "vim")]),
        ])
        snapshot = await capture(gateway, key)
    """

    def __init__(self):
        self.calls: list[GatewayCall] = []
        self.sent: list[tuple[str, str]] = []
        self._sessions: dict[str, _MemSession] = {}
        self._current: str | None = None
        self._invoking_pane: str | None = None
        self._failures: dict[str, _Failure] = {}
        self._next_id = {"session": 0, "window": 0, "pane": 0}

    @property
    def name(self) -> str:
        return "memory"

    # 脚本化

    def script_session(
        self,
        name: str,
        windows: list[tuple[WindowInfo, list[PaneInfo]]],
        current: bool = True,
        invoking_pane: str | None = None,
    ) -> SessionInfo:
        """Install a live session.

        ``current`` binds it to this terminal; ``invoking_pane`` is the pane
        reported as the one tici runs in.
        """
        info = SessionInfo(session_id=self._new_id("session", "$"), name=name)
        self._sessions[name] = _MemSession(
            info=info,
            windows=[_MemWindow(info=w, panes=list(p)) for w, p in windows],
        )
        if current:
            self._current = name
            self._invoking_pane = invoking_pane
        return info

    def fail_on(self, op: str, reason: str = "rejected", nth: int | None = None) -> None:
        """Make ``op`` raise GatewayError, on every call or only the nth (1-based)."""
        self._failures[op] = _Failure(reason=reason, nth=nth)

    def mutations(self) -> list[GatewayCall]:
        return [c for c in self.calls if c.op in MUTATING_OPS]

    def ops(self) -> list[str]:
        return [c.op for c in self.calls]

    def windows_of(self, name: str) -> list[WindowInfo]:
        return [w.info for w in self._require_session(name).windows]

    def panes_of(self, window_id: str) -> list[PaneInfo]:
        return list(self._find_window(window_id).panes)

    # 内部

    def _new_id(self, kind: str, prefix: str) -> str:
        value = self._next_id[kind]
        self._next_id[kind] += 1
        return f"{prefix}{value}"

    def _record(self, op: str, *args) -> None:
        self.calls.append(GatewayCall(op=op, args=args))
        failure = self._failures.get(op)
        if failure is None:
            return
        failure.seen += 1
        if failure.nth is None or failure.nth == failure.seen:
            raise GatewayError(failure.reason, [op, *map(str, args)])

    def _lookup_session(self, target: str) -> _MemSession | None:
        name = target.lstrip("=")
        if name in self._sessions:
            return self._sessions[name]
        for session in self._sessions.values():
            if session.info.session_id == target:
                return session
        return None

    def _require_session(self, target: str) -> _MemSession:
        session = self._lookup_session(target)
        if session is None:
            raise GatewayError(f"can't find session: {target}")
        return session

    def _find_window(self, window_id: str) -> _MemWindow:
        for session in self._sessions.values():
            for window in session.windows:
                if window.info.window_id == window_id:
                    return window
        raise GatewayError(f"can't find window: {window_id}")

    def _find_pane(self, pane_id: str) -> tuple[_MemSession, _MemWindow, int]:
        for session in self._sessions.values():
            for window in session.windows:
                for i, pane in enumerate(window.panes):
                    if pane.pane_id == pane_id:
                        return session, window, i
        raise GatewayError(f"can't find pane: {pane_id}")

    def _append_window(self, session: _MemSession, directory: str) -> WindowRef:
        index = max((w.info.index for w in session.windows), default=-1) + 1
        window = WindowInfo(
            window_id=self._new_id("window", "@"), index=index, name="", active=not session.windows
        )
        pane = PaneInfo(pane_id=self._new_id("pane", "%"), index=0, active=True, directory=directory)
        session.windows.append(_MemWindow(info=window, panes=[pane]))
        return WindowRef(window_id=window.window_id, pane_id=pane.pane_id)

    # 查询

    async def current_session(self) -> SessionInfo | None:
        self._record("current_session")
        if self._current is None or self._current not in self._sessions:
            return None
        return replace(self._sessions[self._current].info, pane_id=self._invoking_pane)

    async def list_sessions(self) -> list[SessionInfo]:
        self._record("list_sessions")
        return [s.info for s in self._sessions.values()]

    async def has_session(self, name: str) -> bool:
        self._record("has_session", name)
        return self._lookup_session(name) is not None

    async def list_windows(self, session: str) -> list[WindowInfo]:
        self._record("list_windows", session)
        found = self._require_session(session)
        return sorted((w.info for w in found.windows), key=lambda w: w.index)

    async def list_panes(self, window_target: str) -> list[PaneInfo]:
        self._record("list_panes", window_target)
        return sorted(self._find_window(window_target).panes, key=lambda p: p.index)

    # 变更

    async def create_session(self, name: str, directory: str) -> WindowRef:
        self._record("create_session", name, directory)
        if name in self._sessions:
            raise GatewayError(f"duplicate session: {name}")
        session = _MemSession(info=SessionInfo(session_id=self._new_id("session", "$"), name=name))
        self._sessions[name] = session
        return self._append_window(session, directory)

    async def create_window(self, session: str, directory: str) -> WindowRef:
        self._record("create_window", session, directory)
        return self._append_window(self._require_session(session), directory)

    async def create_pane(self, pane_target: str, directory: str, split: SplitSpec) -> str:
        self._record("create_pane", pane_target, directory, split)
        _, window, _ = self._find_pane(pane_target)
        pane = PaneInfo(
            pane_id=self._new_id("pane", "%"),
            index=len(window.panes),
            active=False,
            directory=directory,
        )
        window.panes.append(pane)
        return pane.pane_id

    async def rename_session(self, session: str, name: str) -> None:
        self._record("rename_session", session, name)
        found = self._require_session(session)
        del self._sessions[found.info.name]
        found.info = replace(found.info, name=name)
        self._sessions[name] = found
        if self._current == session.lstrip("="):
            self._current = name

    async def rename_window(self, window_target: str, name: str) -> None:
        self._record("rename_window", window_target, name)
        window = self._find_window(window_target)
        window.info = replace(window.info, name=name)

    async def apply_layout(self, window_target: str, layout: str) -> None:
        self._record("apply_layout", window_target, layout)
        window = self._find_window(window_target)
        window.info = replace(window.info, layout=layout)

    async def set_active(self, target: str) -> None:
        self._record("set_active", target)
        if target.startswith("%"):
            _, window, position = self._find_pane(target)
            window.panes = [replace(p, active=(i == position)) for i, p in enumerate(window.panes)]
            return
        window = self._find_window(target)
        for session in self._sessions.values():
            if window in session.windows:
                for w in session.windows:
                    w.info = replace(w.info, active=(w is window))

    async def send_command(self, pane_target: str, text: str) -> None:
        self._record("send_command", pane_target, text)
        session, window, position = self._find_pane(pane_target)
        window.panes[position] = replace(window.panes[position], command=text.split()[0] if text else "")
        self.sent.append((pane_target, text))

    async def attach_session(self, name: str) -> None:
        self._record("attach_session", name)
        self._require_session(name)
        self._current = name.lstrip("=")
