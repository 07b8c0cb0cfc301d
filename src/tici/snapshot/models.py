"""Snapshot 数据模型

捕获结果的不可变值类型：Pane / Window / Session / TopologySnapshot。
活动标记是 Window/Session 上的显式字段（索引），而不是 Pane 上的布尔值，
因此"恰好一个活动 pane/window"由构造时校验保证。
"""

import os
from dataclasses import asdict, dataclass, field
from datetime import datetime

from ..errors import SnapshotError

SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class Geometry:
    """Pane 在 window 内的相对位置与尺寸（0..1）"""

    left: float = 0.0
    top: float = 0.0
    width: float = 1.0
    height: float = 1.0


@dataclass(frozen=True)
class Pane:
    """A captured pane.

    Attributes:
        index: Position within the window (capture order)
        directory: Absolute working directory
        command: Foreground command, None for an idle shell
        geometry: Relative placement used to rebuild splits
        title: Pane title, informational only
    """

    index: int
    directory: str
    command: str | None = None
    geometry: Geometry = field(default_factory=Geometry)
    title: str = ""

    def __post_init__(self):
        if not os.path.isabs(self.directory):
            raise SnapshotError(f"pane {self.index}: directory is not absolute: {self.directory!r}")
        if self.command is not None and not self.command.strip():
            raise SnapshotError(f"pane {self.index}: blank command, use None")


@dataclass(frozen=True)
class Window:
    """A captured window with its panes in index order."""

    index: int
    name: str
    panes: tuple[Pane, ...]
    active_pane: int
    layout: str = ""

    def __post_init__(self):
        if not self.panes:
            raise SnapshotError(f"window {self.index} has no panes")
        _check_ordered([p.index for p in self.panes], f"window {self.index} panes")
        if self.active_pane not in {p.index for p in self.panes}:
            raise SnapshotError(f"window {self.index}: active pane {self.active_pane} not present")

    @property
    def directory(self) -> str:
        """Directory of the first pane, where the window itself is created."""
        return self.panes[0].directory

    def is_active_pane(self, pane: Pane) -> bool:
        return pane.index == self.active_pane


@dataclass(frozen=True)
class Session:
    """A captured session; windows in index order."""

    name: str
    windows: tuple[Window, ...]
    active_window: int

    def __post_init__(self):
        if not self.name:
            raise SnapshotError("session name is empty")
        if not self.windows:
            raise SnapshotError(f"session {self.name} has no windows")
        _check_ordered([w.index for w in self.windows], f"session {self.name} windows")
        if self.active_window not in {w.index for w in self.windows}:
            raise SnapshotError(f"session {self.name}: active window {self.active_window} not present")

    def is_active_window(self, window: Window) -> bool:
        return window.index == self.active_window


@dataclass(frozen=True)
class TopologySnapshot:
    """Session topology captured at one point in time.

    Attributes:
        session: Captured session
        directory: Directory the snapshot was saved for
        captured_at: Capture time (timezone aware)
        version: Snapshot schema version
    """

    session: Session
    directory: str
    captured_at: datetime
    version: int = SNAPSHOT_VERSION

    @property
    def pane_count(self) -> int:
        return sum(len(w.panes) for w in self.session.windows)

    def to_dict(self) -> dict:
        """转换为可序列化的字典"""
        data = asdict(self)
        data["captured_at"] = self.captured_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TopologySnapshot":
        """从字典还原

        Raises:
            SnapshotError: 字段缺失、类型错误、版本不支持或违反不变量
        """
        try:
            version = int(data.get("version", SNAPSHOT_VERSION))
            if version != SNAPSHOT_VERSION:
                raise SnapshotError(f"unsupported snapshot version {version}")
            session_data = data["session"]
            windows = tuple(
                Window(
                    index=int(w["index"]),
                    name=str(w["name"]),
                    panes=tuple(
                        Pane(
                            index=int(p["index"]),
                            directory=str(p["directory"]),
                            command=p.get("command"),
                            geometry=Geometry(**p.get("geometry", {})),
                            title=str(p.get("title", "")),
                        )
                        for p in w["panes"]
                    ),
                    active_pane=int(w["active_pane"]),
                    layout=str(w.get("layout", "")),
                )
                for w in session_data["windows"]
            )
            session = Session(
                name=str(session_data["name"]),
                windows=windows,
                active_window=int(session_data["active_window"]),
            )
            return cls(
                session=session,
                directory=str(data["directory"]),
                captured_at=datetime.fromisoformat(data["captured_at"]),
                version=version,
            )
        except (KeyError, TypeError, ValueError) as e:
            if isinstance(e, SnapshotError):
                raise
            raise SnapshotError(f"malformed snapshot: {e!r}") from e


def _check_ordered(indexes: list[int], what: str) -> None:
    if any(b <= a for a, b in zip(indexes, indexes[1:])):
        raise SnapshotError(f"{what} are not in strictly increasing index order: {indexes}")
