"""Multiplexer gateway 抽象接口

定义 capture/restore 所需的最小多路复用器能力：
1. 只读查询：session / window / pane 拓扑
2. 变更操作：创建 window/pane、重命名、切换焦点、发送命令
3. 异步：所有 IO 操作都是 async，调用方逐个 await，保证顺序

实现不做重试；失败一律抛出 GatewayError，由调用方决定是否致命。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class SessionInfo:
    """Live session 信息

    Attributes:
        session_id: 多路复用器内部 ID（tmux: "$1"）
        name: session 名
        pane_id: 当前终端所在的 pane（仅 current_session 返回时设置）
    """

    session_id: str
    name: str
    pane_id: str | None = None


@dataclass(frozen=True)
class WindowInfo:
    """Live window 信息

    Attributes:
        window_id: 多路复用器内部 ID（tmux: "@3"）
        index: 在 session 内的索引
        name: 窗口名
        active: 是否为 session 的活动窗口
        layout: 多路复用器原生布局串（可为空）
        width, height: 窗口尺寸（字符单元）
    """

    window_id: str
    index: int
    name: str
    active: bool
    layout: str = ""
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class PaneInfo:
    """Live pane 信息

    Attributes:
        pane_id: 多路复用器内部 ID（tmux: "%5"）
        index: 在 window 内的索引
        active: 是否为 window 的活动 pane
        directory: 当前工作目录
        command: 前台进程名（空字符串表示未知）
        left, top, width, height: 字符单元几何
    """

    pane_id: str
    index: int
    active: bool
    directory: str
    command: str = ""
    left: int = 0
    top: int = 0
    width: int = 0
    height: int = 0
    title: str = ""


@dataclass(frozen=True)
class WindowRef:
    """新建 window 的引用：window 及其首个 pane"""

    window_id: str
    pane_id: str


class SplitDirection(Enum):
    """Split orientation. HORIZONTAL places the new pane to the right."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class SplitSpec:
    """How a new pane is carved out of an existing one.

    Attributes:
        direction: HORIZONTAL (side by side) or VERTICAL (stacked)
        percent: Share of the split pane given to the new pane (1-99)
    """

    direction: SplitDirection = SplitDirection.VERTICAL
    percent: int = 50

    def __post_init__(self):
        if not 1 <= self.percent <= 99:
            raise ValueError(f"split percent out of range: {self.percent}")

    def describe(self) -> str:
        return f"{self.direction.value} {self.percent}%"


@dataclass
class GatewayCall:
    """A recorded gateway operation (used by fakes and dry-run reports)."""

    op: str
    args: tuple = field(default_factory=tuple)


class MultiplexerGateway(ABC):
    """多路复用器网关抽象接口

    使用示例:
        gateway = TmuxGateway()
        session = await gateway.current_session()
        for window in await gateway.list_windows(session.session_id):
            panes = await gateway.list_panes(window.window_id)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """网关名称（如 "tmux"）"""

    # 查询

    @abstractmethod
    async def current_session(self) -> SessionInfo | None:
        """当前终端绑定的 session；不在多路复用器内时返回 None"""

    @abstractmethod
    async def list_sessions(self) -> list[SessionInfo]:
        """所有 live session"""

    @abstractmethod
    async def has_session(self, name: str) -> bool:
        """按名称判断 session 是否存在"""

    @abstractmethod
    async def list_windows(self, session_target: str) -> list[WindowInfo]:
        """session 内的 window，按 index 排序"""

    @abstractmethod
    async def list_panes(self, window_target: str) -> list[PaneInfo]:
        """window 内的 pane，按 index 排序"""

    # 变更

    @abstractmethod
    async def create_session(self, name: str, directory: str) -> WindowRef:
        """创建 detached session，返回其首个 window"""

    @abstractmethod
    async def create_window(self, session_target: str, directory: str) -> WindowRef:
        """在 session 末尾追加 window"""

    @abstractmethod
    async def create_pane(self, pane_target: str, directory: str, split: SplitSpec) -> str:
        """切分 pane_target，返回新 pane 的 ID"""

    @abstractmethod
    async def rename_session(self, session_target: str, name: str) -> None:
        """重命名 session"""

    @abstractmethod
    async def rename_window(self, window_target: str, name: str) -> None:
        """重命名 window"""

    @abstractmethod
    async def apply_layout(self, window_target: str, layout: str) -> None:
        """应用原生布局串"""

    @abstractmethod
    async def set_active(self, target: str) -> None:
        """激活 window 或 pane"""

    @abstractmethod
    async def send_command(self, pane_target: str, text: str) -> None:
        """向 pane 输入命令并回车"""

    @abstractmethod
    async def attach_session(self, name: str) -> None:
        """把当前终端切换/附着到 session"""
