"""Multiplexer gateways

- MultiplexerGateway: 网关接口
- TmuxGateway: 生产实现（tmux 子进程）
- MemoryGateway: 内存实现（测试与演练）
"""

from .base import (
    GatewayCall,
    MultiplexerGateway,
    PaneInfo,
    SessionInfo,
    SplitDirection,
    SplitSpec,
    WindowInfo,
    WindowRef,
)
from .memory import MemoryGateway
from .tmux import TmuxGateway

__all__ = [
    # Interface
    "MultiplexerGateway",
    # Implementations
    "TmuxGateway",
    "MemoryGateway",
    # DTOs
    "SessionInfo",
    "WindowInfo",
    "PaneInfo",
    "WindowRef",
    "SplitDirection",
    "SplitSpec",
    "GatewayCall",
]
