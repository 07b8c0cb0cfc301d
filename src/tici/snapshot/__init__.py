"""Snapshot 模块

- TopologySnapshot / Session / Window / Pane / Geometry: 不可变快照模型
- capture: 从 live session 构建快照
- relative_geometry / split_for: 布局换算
"""

from .capture import capture, normalize_command
from .layout import relative_geometry, split_for
from .models import SNAPSHOT_VERSION, Geometry, Pane, Session, TopologySnapshot, Window

__all__ = [
    "TopologySnapshot",
    "Session",
    "Window",
    "Pane",
    "Geometry",
    "SNAPSHOT_VERSION",
    "capture",
    "normalize_command",
    "relative_geometry",
    "split_for",
]
