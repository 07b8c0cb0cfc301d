"""Restore 模块

- Restorer: 按快照重建（或 dry-run 描述）session
- RestoreResult / WindowOutcome / RestoreState: 聚合结果与状态机
- render_*: rich 输出
"""

from .report import render_report, render_snapshot, render_summary, snapshot_tree, summary_table
from .restorer import Restorer, RestoreResult, RestoreState, WindowOutcome

__all__ = [
    "Restorer",
    "RestoreResult",
    "RestoreState",
    "WindowOutcome",
    "render_report",
    "render_snapshot",
    "render_summary",
    "snapshot_tree",
    "summary_table",
]
