"""Restorer - 按快照重建 session

同一套遍历逻辑，两种动作策略：
- _GatewayActions: 真实调用 gateway
- _ReportActions: 只返回占位引用，不触碰 gateway（dry-run）

状态机:
    PENDING → APPLYING → COMPLETED | PARTIALLY_FAILED
    PENDING → REPORTED (dry-run)

失败策略：单个 window 的 gateway 错误只记录在该 window 的结果里，
继续处理后续 window；已创建的 window 不回滚。
"""

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from ..adapters.base import MultiplexerGateway, SplitSpec, WindowRef
from ..errors import GatewayError, MissingDirectoryError
from ..snapshot.layout import split_for
from ..snapshot.models import Session, TopologySnapshot, Window
from ..telemetry import get_logger, metrics

logger = get_logger(__name__)


class RestoreState(Enum):
    PENDING = "pending"
    APPLYING = "applying"
    COMPLETED = "completed"
    PARTIALLY_FAILED = "partially_failed"
    REPORTED = "reported"


@dataclass
class WindowOutcome:
    """Result of restoring one window."""

    index: int
    name: str
    ok: bool = True
    error: str | None = None
    warnings: list[str] = field(default_factory=list)
    window_id: str | None = None


@dataclass
class RestoreResult:
    """Aggregate restore result.

    Attributes:
        session_name: Target session
        state: Terminal RestoreState
        outcomes: One entry per snapshot window, in snapshot order
        report: Human readable action lines (identical for dry-run and real runs)
    """

    session_name: str
    state: RestoreState = RestoreState.PENDING
    outcomes: list[WindowOutcome] = field(default_factory=list)
    report: list[str] = field(default_factory=list)

    @property
    def dry_run(self) -> bool:
        return self.state == RestoreState.REPORTED

    @property
    def succeeded(self) -> list[WindowOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[WindowOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def all_failed(self) -> bool:
        return bool(self.outcomes) and not self.succeeded


class _GatewayActions:
    """Executes restore actions against a gateway."""

    def __init__(self, gateway: MultiplexerGateway):
        self._gateway = gateway

    async def open_window(self, session: str, directory: str) -> WindowRef:
        # The first window of a missing session comes from new-session itself
        if await self._gateway.has_session(session):
            return await self._gateway.create_window(session, directory)
        logger.debug(f"[Restore] Session {session} absent, creating it")
        return await self._gateway.create_session(session, directory)

    async def create_pane(self, pane_target: str, directory: str, split: SplitSpec) -> str:
        return await self._gateway.create_pane(pane_target, directory, split)

    async def rename_window(self, window_target: str, name: str) -> None:
        await self._gateway.rename_window(window_target, name)

    async def apply_layout(self, window_target: str, layout: str) -> None:
        await self._gateway.apply_layout(window_target, layout)

    async def set_active(self, target: str) -> None:
        await self._gateway.set_active(target)

    async def send_command(self, pane_target: str, text: str) -> None:
        await self._gateway.send_command(pane_target, text)


class _ReportActions:
    """Dry-run actions: hand out placeholder targets, never touch a gateway."""

    def __init__(self):
        self._windows = 0
        self._panes = 0

    def _pane(self) -> str:
        self._panes += 1
        return f"%planned{self._panes}"

    async def open_window(self, session: str, directory: str) -> WindowRef:
        self._windows += 1
        return WindowRef(window_id=f"@planned{self._windows}", pane_id=self._pane())

    async def create_pane(self, pane_target: str, directory: str, split: SplitSpec) -> str:
        return self._pane()

    async def rename_window(self, window_target: str, name: str) -> None:
        pass

    async def apply_layout(self, window_target: str, layout: str) -> None:
        pass

    async def set_active(self, target: str) -> None:
        pass

    async def send_command(self, pane_target: str, text: str) -> None:
        pass


class Restorer:
    """Recreates a snapshot's windows and panes through a gateway.

    Restore only ever adds windows; running it twice yields two copies.
    """

    def __init__(
        self,
        gateway: MultiplexerGateway,
        dir_exists: Callable[[str], bool] = os.path.isdir,
    ):
        """
        Args:
            gateway: Target multiplexer
            dir_exists: Directory check applied to every pane before its window is created
        """
        self._gateway = gateway
        self._dir_exists = dir_exists
        self.state = RestoreState.PENDING

    async def apply(self, snapshot: TopologySnapshot, dry_run: bool = False) -> RestoreResult:
        """Restore ``snapshot``, or describe the restore when ``dry_run``."""
        session = snapshot.session
        result = RestoreResult(session_name=session.name)
        self.state = RestoreState.PENDING
        actions = _ReportActions() if dry_run else _GatewayActions(self._gateway)
        if not dry_run:
            self.state = RestoreState.APPLYING

        result.report.append(
            f"restore session {session.name} from {snapshot.directory} "
            f"(captured {snapshot.captured_at.isoformat()})"
        )
        refs: dict[int, WindowRef] = {}
        for window in session.windows:
            outcome, ref = await self._restore_window(actions, session, window, result.report)
            result.outcomes.append(outcome)
            if ref is not None:
                refs[window.index] = ref
            if not dry_run:
                metrics.inc("restore.window", {"status": "ok" if outcome.ok else "failed"})

        active = refs.get(session.active_window)
        if active is not None:
            result.report.append(f"select window {session.active_window}")
            try:
                await actions.set_active(active.window_id)
            except GatewayError as e:
                self._warn(result, session.active_window, f"select window failed: {e.reason}")

        if dry_run:
            self.state = RestoreState.REPORTED
        elif result.failed:
            self.state = RestoreState.PARTIALLY_FAILED
        else:
            self.state = RestoreState.COMPLETED
        result.state = self.state

        logger.info(
            f"[Restore] {session.name}: {len(result.succeeded)} ok, "
            f"{len(result.failed)} failed ({self.state.value})"
        )
        return result

    async def _restore_window(
        self, actions, session: Session, window: Window, report: list[str]
    ) -> tuple[WindowOutcome, WindowRef | None]:
        outcome = WindowOutcome(index=window.index, name=window.name)
        dirs = ", ".join(p.directory for p in window.panes)
        commands = [p.command for p in window.panes if p.command]
        summary = f"create window {window.index} '{window.name}' with panes at {dirs}"
        if commands:
            summary += f", run {', '.join(commands)}"
        report.append(summary)

        try:
            for pane in window.panes:
                if not self._dir_exists(pane.directory):
                    raise MissingDirectoryError(pane.directory)

            ref = await actions.open_window(session.name, window.directory)
            outcome.window_id = ref.window_id
            report.append(f"  pane {window.panes[0].index}: {window.panes[0].directory}")
            await actions.rename_window(ref.window_id, window.name)

            pane_ids = [ref.pane_id]
            panes = window.panes
            for position in range(1, len(panes)):
                previous, pane = panes[position - 1], panes[position]
                split = split_for(previous, pane, panes[position + 1:])
                report.append(f"  pane {pane.index}: {pane.directory} (split {split.describe()})")
                pane_ids.append(await actions.create_pane(pane_ids[-1], pane.directory, split))

            if window.layout:
                report.append(f"  layout {window.layout}")
                try:
                    await actions.apply_layout(ref.window_id, window.layout)
                except GatewayError as e:
                    outcome.warnings.append(f"layout not applied: {e.reason}")
                    logger.warning(f"[Restore] Window {window.index} layout not applied: {e.reason}")

            for pane, pane_id in zip(window.panes, pane_ids):
                if window.is_active_pane(pane):
                    report.append(f"  select pane {pane.index}")
                    await actions.set_active(pane_id)

            for pane, pane_id in zip(window.panes, pane_ids):
                if pane.command:
                    report.append(f"  run in pane {pane.index}: {pane.command}")
                    await actions.send_command(pane_id, pane.command)

        except (GatewayError, MissingDirectoryError) as e:
            outcome.ok = False
            outcome.error = e.reason if isinstance(e, GatewayError) else str(e)
            report.append(f"  window {window.index} failed: {outcome.error}")
            logger.warning(f"[Restore] Window {window.index} ({window.name}) failed: {outcome.error}")
            return outcome, None

        return outcome, ref

    @staticmethod
    def _warn(result: RestoreResult, index: int, message: str) -> None:
        logger.warning(f"[Restore] {message}")
        for outcome in result.outcomes:
            if outcome.index == index:
                outcome.warnings.append(message)
