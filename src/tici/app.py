"""App - save / restore / new 用例

save    = key → capture → store.write
restore = key → store.read → Restorer.apply → attach
new     = key → create session → attach
"""

from pathlib import Path

from rich.console import Console

from .adapters.base import MultiplexerGateway
from .config import ATTACH_AFTER_RESTORE
from .core.keys import DirectoryKey
from .errors import GatewayError
from .restore import Restorer, RestoreResult, render_report, render_snapshot, render_summary
from .snapshot import TopologySnapshot, capture
from .store import StateStore
from .telemetry import get_logger

logger = get_logger(__name__)


class Tici:
    """Wires gateway, store and output together for one invocation."""

    def __init__(
        self,
        gateway: MultiplexerGateway,
        store: StateStore,
        console: Console | None = None,
        attach: bool = ATTACH_AFTER_RESTORE,
        restorer: Restorer | None = None,
    ):
        self.gateway = gateway
        self.store = store
        self.console = console or Console()
        self.attach = attach
        self.restorer = restorer or Restorer(gateway)

    async def save(self, key: DirectoryKey, dry_run: bool = False) -> TopologySnapshot:
        """Capture the current session and persist it for ``key``.

        With ``dry_run`` the snapshot is printed and nothing is written.
        """
        snapshot = await capture(self.gateway, key)
        path = self.store.path_for(key)
        replacing = self.store.exists(key)
        if dry_run:
            render_snapshot(snapshot, self.console)
            self.console.print(f"Would save session to: {path}", markup=False)
            if replacing:
                self.console.print("The existing record would be replaced", markup=False)
            return snapshot

        if replacing:
            logger.info(f"[App] Replacing saved record {key.record_name}")

        written: Path = self.store.write(key, snapshot)
        self.console.print(
            f"Saved {len(snapshot.session.windows)} windows, {snapshot.pane_count} panes "
            f"to: {written}",
            markup=False,
        )
        return snapshot

    async def restore(self, key: DirectoryKey, dry_run: bool = False) -> RestoreResult:
        """Recreate the saved topology for ``key``.

        Raises:
            NotFoundError: Nothing saved for this directory (no gateway call is made)
            PersistenceError: The record exists but cannot be read
        """
        snapshot = self.store.read(key)
        result = await self.restorer.apply(snapshot, dry_run=dry_run)

        if dry_run:
            render_report(result, self.console)
            return result

        render_summary(result, self.console)
        if self.attach and result.succeeded:
            await self._attach(snapshot.session.name)
        return result

    async def new(self, key: DirectoryKey, dry_run: bool = False) -> None:
        """Start (or rejoin) a plain session named after the directory."""
        name = key.session_name
        if dry_run:
            self.console.print(f"Would create new session: {name} in {key.path}", markup=False)
            return

        if await self.gateway.has_session(name):
            logger.info(f"[App] Session {name} already exists")
        else:
            await self.gateway.create_session(name, key.path)
            self.console.print(f"Created session: {name}")
        if self.attach:
            await self._attach(name)

    async def _attach(self, name: str) -> None:
        try:
            await self.gateway.attach_session(name)
        except GatewayError as e:
            logger.warning(f"[App] Attach to {name} failed: {e.reason}")
            self.console.print(
                f"Session {name} is ready but could not be attached: {e.reason}",
                style="yellow",
                markup=False,
            )
