"""Pytest 配置"""

from datetime import datetime, timezone

import pytest

from tici.adapters import MemoryGateway
from tici.snapshot import Geometry, Pane, Session, TopologySnapshot, Window
from tici.store import StateStore
from tici.telemetry import metrics

CAPTURED_AT = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_metrics():
    """每次测试前重置指标"""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def gateway():
    return MemoryGateway()


@pytest.fixture
def store(tmp_path):
    return StateStore(tmp_path / "state")


@pytest.fixture
def make_snapshot():
    """Build snapshots from compact window specs.

    Each window spec is (name, [(directory, command), ...], active_pane_index).
    Panes of a window are laid out side by side with equal widths.
    """

    def _make(
        windows,
        directory="/home/u/proj",
        name="proj",
        active_window=0,
    ) -> TopologySnapshot:
        built = []
        for w_index, (w_name, panes, active_pane) in enumerate(windows):
            width = round(1 / len(panes), 4)
            built.append(
                Window(
                    index=w_index,
                    name=w_name,
                    panes=tuple(
                        Pane(
                            index=p_index,
                            directory=pane_dir,
                            command=command,
                            geometry=Geometry(left=round(p_index * width, 4), top=0.0, width=width, height=1.0),
                        )
                        for p_index, (pane_dir, command) in enumerate(panes)
                    ),
                    active_pane=active_pane,
                )
            )
        return TopologySnapshot(
            session=Session(name=name, windows=tuple(built), active_window=active_window),
            directory=directory,
            captured_at=CAPTURED_AT,
        )

    return _make


@pytest.fixture
def proj_snapshot(make_snapshot):
    """One window: pane 0 runs vim in the project, pane 1 idles in sub/ and is active."""
    return make_snapshot([
        ("editor", [("/home/u/proj", "vim"), ("/home/u/proj/sub", None)], 1),
    ])
