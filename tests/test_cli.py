"""Tests for the command line entry point."""

import io
import os

import pytest
from rich.console import Console

from tici.adapters import MemoryGateway
from tici.app import Tici
from tici.cli import EXIT_ERROR, EXIT_OK, build_parser, main, run
from tici.core.keys import directory_key
from tici.restore import Restorer
from tici.store import StateStore


def _console():
    return Console(file=io.StringIO(), width=200, color_system=None)


def _app(gateway, store):
    return Tici(gateway, store, console=_console(), attach=False,
                restorer=Restorer(gateway, dir_exists=lambda p: True))


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.mode == "restore"
        assert args.dry_run is False
        assert args.directory is None

    def test_flags(self):
        args = build_parser().parse_args(["save", "-n", "-d", "/tmp", "--no-attach"])

        assert args.mode == "save"
        assert args.dry_run is True
        assert args.directory == "/tmp"
        assert args.attach is False

    def test_unknown_mode(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["sync"])


class TestRun:
    @pytest.mark.asyncio
    async def test_restore_never_saved(self, tmp_path, store):
        never_saved = tmp_path / "never-saved"
        never_saved.mkdir()
        gateway = MemoryGateway()
        err = _console()
        args = build_parser().parse_args(["restore", "-d", str(never_saved)])

        code = await run(args, app=_app(gateway, store), console=err)

        assert code == EXIT_ERROR
        assert gateway.calls == []
        assert "No saved session found" in err.file.getvalue()

    @pytest.mark.asyncio
    async def test_invalid_directory(self, tmp_path, store):
        err = _console()
        args = build_parser().parse_args(["-d", str(tmp_path / "missing")])

        code = await run(args, app=_app(MemoryGateway(), store), console=err)

        assert code == EXIT_ERROR
        assert "InvalidPathError" in err.file.getvalue()

    @pytest.mark.asyncio
    async def test_restore_success(self, tmp_path, store, make_snapshot):
        directory = os.path.realpath(tmp_path)
        store.write(directory_key(directory), make_snapshot([("w", [(directory, None)], 0)], directory=directory))
        args = build_parser().parse_args(["-d", directory])

        assert await run(args, app=_app(MemoryGateway(), store), console=_console()) == EXIT_OK

    @pytest.mark.asyncio
    async def test_partial_failure_exits_zero(self, tmp_path, store, make_snapshot):
        directory = os.path.realpath(tmp_path)
        snapshot = make_snapshot(
            [("a", [(directory, None)], 0), ("b", [(directory, None)], 0)], directory=directory
        )
        store.write(directory_key(directory), snapshot)
        gateway = MemoryGateway()
        gateway.fail_on("create_window")
        args = build_parser().parse_args(["restore", "-d", directory])

        assert await run(args, app=_app(gateway, store), console=_console()) == EXIT_OK

    @pytest.mark.asyncio
    async def test_all_failed_exits_non_zero(self, tmp_path, store, make_snapshot):
        directory = os.path.realpath(tmp_path)
        store.write(directory_key(directory), make_snapshot([("a", [(directory, None)], 0)], directory=directory))
        gateway = MemoryGateway()
        gateway.fail_on("create_session", reason="no server running")
        err = _console()
        args = build_parser().parse_args(["restore", "-d", directory])

        code = await run(args, app=_app(gateway, store), console=err)

        assert code == EXIT_ERROR
        assert "no window could be restored: 0 (no server running)" in err.file.getvalue()

    @pytest.mark.asyncio
    async def test_save_without_session(self, tmp_path, store):
        err = _console()
        args = build_parser().parse_args(["save", "-d", str(tmp_path)])

        code = await run(args, app=_app(MemoryGateway(), store), console=err)

        assert code == EXIT_ERROR
        assert "NoActiveSessionError" in err.file.getvalue()


def test_main_exit_code(tmp_path, monkeypatch):
    monkeypatch.setattr("tici.cli.StateStore", lambda: StateStore(tmp_path / "state"))

    with pytest.raises(SystemExit) as exc:
        main(["restore", "-n", "-d", str(tmp_path)])

    assert exc.value.code == EXIT_ERROR
