"""Tests for TmuxClient."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tici.adapters.tmux.client import TmuxClient
from tici.errors import GatewayError, GatewayTimeoutError
from tici.telemetry import metrics


def _proc(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0):
    proc = AsyncMock()
    proc.communicate.return_value = (stdout, stderr)
    proc.returncode = returncode
    proc.kill = MagicMock()
    return proc


class TestTmuxClientRun:
    """Tests for TmuxClient.run."""

    def test_init_default(self):
        client = TmuxClient()
        assert client._socket_path is None

    @pytest.mark.asyncio
    async def test_run_success(self):
        client = TmuxClient()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.return_value = _proc(b"output\n")

            result = await client.run("list-sessions")

            assert result == "output\n"
            call_args = mock_exec.call_args[0]
            assert call_args[0] == "tmux"
            assert "list-sessions" in call_args
            assert metrics.get_counter("gateway.call", {"op": "list-sessions"}) == 1

    @pytest.mark.asyncio
    async def test_run_keeps_undecodable_paths(self):
        client = TmuxClient()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.return_value = _proc(b"/home/u/caf\xe9\n")

            result = await client.run("display-message", "-p", "#{pane_current_path}")

            assert result == "/home/u/caf\udce9\n"
            assert result.strip().encode("utf-8", "surrogateescape") == b"/home/u/caf\xe9"

    @pytest.mark.asyncio
    async def test_run_with_socket(self):
        client = TmuxClient(socket_path="/tmp/test.sock")

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.return_value = _proc(b"ok\n")

            await client.run("list-windows")

            call_args = mock_exec.call_args[0]
            assert call_args[1:3] == ("-S", "/tmp/test.sock")

    @pytest.mark.asyncio
    async def test_run_failure_raises(self):
        client = TmuxClient()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.return_value = _proc(stderr=b"can't find pane: %9\n", returncode=1)

            with pytest.raises(GatewayError) as exc:
                await client.run("select-pane", "-t", "%9")

            assert exc.value.reason == "can't find pane: %9"
            assert exc.value.command == ["tmux", "select-pane", "-t", "%9"]
            assert metrics.get_counter("gateway.error", {"op": "select-pane"}) == 1

    @pytest.mark.asyncio
    async def test_run_failure_unchecked_returns_none(self):
        client = TmuxClient()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.return_value = _proc(stderr=b"no server running\n", returncode=1)

            assert await client.run("has-session", "-t", "=x", check=False) is None

    @pytest.mark.asyncio
    async def test_run_missing_binary(self):
        client = TmuxClient(binary="tmux-does-not-exist")

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.side_effect = FileNotFoundError("tmux-does-not-exist")

            with pytest.raises(GatewayError, match="cannot run"):
                await client.run("list-sessions")

    @pytest.mark.asyncio
    async def test_run_timeout_kills_process(self):
        client = TmuxClient(timeout=0.01)
        proc = _proc()
        proc.communicate.side_effect = asyncio.TimeoutError()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.return_value = proc

            with pytest.raises(GatewayTimeoutError):
                await client.run("list-panes")

            proc.kill.assert_called_once()

    @pytest.mark.asyncio
    async def test_timeout_is_a_gateway_error(self):
        client = TmuxClient(timeout=0.01)
        proc = _proc()
        proc.communicate.side_effect = asyncio.TimeoutError()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.return_value = proc

            with pytest.raises(GatewayError):
                await client.run("list-panes")


class TestTmuxClientQueries:
    """Tests for parsing tmux output."""

    @pytest.mark.asyncio
    async def test_list_windows(self):
        client = TmuxClient()
        output = (
            "@0\t0\tbash\t0\tb25d,80x24,0,0,0\t80\t24\n"
            "@3\t1\tmy editor\t1\t1c4f,80x24,0,0{40x24,0,0,1,39x24,41,0,2}\t80\t24\n"
        )
        with patch.object(client, "run", return_value=output) as mock_run:
            windows = await client.list_windows("=proj")

            assert mock_run.call_args[0][:3] == ("list-windows", "-t", "=proj")
            assert len(windows) == 2
            assert windows[0] == {
                "window_id": "@0",
                "window_index": 0,
                "window_name": "bash",
                "active": False,
                "layout": "b25d,80x24,0,0,0",
                "width": 80,
                "height": 24,
            }
            assert windows[1]["window_name"] == "my editor"
            assert windows[1]["active"] is True

    @pytest.mark.asyncio
    async def test_list_windows_skips_malformed(self):
        client = TmuxClient()
        output = "@0\tzero\tbash\t0\tx\t80\t24\n@1\t1\tok\t1\tx\t80\t24\nshort\n"
        with patch.object(client, "run", return_value=output):
            windows = await client.list_windows("$0")

            assert [w["window_id"] for w in windows] == ["@1"]

    @pytest.mark.asyncio
    async def test_list_panes(self):
        client = TmuxClient()
        output = (
            "%1\t0\t0\t/home/u/proj\tvim\t0\t0\t40\t24\tdev:vim\n"
            "%2\t1\t1\t/home/u/proj/sub\tzsh\t41\t0\t39\t24\thost\n"
        )
        with patch.object(client, "run", return_value=output):
            panes = await client.list_panes("@3")

            assert panes[0] == {
                "pane_id": "%1",
                "pane_index": 0,
                "active": False,
                "path": "/home/u/proj",
                "current_command": "vim",
                "x": 0,
                "y": 0,
                "width": 40,
                "height": 24,
                "title": "dev:vim",
            }
            assert panes[1]["active"] is True
            assert panes[1]["path"] == "/home/u/proj/sub"

    @pytest.mark.asyncio
    async def test_current_session(self):
        client = TmuxClient()
        with patch.object(client, "run", return_value="$2\tproj\t%4\n") as mock_run:
            info = await client.current_session("%4")

            assert info == {"session_id": "$2", "session_name": "proj", "pane_id": "%4"}
            args = mock_run.call_args[0]
            assert "-t" in args and "%4" in args

    @pytest.mark.asyncio
    async def test_current_session_without_server(self):
        client = TmuxClient()
        with patch.object(client, "run", return_value=None):
            assert await client.current_session() is None

    @pytest.mark.asyncio
    async def test_list_sessions_without_server(self):
        client = TmuxClient()
        with patch.object(client, "run", return_value=None):
            assert await client.list_sessions() == []

    @pytest.mark.asyncio
    async def test_has_session(self):
        client = TmuxClient()
        with patch.object(client, "run", return_value=""):
            assert await client.has_session("=proj") is True
        with patch.object(client, "run", return_value=None):
            assert await client.has_session("=proj") is False


class TestTmuxClientMutations:
    """Tests for commands that change tmux state."""

    @pytest.mark.asyncio
    async def test_new_session_reports_refs(self):
        client = TmuxClient()
        with patch.object(client, "run", return_value="@7\t%12\n") as mock_run:
            ref = await client.new_session("proj", "/home/u/proj")

            assert ref == {"window_id": "@7", "pane_id": "%12"}
            args = mock_run.call_args[0]
            assert args[:5] == ("new-session", "-d", "-s", "proj", "-c")
            assert "-P" in args

    @pytest.mark.asyncio
    async def test_new_window_without_output_raises(self):
        client = TmuxClient()
        with patch.object(client, "run", return_value=""):
            with pytest.raises(GatewayError):
                await client.new_window("=proj:", "/home/u/proj")

    @pytest.mark.asyncio
    async def test_split_window_horizontal(self):
        client = TmuxClient()
        with patch.object(client, "run", return_value="%13\n") as mock_run:
            pane_id = await client.split_window("%12", "/home/u/proj/sub", horizontal=True, percent=30)

            assert pane_id == "%13"
            args = mock_run.call_args[0]
            assert "-h" in args
            assert args[args.index("-l") + 1] == "30%"
            assert args[args.index("-c") + 1] == "/home/u/proj/sub"
            assert args[args.index("-t") + 1] == "%12"

    @pytest.mark.asyncio
    async def test_split_window_vertical(self):
        client = TmuxClient()
        with patch.object(client, "run", return_value="%13\n") as mock_run:
            await client.split_window("%12", "/tmp", horizontal=False, percent=50)

            assert "-v" in mock_run.call_args[0]

    @pytest.mark.asyncio
    async def test_send_keys_literal_then_enter(self):
        client = TmuxClient()
        with patch.object(client, "run", return_value="") as mock_run:
            await client.send_keys("%1", "make test")

            assert mock_run.call_args_list[0][0] == ("send-keys", "-t", "%1", "-l", "make test")
            assert mock_run.call_args_list[1][0] == ("send-keys", "-t", "%1", "Enter")

    @pytest.mark.asyncio
    async def test_attach_session_failure(self):
        client = TmuxClient()
        proc = AsyncMock()
        proc.wait.return_value = 1
        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.return_value = proc

            with pytest.raises(GatewayError):
                await client.attach_session("=proj")

            assert mock_exec.call_args[0] == ("tmux", "attach-session", "-t", "=proj")
