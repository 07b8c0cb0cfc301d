"""tici command line entry point."""

import argparse
import asyncio

from rich.console import Console

from . import __version__
from .adapters.tmux import TmuxGateway
from .app import Tici
from .config import ATTACH_AFTER_RESTORE, TMUX_SOCKET
from .core.keys import directory_key, resolve_directory
from .errors import NotFoundError, TiciError
from .store import StateStore
from .telemetry import setup_logging

MODES = ("save", "restore", "new")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tici",
        description="Save and restore tmux sessions per working directory.",
    )
    parser.add_argument(
        "mode",
        nargs="?",
        choices=MODES,
        default="restore",
        help="save the current session, restore the saved one (default), or start a new one",
    )
    parser.add_argument(
        "-d", "--dir",
        dest="directory",
        help="directory to use instead of the current one",
    )
    parser.add_argument(
        "-n", "--dry-run",
        action="store_true",
        help="only print what would happen",
    )
    parser.add_argument(
        "--no-attach",
        dest="attach",
        action="store_false",
        default=ATTACH_AFTER_RESTORE,
        help="do not attach/switch to the session afterwards",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _print_error(console: Console, message: str) -> None:
    console.print(f"tici: {message}", style="red", markup=False, highlight=False)


async def run(args: argparse.Namespace, app: Tici | None = None, console: Console | None = None) -> int:
    """Run one command; returns the process exit code."""
    err = console or Console(stderr=True)
    try:
        directory = resolve_directory(args.directory)
        key = directory_key(directory)
        if app is None:
            app = Tici(TmuxGateway(socket_path=TMUX_SOCKET), StateStore(), attach=args.attach)

        if args.mode == "save":
            await app.save(key, dry_run=args.dry_run)
        elif args.mode == "new":
            await app.new(key, dry_run=args.dry_run)
        else:
            result = await app.restore(key, dry_run=args.dry_run)
            if result.all_failed:
                failed = ", ".join(f"{o.index} ({o.error})" for o in result.failed)
                _print_error(err, f"no window could be restored: {failed}")
                return EXIT_ERROR
    except NotFoundError as e:
        _print_error(err, str(e))
        return EXIT_ERROR
    except TiciError as e:
        _print_error(err, f"{type(e).__name__}: {e}")
        return EXIT_ERROR
    return EXIT_OK


def main(argv: list[str] | None = None) -> None:
    """入口函数"""
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)
    try:
        code = asyncio.run(run(args))
    except KeyboardInterrupt:
        raise SystemExit(EXIT_INTERRUPTED)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
