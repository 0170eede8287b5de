from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import replace
from datetime import datetime
from importlib import metadata
from pathlib import Path

import tomllib
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TransferSpeedColumn,
)

from .library import BookLibrary
from .logging_utils import configure_logging
from .server import ServerStartError, TransferConfig, TransferServer
from .state import UploadProgress


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:  # pragma: no cover - defensive
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("wifibook")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_version_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"wifibook {__version__}",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Send plain-text books to a reader over the local network.",
        epilog="Run `wifibook serve ROOT` to start the upload page, `wifibook books ROOT` to list received books.",
    )
    _add_version_flag(ap)
    ap.add_argument("command", choices=["serve", "books"], help="Subcommand to run.")
    return ap


def build_serve_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Serve the Wi-Fi upload page and store received books in ROOT.",
    )
    _add_version_flag(ap)
    ap.add_argument(
        "root",
        help="Library directory where received .txt books are saved.",
    )
    ap.add_argument(
        "--host",
        help="Host interface to bind (default: 0.0.0.0, or $WIFIBOOK_HOST).",
    )
    ap.add_argument(
        "--port",
        type=int,
        help="TCP port for the upload page (default: 8080, or $WIFIBOOK_PORT).",
    )
    ap.add_argument(
        "--interface",
        help="Network interface whose IPv4 address is shown (default: first Wi-Fi interface).",
    )
    ap.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging (request classification, per-chunk progress).",
    )
    return ap


def build_books_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="List books received into a library directory.")
    _add_version_flag(ap)
    ap.add_argument("root", help="Library directory.")
    ap.add_argument(
        "--sort",
        choices=["recent", "title"],
        default="recent",
        help="Sort order (default: recent).",
    )
    return ap


class UploadProgressDisplay:
    """Render published upload progress as a rich progress bar."""

    def __init__(self, console: Console) -> None:
        self.console = console
        self.progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
        self._task_id: TaskID | None = None

    def __call__(self, update: UploadProgress | None) -> None:
        if update is None:
            self._close()
            return
        label = escape(update.file_name or "upload")
        if update.error_message:
            self._close()
            self.console.print(f"[red]Upload failed[/red] ({label}): {escape(update.error_message)}")
            return
        if self._task_id is None:
            self.progress.start()
            self._task_id = self.progress.add_task(label, total=update.total_bytes)
        self.progress.update(
            self._task_id,
            description=label,
            completed=update.received_bytes,
            total=update.total_bytes,
        )
        if update.is_completed:
            self._close()
            self.console.print(f"[green]Received[/green] {label} ({update.received_bytes} bytes)")

    def _close(self) -> None:
        if self._task_id is None:
            return
        self.progress.remove_task(self._task_id)
        self._task_id = None
        self.progress.stop()


def _run_serve(args: argparse.Namespace) -> int:
    configure_logging(bool(getattr(args, "debug", False)))
    root = Path(args.root).expanduser().resolve()
    library = BookLibrary(root)

    config = TransferConfig.from_env()
    if args.host:
        config = replace(config, host=args.host)
    if args.port is not None:
        config = replace(config, port=args.port)
    if args.interface:
        config = replace(config, interface=args.interface)

    console = Console(stderr=True)

    def _store_book(file_name: str, content: str) -> None:
        book = library.import_book(file_name, content)
        console.print(f"Saved [bold]{escape(book.title)}[/bold] to {escape(str(book.path))}")

    server = TransferServer(config, on_file_received=_store_book)
    server.progress.subscribe(UploadProgressDisplay(console))

    async def _serve() -> int:
        try:
            address = await server.start()
        except ServerStartError as exc:
            print(str(exc), file=sys.stderr)
            return 1
        print(f"Saving received books into {root}")
        if address:
            print(f"Upload URL: {address}/")
        else:
            print(f"Listening on port {server.bound_port}; no Wi-Fi address found (try --interface).")
        print("Press Ctrl+C to stop.\n")
        try:
            await server.serve_forever()
        finally:
            server.stop()
        return 0

    try:
        return asyncio.run(_serve())
    except KeyboardInterrupt:
        print("\nStopping wifibook...", flush=True)
        return 0


def _run_books(args: argparse.Namespace) -> int:
    root = Path(args.root).expanduser().resolve()
    books = BookLibrary(root).list_books(args.sort)
    if not books:
        print(f"No books found in {root}")
        return 0
    for book in books:
        added = datetime.fromtimestamp(book.added).strftime("%Y-%m-%d %H:%M")
        print(f"{added}  {book.title}  ({book.file_name})")
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] == "serve":
        serve_args = build_serve_parser().parse_args(argv[1:])
        return _run_serve(serve_args)
    if argv and argv[0] == "books":
        books_args = build_books_parser().parse_args(argv[1:])
        return _run_books(books_args)

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0
    parser.parse_args(argv)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
