#!/usr/bin/env python3
"""
cargo-cleans

Finds the target/ directories of every Rust project below a root directory,
decides which ones to clean from their age and size, shows the result and
removes the selected ones after confirmation.

Usage:
    cargo cleans                         # Scan the current directory and clean
    cargo cleans -r ~/src --dry-run      # Just report findings
    cargo cleans -d 7 -s 100 --yes       # Keep targets younger than 7 days or up to 100 MB
"""

import argparse
import asyncio
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from async_fs import FsLimiter
from auxiliary import format_bytes, format_path_for_display
from classification_store import ArtifactRecord, ClassificationPolicy, ClassificationStore, CleanupError
from cleans_config import ConfigManager
from console_ui import ConsoleUI
from tree_walker import TreeWalker

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# cargo runs `cargo-cleans cleans ...` for `cargo cleans ...`
CARGO_SUBCOMMAND = "cleans"


def _package_version() -> str:
    try:
        return version("cargo-cleans")
    except PackageNotFoundError:
        return "unknown"


# ---------------------------------------------------------------------------
# cargo-cleans
# ---------------------------------------------------------------------------


class CargoCleans:
    """Main application class for the cargo-cleans tool."""

    def __init__(self, args: argparse.Namespace, ui: Optional[ConsoleUI] = None):
        self.args = args
        self.ui = ui or ConsoleUI()

        self.config_manager = ConfigManager(Path(args.config_dir) if args.config_dir else None)
        self._config = self.config_manager.load()

    @property
    def policy(self) -> ClassificationPolicy:
        keep_days = self.args.keep_days if self.args.keep_days is not None else self._config.keep_days
        keep_size = self.args.keep_size if self.args.keep_size is not None else self._config.keep_size_mb
        return ClassificationPolicy.from_megabytes(keep_days, keep_size)

    @property
    def max_jobs(self) -> int:
        return self.args.jobs if self.args.jobs is not None else self._config.max_jobs

    # -- scanning ------------------------------------------------------------

    async def scan(self, root: str, store: ClassificationStore):
        progress = self.ui.create_activity_progress()
        with progress:
            task = progress.add_task(f"Scanning {format_path_for_display(root)}...", total=None)

            def on_progress(dirs_scanned: int):
                progress.update(task, description=f"Scanning... {dirs_scanned} dirs")

            walker = TreeWalker(FsLimiter(self.max_jobs), progress_callback=on_progress)
            await walker.walk(root, store)

        logger.info("Scanned %s directories, found %s target directories", walker.dirs_scanned, walker.records_emitted)

    # -- confirmation & cleanup ----------------------------------------------

    def confirm_cleanup(self) -> bool:
        if self.args.yes:
            return True
        answer = self.ui.prompt("Clean the project directories shown above? (yes/no)")
        return answer.strip().lower() == "yes"

    async def clean(self, store: ClassificationStore) -> int:
        selected = store.selected
        progress = self.ui.create_progress()
        with progress:
            task = progress.add_task("Deleting...", total=len(selected))

            def on_deleted(record: ArtifactRecord):
                progress.update(task, description=f"Deleted {record.project_name or record.path}")
                progress.advance(task)

            return await store.clean(progress_callback=on_deleted)

    # -- main entry point ----------------------------------------------------

    async def run_async(self) -> int:
        root = self.args.root_dir
        if not Path(root).exists():
            self.ui.print_error(f"not found root path {root}")
            return 1

        async with ClassificationStore(self.policy) as store:
            try:
                await self.scan(root, store)
            except OSError as e:
                self.ui.print_error(f"Scan failed: {e}")
                return 1

            self.ui.print_plain(await store.report())

            if self.args.dry_run:
                self.ui.print_warning("Dry run. Not doing any cleanup")
                return 0

            if not store.selected:
                self.ui.print_info("Nothing to clean")
                return 0

            if not self.confirm_cleanup():
                self.ui.print_info("Cleanup cancelled")
                return 0

            self.ui.print_info("Starting cleanup...")
            try:
                reclaimed = await self.clean(store)
            except CleanupError as e:
                self.ui.print_error(str(e))
                return 1

        self.config_manager.record_run(self._config, reclaimed)
        self.ui.print_success(f"Done! Reclaimed {format_bytes(reclaimed)}")
        return 0

    def run(self) -> int:
        return asyncio.run(self.run_async())


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cargo cleans",
        description="Clean up all targets of the current path",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")
    parser.add_argument(
        "-r", "--root-dir", default=".", metavar="DIR", help="The directory that will be cleaned (default: .)"
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Don't ask for confirmation")
    parser.add_argument(
        "-d",
        "--keep-days",
        type=_non_negative_int,
        default=None,
        metavar="DAYS",
        help="Don't clean projects with target dirs modified in the last DAYS days",
    )
    parser.add_argument(
        "-s",
        "--keep-size",
        type=_non_negative_int,
        default=None,
        metavar="SIZE_MB",
        help="Don't clean projects with target dir sizes up to SIZE_MB megabytes",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Just collect the cleanable project dirs but don't attempt to clean anything",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Maximum number of concurrent filesystem operations",
    )
    parser.add_argument("--config-dir", default=None, metavar="DIR", help="Configuration directory")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return number


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] == CARGO_SUBCOMMAND:
        argv = argv[1:]
    return build_parser().parse_args(argv)


def setup_logging(ui: ConsoleUI, debug: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[RichHandler(console=ui.console, show_path=False)],
        force=True,
    )


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    ui = ConsoleUI()
    setup_logging(ui, args.debug)

    app = CargoCleans(args, ui)
    try:
        return app.run()
    except KeyboardInterrupt:
        ui.print_warning("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
