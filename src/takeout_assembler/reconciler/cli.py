"""CLI command reconciling a takeout and listing the resulting asset groups."""

import argparse
import logging
import signal
import sys
import threading
import uuid
from pathlib import Path
from typing import List, Optional, TextIO

from takeout_assembler.common import (
    ConfigLoader,
    LogContext,
    TakeoutError,
    setup_logging_from_config,
)
from .assets import AssetGroup
from .config import AssemblerConfig, TakeoutConfig
from .errors import CancelledError, classify_error
from .events import EventRecorder
from .filesystem import open_filesystems
from .takeout import Takeout

# Application name derived from the top-level package name
_package = __package__ or "takeout_assembler.reconciler"
APP_NAME = _package.split('.')[0].replace('_', '-')

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


def format_group(group: AssetGroup) -> str:
    """One line describing an asset group."""
    names = ", ".join(asset.title for asset in group.assets)
    albums = ", ".join(album.title for album in group.albums)
    line = f"{group.kind.value:<12} {group.cover.capture_date.isoformat()}  {names}"
    if albums:
        line += f"  [{albums}]"
    return line


def scan_command(
    config: TakeoutConfig,
    sources: List[Path],
    cancel: Optional[threading.Event] = None,
    out: TextIO = sys.stdout,
) -> int:
    """Reconcile the takeout made of ``sources`` and print its groups.

    Args:
        config: Import policy
        sources: Takeout directories and/or zip parts
        cancel: Cancellation event, fired by SIGINT from ``main``
        out: Stream receiving one line per group

    Returns:
        Exit code
    """
    logger = logging.getLogger(__package__ or __name__)
    recorder = EventRecorder()
    groups = 0

    try:
        filesystems = open_filesystems(sources)
    except TakeoutError as e:
        logger.error(f"Cannot open takeout: {{'error': {str(e)!r}, 'category': {classify_error(e)!r}}}")
        return EXIT_FAILED

    try:
        with LogContext(logger, run_id=uuid.uuid4().hex[:12]):
            takeout = Takeout(config, recorder, filesystems)
            for group in takeout.browse(cancel):
                print(format_group(group), file=out)
                groups += 1
    except CancelledError:
        logger.warning(f"Reconciliation cancelled: {{'groups': {groups}}}")
        return EXIT_CANCELLED
    except TakeoutError as e:
        logger.error(f"Reconciliation failed: {{'error': {str(e)!r}, 'category': {classify_error(e)!r}}}")
        return EXIT_FAILED
    except Exception as e:
        logger.exception(f"Reconciliation failed: {e}")
        return EXIT_FAILED
    finally:
        for fsys in filesystems:
            fsys.close()
        recorder.report()

    logger.info(f"Reconciliation complete: {{'groups': {groups}}}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Reconcile a Google Photos Takeout into ingestion-ready asset groups"
    )
    parser.add_argument(
        "sources",
        type=Path,
        nargs="+",
        help="Takeout directories and/or zip archives"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    parser.add_argument(
        "--keep-json-less",
        action="store_true",
        default=None,
        help="Import media files without JSON sidecar (overrides config)"
    )
    parser.add_argument(
        "--keep-untitled-albums",
        action="store_true",
        default=None,
        help="Keep albums without title, named after their folder (overrides config)"
    )
    parser.add_argument(
        "--keep-trashed",
        action="store_true",
        default=None,
        help="Import trashed assets (overrides config)"
    )
    parser.add_argument(
        "--date-range",
        help="Only import assets captured in YYYY, YYYY-MM, YYYY-MM-DD or start,end"
    )
    parser.add_argument(
        "--from-album",
        help="Only import assets of this album (overrides config)"
    )
    parser.add_argument(
        "--use-exiftool",
        action="store_true",
        default=None,
        help="Read embedded metadata with exiftool (requires exiftool installed)"
    )
    return parser


def apply_overrides(config: AssemblerConfig, args: argparse.Namespace) -> AssemblerConfig:
    """Apply command line overrides; returns a revalidated config."""
    overrides = {
        'keep_json_less': args.keep_json_less,
        'keep_untitled_albums': args.keep_untitled_albums,
        'keep_trashed': args.keep_trashed,
        'date_range': args.date_range,
        'import_from_album': args.from_album,
        'use_exiftool': args.use_exiftool,
    }
    takeout = config.takeout.model_dump()
    takeout.update({k: v for k, v in overrides.items() if v is not None})
    return AssemblerConfig(logging=config.logging, takeout=TakeoutConfig(**takeout))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    loader = ConfigLoader(app_name=APP_NAME, config_class=AssemblerConfig)
    try:
        config = apply_overrides(loader.load(defaults_path=args.config), args)
    except (TakeoutError, ValueError) as e:
        print(f"{APP_NAME}: configuration error: {e}", file=sys.stderr)
        return EXIT_FAILED

    setup_logging_from_config(config.logging)

    cancel = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())
    try:
        return scan_command(config.takeout, args.sources, cancel)
    finally:
        signal.signal(signal.SIGINT, previous_handler)


if __name__ == "__main__":
    sys.exit(main())
