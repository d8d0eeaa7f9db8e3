"""Command-line interface for gematom."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from .config import build_site_config, parse_config_file
from .runner import execute

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="gematom",
        description="Generate an Atom feed out of a Gemini site.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Optional XML configuration file. Command-line options override it.",
    )
    parser.add_argument("-a", "--author", metavar="NAME", help="Author name.")
    parser.add_argument(
        "-b", "--base", metavar="URL", help="Base URL for feed and entries."
    )
    parser.add_argument(
        "-c",
        "--category",
        metavar="DIR:TYPE",
        action="append",
        default=None,
        help="Category of a subdirectory, 'flat' or 'tree'. Repeatable.",
    )
    parser.add_argument(
        "-d", "--directory", metavar="DIR", help="Root directory of the site."
    )
    parser.add_argument("-e", "--email", metavar="EMAIL", help="Author's email address.")
    parser.add_argument(
        "-n",
        type=int,
        dest="limit",
        metavar="N",
        default=None,
        help="Include the N most recent files in the feed (default 10).",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        default=None,
        help="Output file name, relative to the site root (default atom.xml).",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Do not write on stdout under non-error conditions.",
    )
    parser.add_argument("-s", "--subtitle", metavar="STR", help="Feed subtitle.")
    parser.add_argument("-t", "--title", metavar="STR", help="Feed title.")
    parser.add_argument(
        "--mtime",
        action="store_true",
        default=None,
        help="Use file modification time, not file creation time.",
    )
    parser.add_argument(
        "--clean-underscores",
        action="store_true",
        default=None,
        help="Replace underscores with spaces in inferred titles.",
    )
    parser.add_argument(
        "--public-only",
        action="store_true",
        default=None,
        help="Skip files that are not world readable.",
    )
    parser.add_argument(
        "--suffix",
        action="append",
        default=None,
        help="Only include flat category files with this extension. Repeatable.",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Number of categories scanned in parallel (default 1).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )
    return parser


def configure_logging(
    level_name: str, log_file: Optional[str] = None, quiet: bool = False
) -> None:
    """Initialise logging; quiet mode keeps only warnings and errors."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")
    if quiet:
        log_level = max(log_level, logging.WARNING)
        level_name = logging.getLevelName(log_level)

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(log_level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(
            "Logger initialised with level %s and file output to %s",
            level_name.upper(),
            log_path,
        )
    else:
        logger.debug(
            "Logger initialised with console output at level %s", level_name.upper()
        )


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        file_config = parse_config_file(args.config) if args.config else None

        log_level = args.log_level or (
            file_config.logging.level if file_config else "INFO"
        )
        log_file = args.log_file or (file_config.logging.file if file_config else None)
        configure_logging(log_level, log_file, quiet=args.quiet)

        site = build_site_config(
            file_config,
            directory=args.directory,
            base_url=args.base,
            categories=args.category,
            title=args.title,
            subtitle=args.subtitle,
            author=args.author,
            email=args.email,
            output=args.output,
            limit=args.limit,
            use_mtime=args.mtime,
            clean_underscores=args.clean_underscores,
            public_only=args.public_only,
            suffixes=args.suffix,
            concurrency=args.concurrency,
        )
        logger.info(
            "root dir: %s, n: %d, output: %s, base: %s, categories: %s",
            site.root,
            site.limit,
            site.output,
            site.base_url,
            ", ".join(f"{c.path}:{c.scheme.value}" for c in site.categories),
        )

        result = execute(site)
    except ValueError as exc:
        parser.error(str(exc))
    except (RuntimeError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    if not args.quiet:
        print(f"Wrote {result.entry_count} entries to {result.output_path}")
    return 0
