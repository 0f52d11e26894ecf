"""Command-line interface for the unifeed application."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from .config import AppConfig, parse_app_config
from .feeds import MappingOptions, parse_feed_document
from .snapshots import feed_to_dict, load_feed, save_feed

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Map an RSS 1.0, RSS 2.0 or Atom document onto the unified model."
    )
    parser.add_argument(
        "source",
        nargs="?",
        help="Path to a local feed document.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the configuration XML file.",
    )

    # Overrides for logging/debugging
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

    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Reject documents with any well-formedness problem. Overrides config.",
    )
    parser.add_argument(
        "--clamp-images",
        action="store_true",
        default=None,
        help="Clamp the feed image to the RSS 2.0 maximum size. Overrides config.",
    )
    parser.add_argument(
        "--save-feed",
        metavar="PATH",
        help="Also write the mapped feed to PATH as a JSON snapshot.",
    )
    parser.add_argument(
        "--load-feed",
        metavar="PATH",
        help="Load a JSON snapshot from PATH instead of parsing a document.",
    )

    return parser


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _resolve_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unsupported log level: {level_name}")
    return level


def configure_logging(
    level_name: str, log_file: Optional[str] = None
) -> logging.Logger:
    """Route all loggers to the console and, optionally, a UTF-8 log file.

    Existing root handlers are closed and replaced so repeated calls do not
    duplicate output.
    """
    level = _resolve_level(level_name)

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    root_logger.setLevel(level)

    logger.debug(
        "Logging at %s to %s",
        logging.getLevelName(level),
        log_file or "console only",
    )
    return root_logger


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if bool(args.source) == bool(args.load_feed):
        parser.error("Provide either a feed document or --load-feed, but not both.")

    try:
        app_config = parse_app_config(args.config) if args.config else AppConfig()

        # CLI overrides config
        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file
        configure_logging(log_level, log_file)

        options = MappingOptions(
            strict=app_config.mapping.strict if args.strict is None else args.strict,
            clamp_images=(
                app_config.mapping.clamp_images
                if args.clamp_images is None
                else args.clamp_images
            ),
        )
        logger.debug("Mapping options: %s", options)

        if args.load_feed:
            feed = load_feed(args.load_feed)
        else:
            source = Path(args.source)
            if not source.exists():
                raise FileNotFoundError(f"Feed document not found: {source}")
            feed = parse_feed_document(source, options)

        if args.save_feed:
            save_feed(args.save_feed, feed, indent=app_config.output.indent)

        output_text = json.dumps(
            feed_to_dict(feed), indent=app_config.output.indent, ensure_ascii=False
        )
    except ValueError as exc:
        parser.error(str(exc))
    except (RuntimeError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    print(output_text)
    return 0
