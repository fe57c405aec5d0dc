"""Command-line interface for the ao3_feed service."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pprint
import sys
from pathlib import Path
from typing import List, Optional

from .config import AppConfig, parse_app_config
from .errors import FeedError
from .runner import RunConfig, execute

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Serve AO3 works as RSS feeds, one item per chapter."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the configuration XML file. Built-in defaults are used if omitted.",
    )

    # Overrides for the config file
    parser.add_argument("--host", default=None, help="Address to bind. Overrides config.")
    parser.add_argument(
        "--port", type=int, default=None, help="Port to listen on. Overrides config."
    )
    parser.add_argument(
        "--no-keepalive",
        action="store_true",
        help="Disable keep-alive markers while a feed is being built.",
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

    parser.add_argument(
        "--once",
        metavar="WORK_ID",
        help="Render the feed for WORK_ID to stdout instead of starting the server.",
    )

    return parser


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# uvicorn is started with log_config=None, so its loggers propagate to root.
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Send service and server logs to the console and, optionally, a file."""
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True
    # Feed readers poll constantly; one access line per poll is only useful when debugging.
    logging.getLogger("uvicorn.access").setLevel(
        logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    )

    logger.debug(
        "Logging at %s to %s",
        level_name.upper(),
        log_file or "console only",
    )


def serve(config: AppConfig) -> None:
    """Run the web app under uvicorn until interrupted."""
    import uvicorn

    from .app import create_app

    logger.info(
        "Serving feeds on http://%s:%d/work/<id>", config.server.host, config.server.port
    )
    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_config=None,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = parse_app_config(args.config) if args.config else AppConfig()

        # CLI overrides config
        if args.host:
            app_config.server.host = args.host
        if args.port is not None:
            app_config.server.port = args.port
        if args.no_keepalive:
            app_config.keepalive.enabled = False

        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file
        configure_logging(log_level, log_file)

        logger.info(
            "Active Configuration:\n%s", pprint.pformat(dataclasses.asdict(app_config))
        )

        if args.once:
            run_config = RunConfig(
                base_url=app_config.source.base_url,
                timeout=app_config.source.timeout,
                user_agent=app_config.source.user_agent,
            )
            payload = execute(args.once, run_config)
            sys.stdout.buffer.write(payload)
            sys.stdout.buffer.flush()
            return 0

        serve(app_config)
    except ValueError as exc:
        parser.error(str(exc))
    except FeedError as exc:
        logger.error("%s", exc.diagnostic())
        return 1
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    return 0
