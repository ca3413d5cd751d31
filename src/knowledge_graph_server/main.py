"""Command line entry point for the knowledge graph server.

Run modes:
- stdio: MCP server over stdin/stdout (default)
- http: FastAPI gateway served by Uvicorn

Usage:
    # MCP over stdio, graph stored in the home directory
    knowledge-graph-server

    # Graph stored in a project directory
    knowledge-graph-server --storage-path ./memory

    # HTTP gateway
    KG_RUN_MODE=http knowledge-graph-server
    python -m knowledge_graph_server.main --mode http
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from knowledge_graph_server.api.router import create_app
from knowledge_graph_server.config import Settings, get_settings
from knowledge_graph_server.mcp_server import serve_stdio


class RunMode(str, Enum):
    """Available run modes for the application."""

    STDIO = "stdio"
    HTTP = "http"


def configure_logging(settings: Settings) -> None:
    """Configure structlog for structured logging.

    Logs always go to stderr: in stdio mode stdout carries the MCP protocol.

    Args:
        settings: Application settings containing log configuration.
    """
    shared_processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.app.log_format == "json":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.app.log_level),
        force=True,
    )

    # Set third-party loggers to WARNING to reduce noise
    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error", "mcp"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="knowledge-graph-server",
        description="Persistent knowledge graph server (MCP stdio or HTTP)",
    )
    parser.add_argument(
        "--storage-path",
        "-s",
        type=Path,
        default=None,
        help=(
            "Directory for the graph file, or the .json file itself "
            "(default: KG_STORAGE_PATH, else the home directory)"
        ),
    )
    parser.add_argument(
        "--mode",
        "-m",
        type=str,
        choices=[m.value for m in RunMode],
        default=None,
        help="Run mode: stdio or http (default: KG_RUN_MODE, else stdio)",
    )
    return parser


def get_run_mode(args: argparse.Namespace, settings: Settings) -> RunMode:
    """Determine the run mode from CLI args, falling back to settings."""
    if args.mode:
        return RunMode(args.mode)
    return RunMode(settings.app.run_mode)


async def run_stdio(settings: Settings, storage_path: Path | None = None) -> None:
    """Serve MCP over stdio until EOF, SIGINT or SIGTERM.

    Args:
        settings: Application settings.
        storage_path: Overrides the configured storage directory.
    """
    log = structlog.get_logger(__name__).bind(component="stdio")
    loop = asyncio.get_running_loop()
    server_task = asyncio.create_task(serve_stdio(settings, storage_path))

    def request_stop(signum: int) -> None:
        log.info("signal_received", signal=signal.Signals(signum).name)
        server_task.cancel()

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, request_stop, signum)
        except (NotImplementedError, RuntimeError):
            # Signal handling only works in the main thread on Unix
            log.warning("signal_handler_not_registered", signal=signum.name)

    try:
        await server_task
    except asyncio.CancelledError:
        log.info("stdio_server_stopped")
    finally:
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(signum)
            except (NotImplementedError, RuntimeError):
                pass


def run_uvicorn(settings: Settings, storage_path: Path | None = None) -> None:
    """Run the HTTP gateway with Uvicorn.

    Uvicorn handles SIGINT/SIGTERM itself and shuts down gracefully.

    Args:
        settings: Application settings.
        storage_path: Overrides the configured storage directory.
    """
    log = structlog.get_logger(__name__)
    log.info(
        "starting_uvicorn",
        host=settings.app.api_host,
        port=settings.app.api_port,
        debug=settings.app.debug,
    )

    app = create_app(settings, storage_path=storage_path)
    uvicorn.run(
        app,
        host=settings.app.api_host,
        port=settings.app.api_port,
        log_level=settings.app.log_level.lower(),
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for the application.

    Exits with status 0 on a clean shutdown (EOF, SIGINT, SIGTERM) and 1 if
    the server cannot start, for example because the graph file is corrupted.
    """
    args = build_parser().parse_args(argv)
    settings = get_settings()
    run_mode = get_run_mode(args, settings)

    configure_logging(settings)

    log = structlog.get_logger(__name__)
    log.info(
        "main_starting",
        run_mode=run_mode.value,
        app_name=settings.app.app_name,
        version=settings.app.app_version,
    )

    try:
        if run_mode == RunMode.HTTP:
            run_uvicorn(settings, args.storage_path)
        else:
            asyncio.run(run_stdio(settings, args.storage_path))
    except KeyboardInterrupt:
        log.info("application_interrupted")
    except Exception as e:
        log.error(
            "application_fatal_error",
            error_type=type(e).__name__,
            error_message=str(e),
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
