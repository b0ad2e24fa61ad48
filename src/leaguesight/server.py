"""
LeagueSight Web Server Entry Point

Provides the `leaguesight-web` command to start the FastAPI server.

Usage:
    leaguesight-web                    # Start on default port 7860
    leaguesight-web --port 8000        # Start on custom port
    leaguesight-web --host 127.0.0.1   # Bind to localhost only
    leaguesight-web --reload           # Enable auto-reload for development
"""

import argparse
import logging

import uvicorn

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="LeagueSight championship statistics - Web Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    leaguesight-web                     Start server on http://0.0.0.0:7860
    leaguesight-web --port 8000         Start on port 8000
    leaguesight-web --host 127.0.0.1    Bind to localhost only
    leaguesight-web --reload            Enable auto-reload (development)
        """,
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=7860,
        help="Port to bind to (default: 7860)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes (default: 1, each keeps its own memory cache)",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level (default: info)",
    )
    return parser


def main() -> None:
    """Start the LeagueSight web server."""
    args = build_parser().parse_args()

    logger.info("Starting LeagueSight web server on http://%s:%s", args.host, args.port)
    logger.info("Press Ctrl+C to stop")

    uvicorn.run(
        "leaguesight.api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers if not args.reload else 1,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
