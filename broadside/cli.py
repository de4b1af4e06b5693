import argparse
import logging
import sys
from typing import List, Optional

from .config import DEFAULT_CONNECT_TIMEOUT, DEFAULT_FPS, DEFAULT_LOG_LEVEL, SERVER_URL_ENV, Config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Broadside - networked Battleship client")
    parser.add_argument("--log-level", type=str.upper, default=DEFAULT_LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity")
    subparsers = parser.add_subparsers(dest="mode", required=True)

    join_p = subparsers.add_parser("join", help="Connect to a game server")
    join_p.add_argument("--url", type=str, default=None,
                        help=f"Server WebSocket URL (default: ${SERVER_URL_ENV} or ws://127.0.0.1:3000/ws)")
    join_p.add_argument("--timeout", type=float, default=DEFAULT_CONNECT_TIMEOUT, help="Connect timeout in seconds")
    join_p.add_argument("--fps", type=int, default=DEFAULT_FPS, help="Frame rate cap")
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    return Config(
        server_url=args.url,
        connect_timeout=args.timeout,
        fps=args.fps,
        log_level=args.log_level,
    )


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = config_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.mode == "join":
        # pygame is only needed for the window
        from .gui import run_client_gui
        run_client_gui(config)
