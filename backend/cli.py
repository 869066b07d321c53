"""
AirKit command line

    python backend/cli.py status   print the state of every air-conditioner
    python backend/cli.py serve    run the accessory API and control loop
"""

import argparse
import os
import sys

import log_config  # noqa: F401
from loguru import logger

from airkit.exceptions import AirKitError
from airkit.myplace_client import MyPlaceClient
from airkit.settings import load_settings
from airkit.status import format_system


def status(args: argparse.Namespace) -> int:
    """Print the status of air-conditioning units."""
    try:
        settings = load_settings(args.config)
        client = MyPlaceClient(
            settings.api_host, settings.api_port, timeout=settings.request_timeout
        )
        system = client.read(timeout=settings.read_timeout)
    except AirKitError as e:
        logger.error(str(e))
        return 1

    print(format_system(system))
    return 0


def serve(args: argparse.Namespace) -> int:
    """Run the accessory API server."""
    import uvicorn

    uvicorn.run("app:app", host=args.host, port=args.port, app_dir=os.path.dirname(__file__))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="airkit", description="MyPlace accessory bridge")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    commands = parser.add_subparsers(dest="command", required=True)

    status_cmd = commands.add_parser("status", help="Print the status of air-conditioning units")
    status_cmd.set_defaults(func=status)

    serve_cmd = commands.add_parser("serve", help="Run the accessory API server")
    serve_cmd.add_argument("--host", default="0.0.0.0")
    serve_cmd.add_argument("--port", type=int, default=8080)
    serve_cmd.set_defaults(func=serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
