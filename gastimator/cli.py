"""gastimate: run the Ethereum gas estimator server."""

import argparse
import logging
import sys

import uvicorn

from gastimator.config import Settings
from gastimator.models.error import NoAlchemyApiKey

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gastimate",
        description="Estimates the Gas cost of a transaction on the Ethereum network.",
    )
    parser.add_argument("-a", "--address", default=None, help="The address of the server")
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="The port the server listens on (0-65535)",
    )
    parser.add_argument("-k", "--key", dest="alchemy_api_key", default=None, help="Alchemy API key")
    return parser


def resolve_settings(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    base = base or Settings()
    overrides = {}
    if args.address is not None:
        overrides["server_address"] = args.address
    if args.port is not None:
        if not 0 <= args.port <= 65535:
            raise ValueError(f"Port {args.port} outside 0-65535")
        overrides["server_port"] = args.port
    if args.alchemy_api_key:
        overrides["alchemy_api_key"] = args.alchemy_api_key

    resolved = base.model_copy(update=overrides)
    if not resolved.alchemy_api_key and not resolved.eth_rpc_url_override:
        raise NoAlchemyApiKey()
    return resolved


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        resolved = resolve_settings(args)
    except (NoAlchemyApiKey, ValueError) as exc:
        print(f"❌ {exc} ❌", file=sys.stderr)
        sys.exit(1)

    from gastimator.main import create_app
    from gastimator.reconciler import Reconciler

    app = create_app(Reconciler.from_settings(resolved))
    logger.info("Starting gastimate server on %s", resolved.address_with_port)
    uvicorn.run(
        app,
        host=resolved.server_address,
        port=resolved.server_port,
        log_level=resolved.log_level.lower(),
    )


if __name__ == "__main__":
    main()
