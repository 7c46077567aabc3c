"""
powledger - Main Entry Point

Sub-commands:
    serve   run the ledger server
    client  menu against a remote server
    local   menu against an in-process ledger
"""

import argparse
import logging
import sys
from typing import List, Optional

from .blockchain.ledger import create_blockchain
from .cli.menu import LocalBackend, RemoteBackend, run_menu
from .config import ServerConfig, DEFAULT_HOST, DEFAULT_PORT, CLIENT_TIMEOUT
from .core_crypto.hash_codec import DigestUnavailable
from .service.operations import OperationService
from .transport.client import RemoteClient
from .transport.server import BlockchainServer, TransportFailure


logger = logging.getLogger("powledger")


def build_parser(config: ServerConfig) -> argparse.ArgumentParser:
    """Build the argument parser, using config values as defaults."""
    parser = argparse.ArgumentParser(
        prog="powledger",
        description="Proof-of-work ledger with tamper and repair operations",
    )
    parser.add_argument(
        "--log-level", default=config.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: %(default)s)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the ledger server")
    serve.add_argument("--host", default=config.host)
    serve.add_argument("--port", type=int, default=config.port)
    serve.add_argument("--genesis-difficulty", type=int, default=config.genesis_difficulty)
    serve.add_argument(
        "--max-difficulty", type=int, default=config.max_difficulty,
        help="Reject blocks above this difficulty (default: no cap)",
    )
    serve.add_argument(
        "--no-benchmark", dest="benchmark", action="store_false",
        default=config.benchmark, help="Skip the hash rate benchmark",
    )

    client = sub.add_parser("client", help="Menu against a remote server")
    client.add_argument("--host", default=DEFAULT_HOST)
    client.add_argument("--port", type=int, default=DEFAULT_PORT)

    local = sub.add_parser("local", help="Menu against an in-process ledger")
    local.add_argument("--genesis-difficulty", type=int, default=config.genesis_difficulty)
    local.add_argument(
        "--no-benchmark", dest="benchmark", action="store_false",
        default=config.benchmark, help="Skip the hash rate benchmark",
    )
    return parser


def serve(args: argparse.Namespace) -> int:
    blockchain = create_blockchain(
        genesis_difficulty=args.genesis_difficulty,
        benchmark=args.benchmark,
    )
    service = OperationService(blockchain, max_difficulty=args.max_difficulty)
    server = BlockchainServer(service, args.host, args.port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.shutdown()
    return 0


def client(args: argparse.Namespace) -> int:
    backend = RemoteBackend(RemoteClient(args.host, args.port, timeout=CLIENT_TIMEOUT))
    try:
        return run_menu(backend)
    finally:
        backend.close()


def local(args: argparse.Namespace) -> int:
    blockchain = create_blockchain(
        genesis_difficulty=args.genesis_difficulty,
        benchmark=args.benchmark,
    )
    return run_menu(LocalBackend(OperationService(blockchain)))


COMMANDS = {
    "serve": serve,
    "client": client,
    "local": local,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for powledger."""
    config = ServerConfig.from_env()
    args = build_parser(config).parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return COMMANDS[args.command](args)
    except DigestUnavailable as e:
        logger.critical("Cannot start: %s", e)
        return 1
    except TransportFailure as e:
        logger.error("Connection failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
