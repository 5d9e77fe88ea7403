"""
Estate CRM Entry Point

Allows running the server directly via `python -m estate_crm`.
Configuration comes from the environment; --host, --port and --data-dir
override it.
"""

import argparse
import asyncio
import logging
import sys

from .core.config import ServerConfig
from .core.crm_server import CRMServer


def setup_logging(level: str = "INFO"):
    """Configure logging to stderr"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="estate_crm", description="Estate CRM server")
    parser.add_argument("--host", help="Interface to bind (CRM_HOST)")
    parser.add_argument("--port", type=int, help="Port to listen on (CRM_PORT)")
    parser.add_argument("--data-dir", help="Directory of the JSON documents (CRM_DATA_DIR)")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ServerConfig:
    config = ServerConfig.from_env()
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    if args.data_dir:
        config.data_dir = args.data_dir
    return config


async def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)
    config = build_config(args)
    setup_logging(config.log_level)
    logger = logging.getLogger("main")

    try:
        server = CRMServer(config)
        logger.info("Starting Estate CRM...")
        await server.run()
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


def cli():
    """Console script entry point"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    cli()
