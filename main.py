#!/usr/bin/env python3
import asyncio
import logging
import sys
from typing import Optional

from dotenv import load_dotenv

import constants
from config import load_config
from keeper import KeeperMonitor
from services.chain_client import ChainClient

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def build_monitor(config) -> KeeperMonitor:
    client = ChainClient.from_config(config)
    return KeeperMonitor.from_config(config, client)


def main(argv: Optional[list[str]] = None) -> int:
    """The main synchronous entry point for the application."""
    load_dotenv()
    config = load_config(argv)
    setup_logging(config.log_level)

    try:
        monitor = build_monitor(config)
    except Exception as exc:
        print(f"{constants.C_RED}Failed to initialise keeper: {exc}{constants.C_RESET}")
        return 1

    if config.single_shot:
        try:
            result = asyncio.run(monitor.run_once())
        except KeyboardInterrupt:
            logger.info("stopping...")
            return 0
        if result.triggered:
            logger.info("Single-shot run triggered %s", result.tx_hash)
        return 1 if result.is_unexpected_error else 0

    try:
        asyncio.run(monitor.start())
    except KeyboardInterrupt:
        logger.info("stopping...")
        monitor.log_stats()
        return 0
    except Exception as exc:
        logger.critical("FATAL: %s", exc, exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
