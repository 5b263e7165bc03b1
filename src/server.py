"""Protean Engine runner for the tracking domain.

Processes OrderPlaced / OrderStatusChanged asynchronously in production:
projections (order summaries, customer stats) and the customer status
notification dispatcher.

Usage:
    PROTEAN_ENV=production python src/server.py
    python src/server.py --test-mode   # drain pending messages and exit
"""

import argparse
import asyncio

import structlog
from protean.server.engine import Engine

from tracking.domain import tracking
from tracking.utils.db import apply_persistence_timeouts
from tracking.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


async def run(test_mode: bool = False):
    apply_persistence_timeouts(tracking)
    tracking.init()
    logger.info("Starting tracking engine", domain=tracking.name, test_mode=test_mode)
    engine = Engine(tracking, test_mode=test_mode)
    await engine.run()


def main():
    parser = argparse.ArgumentParser(description="Tracking Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    configure_logging()
    asyncio.run(run(test_mode=args.test_mode))


if __name__ == "__main__":
    main()
