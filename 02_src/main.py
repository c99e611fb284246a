"""Main entry point: runs the SIM workload against the faultline SDK."""

import asyncio
import os
from pathlib import Path

from dotenv import load_dotenv

import faultline
from faultline.config import load_options
from faultline.logging_config import get_logger, setup_logging
from sim import Sim

logger = get_logger(__name__)


async def run() -> None:
    """Initialise the SDK, replay the scenario and flush."""
    faultline.init(load_options())

    sim = Sim(
        min_delay=float(os.getenv("SIM_MIN_DELAY", "0.1")),
        max_delay=float(os.getenv("SIM_MAX_DELAY", "0.5")),
    )
    await sim.start()
    await sim.wait()

    flushed = await faultline.close()
    logger.info("SIM done: %s events captured, flushed=%s", len(sim.event_ids), flushed)


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    setup_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
