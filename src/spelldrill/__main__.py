"""Main entry point for the spelling drill."""
import asyncio
import logging

from spelldrill import __version__
from spelldrill.app import SpellDrillApp
from spelldrill.config import settings
from spelldrill.logging_config import setup_logging
from spelldrill.monitoring import start_monitoring

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the console game."""
    setup_logging(f"Starting SpellDrill v{__version__} ...")

    if settings.monitoring.port:
        start_monitoring(settings.monitoring.port)
        logger.info("Metrics exported on port %d", settings.monitoring.port)

    # Create and set event loop
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    app = SpellDrillApp()

    try:
        loop.run_until_complete(app.run())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        loop.run_until_complete(app.stop())
        loop.close()


if __name__ == "__main__":
    main()
