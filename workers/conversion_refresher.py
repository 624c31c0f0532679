import asyncio
import logging
import signal

from application.services import CurrencyConversionManager
from application.services.service_factory import ServiceFactory
from config.logging import configure_logging
from config.settings import get_settings

logger = logging.getLogger(__name__)


class ConversionRefresher:
    """
    Background worker that drives the conversion manager on a fixed cadence.

    Ticks run strictly one after another. A failed tick is logged and the
    next one simply tries again; previously published conversions keep
    being served in the meantime.
    """
    def __init__(self, manager: CurrencyConversionManager, interval_seconds: float = 15):
        self.manager = manager
        self.interval_seconds = interval_seconds
        self.is_running = False
        self.consecutive_failures = 0

    async def run_once(self) -> bool:
        try:
            await self.manager.update_cache_if_necessary()
        except Exception:
            self.consecutive_failures += 1
            logger.error(
                f"Currency conversion refresh failed ({self.consecutive_failures} in a row)",
                exc_info=True,
            )
            return False

        self.consecutive_failures = 0
        return True

    async def run(self) -> None:
        self.is_running = True
        logger.info(f"Conversion refresher started, ticking every {self.interval_seconds}s")

        while self.is_running:
            try:
                await self.run_once()
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                logger.info("Conversion refresher received cancellation signal")
                break

        self.is_running = False
        logger.info("Conversion refresher stopped")

    def stop(self) -> None:
        logger.info("Stopping conversion refresher...")
        self.is_running = False


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    factory = ServiceFactory(settings)
    refresher = ConversionRefresher(factory.create_manager(), settings.REFRESH_TICK_SECONDS)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, refresher.stop)

    try:
        await refresher.run()
    finally:
        await factory.cleanup()


if __name__ == "__main__":
    asyncio.run(main())
