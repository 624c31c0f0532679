import asyncio
import contextlib
import logging

from application.services import CurrencyConversionManager
from application.services.service_factory import ServiceFactory
from config.settings import get_settings
from workers.conversion_refresher import ConversionRefresher

logger = logging.getLogger(__name__)


class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	factory: ServiceFactory | None = None
	manager: CurrencyConversionManager | None = None
	refresher: ConversionRefresher | None = None
	refresher_task: asyncio.Task | None = None


deps = AppDependencies()


def init_dependencies() -> None:
	"""Initialize all singleton dependencies. Called at app startup."""
	logger.info('Initializing dependencies...')
	settings = get_settings()

	deps.factory = ServiceFactory(settings)
	deps.manager = deps.factory.create_manager()
	deps.refresher = ConversionRefresher(deps.manager, settings.REFRESH_TICK_SECONDS)
	logger.info('Dependencies initialized')


def start_refresher() -> None:
	if deps.refresher is None:
		raise RuntimeError('Dependencies not initialized. Call init_dependencies() first.')
	deps.refresher_task = asyncio.create_task(deps.refresher.run())


async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	if deps.refresher:
		deps.refresher.stop()
	if deps.refresher_task:
		deps.refresher_task.cancel()
		with contextlib.suppress(asyncio.CancelledError):
			await deps.refresher_task
	if deps.factory:
		await deps.factory.cleanup()

	logger.info('Cleanup complete')


def get_conversion_manager() -> CurrencyConversionManager:
	if deps.manager is None:
		raise RuntimeError('Conversion manager not initialized')
	return deps.manager
