import logging
from contextlib import suppress
from types import TracebackType

from ..config import Settings
from ..integrations.mongodb import ConnectionManager, MongoDBCustomerRepository
from ..integrations.redis import RedisCacheStore
from .cache import CacheStore
from .events import EventChannel
from .health import HealthCheck
from .repository import CachedCustomerRepository, CustomerRepository
from .services import CustomerService

LOGGER = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Install a basic root handler at the given level.

    Args:
        level: String representation of the log level (e.g.,
            "INFO", "DEBUG"). Case-insensitive.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class Application:
    """Composition root of the customer data-access layer.

    Builds every component from one Settings object and owns their
    lifecycle. Teardown is two-phase: first the application stops accepting
    operations, then the cache connection and the store pool are released.
    Using the application as an async context manager guarantees teardown on
    every exit path, including a failed startup.

    Examples:
        >>> async with Application(Settings()) as app:
        ...     customer = await app.customers.get_customer(customer_id)
        ...     report = await app.health.check()
    """

    def __init__(
        self,
        settings: Settings,
        connection_manager: ConnectionManager | None = None,
        cache: CacheStore | None = None,
        store: CustomerRepository | None = None,
    ):
        self.settings = settings
        self.events = EventChannel()
        self.connection_manager = connection_manager or ConnectionManager(
            settings.mongo, settings.retry, self.events
        )
        self.cache = cache or RedisCacheStore(settings.redis)
        self.store = store or MongoDBCustomerRepository(self.connection_manager)
        self.repository = CachedCustomerRepository(
            self.store, self.cache, settings.redis.default_ttl_seconds
        )
        self._customers = CustomerService(self.repository)
        self.health = HealthCheck(
            self.connection_manager,
            self.cache if isinstance(self.cache, RedisCacheStore) else None,
            self.events,
        )
        self.accepting = False

    async def start(self) -> None:
        """Connect the cache and the store.

        A cache that cannot be reached is logged and bypassed. A store that
        cannot be reached raises once the retry budget is spent.

        Raises:
            StoreConnectionError: If MongoDB stays unreachable.
        """
        configure_logging(self.settings.log_level)
        LOGGER.info("Starting application")

        if isinstance(self.cache, RedisCacheStore):
            await self.cache.connect()
        await self.connection_manager.connect()
        if isinstance(self.store, MongoDBCustomerRepository):
            await self.store.initialize_schema()

        self.accepting = True
        LOGGER.info("Application started")

    async def stop(self) -> None:
        """Stop accepting operations, then release the cache and the pool.

        Both resources are released even if releasing the other one fails;
        the first failure is re-raised afterwards.
        """
        LOGGER.info("Shutting down application")
        self.accepting = False
        self.health.close()

        error: BaseException | None = None
        for release in (self.cache.shutdown, self.connection_manager.disconnect):
            try:
                await release()
            except Exception as err:
                LOGGER.error("Error releasing resource", extra={"error": str(err)})
                error = error or err

        if error is not None:
            raise error
        LOGGER.info("Application stopped")

    @property
    def customers(self) -> CustomerService:
        """The customer service, available between start and stop.

        Raises:
            RuntimeError: Before startup completes or once shutdown begins.
        """
        if not self.accepting:
            raise RuntimeError("Application is not accepting operations")
        return self._customers

    async def __aenter__(self) -> "Application":
        try:
            await self.start()
        except BaseException:
            # Release whatever was opened; the startup error is what surfaces.
            with suppress(Exception):
                await self.stop()
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.stop()
