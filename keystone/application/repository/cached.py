import logging
from typing import Any

from pydantic import ValidationError

from ...domain import CacheTransportError, Customer, SortOrder
from ..cache import CacheStore, all_collection_keys, collection_key, entity_key
from .repository import CustomerRepository, validate_sort

LOGGER = logging.getLogger(__name__)


class CachedCustomerRepository(CustomerRepository):
    """Cache-aside decorator around another customer repository.

    Reads check the cache first and backfill it from the wrapped repository
    on a miss. Writes always go to the wrapped repository first; only after
    they succeed is the cache updated (single-customer entries) or
    invalidated (sorted listings).

    The wrapped repository is the source of truth. Its errors propagate
    unchanged, while cache failures are logged and degrade to a miss on
    reads or a skipped step on writes. A listing whose invalidation failed
    may therefore be served stale for at most one TTL window.

    Same-key operations are not serialized here: a concurrent read may see
    the snapshot from before or after a write. Conflicting writes are
    last-writer-wins at the store.

    Examples:
        >>> repository = CachedCustomerRepository(
        ...     MongoDBCustomerRepository(connection_manager),
        ...     RedisCacheStore(redis_config),
        ...     ttl_seconds=3600,
        ... )
        >>> customer = await repository.find_by_id("01J9...")
    """

    __slots__ = ("repository", "cache", "ttl_seconds")

    def __init__(
        self,
        repository: CustomerRepository,
        cache: CacheStore,
        ttl_seconds: int | None = None,
    ):
        self.repository = repository
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def find_all(
        self, sort_field: str = "created_at", order: SortOrder = "desc"
    ) -> list[Customer]:
        validate_sort(sort_field, order)
        key = collection_key(sort_field, order)

        cached = await self._read(key)
        if isinstance(cached, list):
            try:
                customers = [Customer.model_validate(item) for item in cached]
            except ValidationError:
                await self._discard_corrupt(key)
            else:
                LOGGER.debug(
                    "Cache hit for sorted customers",
                    extra={"sort_field": sort_field, "order": order},
                )
                return customers

        customers = await self.repository.find_all(sort_field, order)
        await self._write(key, [c.model_dump(mode="json") for c in customers])
        LOGGER.debug("Stored sorted customers in cache", extra={"count": len(customers)})
        return customers

    async def find_by_id(self, customer_id: str) -> Customer | None:
        key = entity_key(customer_id)

        cached = await self._read(key)
        if isinstance(cached, dict):
            try:
                customer = Customer.model_validate(cached)
            except ValidationError:
                await self._discard_corrupt(key)
            else:
                LOGGER.debug("Cache hit for customer", extra={"customer_id": customer_id})
                return customer

        customer = await self.repository.find_by_id(customer_id)
        if customer is not None:
            await self._write(key, customer.model_dump(mode="json"))
            LOGGER.debug("Stored customer in cache", extra={"customer_id": customer_id})
        return customer

    async def find_by_email(self, email: str) -> Customer | None:
        # Alternate-key lookups are rare (uniqueness checks), so they are not
        # worth a second cache index and its invalidation.
        return await self.repository.find_by_email(email)

    async def create(self, customer: Customer) -> Customer:
        created = await self.repository.create(customer)
        await self._invalidate_collections()
        await self._write(entity_key(created.id), created.model_dump(mode="json"))  # type: ignore[arg-type]
        return created

    async def update(self, customer: Customer) -> Customer:
        updated = await self.repository.update(customer)
        await self._write(entity_key(updated.id), updated.model_dump(mode="json"))  # type: ignore[arg-type]
        await self._invalidate_collections()
        return updated

    async def delete(self, customer_id: str) -> bool:
        deleted = await self.repository.delete(customer_id)
        if deleted:
            await self._remove(entity_key(customer_id))
            await self._invalidate_collections()
        return deleted

    async def _invalidate_collections(self) -> None:
        for key in all_collection_keys():
            await self._remove(key)
        LOGGER.debug("Invalidated customer collections in cache")

    async def _discard_corrupt(self, key: str) -> None:
        LOGGER.warning("Discarding undecodable cache entry", extra={"key": key})
        await self._remove(key)

    async def _read(self, key: str) -> Any | None:
        try:
            return await self.cache.get(key)
        except CacheTransportError as err:
            LOGGER.error("Error reading from cache", extra={"key": key, "error": str(err)})
            return None

    async def _write(self, key: str, value: Any) -> None:
        try:
            await self.cache.set(key, value, self.ttl_seconds)
        except CacheTransportError as err:
            LOGGER.error("Error writing to cache", extra={"key": key, "error": str(err)})

    async def _remove(self, key: str) -> None:
        try:
            await self.cache.delete(key)
        except CacheTransportError as err:
            LOGGER.error("Error removing from cache", extra={"key": key, "error": str(err)})
