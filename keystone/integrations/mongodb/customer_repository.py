"""MongoDB implementation of CustomerRepository.

This module is the only code that speaks MongoDB's query and update
primitives for customers. Documents are mapped to and from `Customer` at the
boundary so no BSON types leak out.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from bson.decimal128 import Decimal128
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ...application.repository import CustomerRepository, new_customer_id, validate_sort
from ...domain import (
    ConflictError,
    Customer,
    CustomerNotFoundError,
    EmailAlreadyExistsError,
    SortOrder,
    utc_now,
)
from .connection import ConnectionManager

LOGGER = logging.getLogger(__name__)


def _to_millis(value: datetime) -> datetime:
    # BSON dates only hold milliseconds.
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


class MongoDBCustomerRepository(CustomerRepository):
    """MongoDB implementation of the CustomerRepository interface.

    Collections:
        - customers (configurable): one document per customer

    Document structure:
        {
            "_id": "01J9Z3K4X8...",         # ULID string
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@example.com",     # unique index
            "phone": "555-0100",
            "address": "12 Analytical Row",
            "available_credit": Decimal128("150"),  # sort index
            "created_at": ISODate(...),
            "updated_at": ISODate(...)
        }

    Examples:
        >>> manager = ConnectionManager(MongoDBConfig(uri="mongodb://localhost:27017"))
        >>> await manager.connect()
        >>> repository = MongoDBCustomerRepository(manager)
        >>> await repository.initialize_schema()
        >>> customer = await repository.create(Customer(...))
    """

    def __init__(self, connection_manager: ConnectionManager, collection_name: str | None = None):
        """Initialize the MongoDB customer repository.

        Args:
            connection_manager: Supervisor owning the connection pool
            collection_name: Overrides the collection from the manager's config
        """
        self.connection_manager = connection_manager
        self.collection_name = collection_name or connection_manager.config.collection

    @property
    def _customers(self):
        """Get the customers collection."""
        return self.connection_manager.database[self.collection_name]

    async def initialize_schema(self) -> None:
        """Create necessary indexes for customer storage.

        Creates:
            - Unique index on email
            - Index on available_credit for credit-sorted listings
        """
        await self._customers.create_index([("email", ASCENDING)], unique=True)
        await self._customers.create_index([("available_credit", ASCENDING)])

    async def find_all(
        self, sort_field: str = "created_at", order: SortOrder = "desc"
    ) -> list[Customer]:
        validate_sort(sort_field, order)
        LOGGER.debug("Finding all customers", extra={"sort_field": sort_field, "order": order})

        direction = ASCENDING if order == "asc" else DESCENDING
        cursor = self._customers.find().sort(sort_field, direction)
        return [self._to_entity(doc) async for doc in cursor]

    async def find_by_id(self, customer_id: str) -> Customer | None:
        LOGGER.debug("Finding customer by ID", extra={"customer_id": customer_id})

        doc = await self._customers.find_one({"_id": customer_id})
        return self._to_entity(doc) if doc else None

    async def find_by_email(self, email: str) -> Customer | None:
        LOGGER.debug("Finding customer by email")

        doc = await self._customers.find_one({"email": email})
        return self._to_entity(doc) if doc else None

    async def create(self, customer: Customer) -> Customer:
        customer_id = customer.id or new_customer_id()
        LOGGER.debug("Creating customer", extra={"customer_id": customer_id})

        doc = {
            "_id": customer_id,
            **self._mutable_fields(customer),
            "created_at": _to_millis(customer.created_at),
            "updated_at": _to_millis(customer.updated_at),
        }
        try:
            await self._customers.insert_one(doc)
        except DuplicateKeyError as err:
            raise self._conflict(err, customer_id, customer.email) from err
        return self._to_entity(doc)

    async def update(self, customer: Customer) -> Customer:
        LOGGER.debug("Updating customer", extra={"customer_id": customer.id})
        if customer.id is None:
            raise CustomerNotFoundError("None")

        try:
            doc = await self._customers.find_one_and_update(
                {"_id": customer.id},
                {
                    "$set": {
                        **self._mutable_fields(customer),
                        "updated_at": _to_millis(utc_now()),
                    }
                },
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as err:
            raise self._conflict(err, customer.id, customer.email) from err

        if doc is None:
            raise CustomerNotFoundError(customer.id)
        return self._to_entity(doc)

    async def delete(self, customer_id: str) -> bool:
        LOGGER.debug("Deleting customer", extra={"customer_id": customer_id})

        result = await self._customers.delete_one({"_id": customer_id})
        return result.deleted_count == 1

    @staticmethod
    def _conflict(err: DuplicateKeyError, customer_id: str, email: str) -> ConflictError:
        key_pattern = (err.details or {}).get("keyPattern") or {}
        if "email" in key_pattern:
            return EmailAlreadyExistsError(email)
        return ConflictError(f"Customer with id {customer_id} already exists")

    @staticmethod
    def _mutable_fields(customer: Customer) -> dict[str, Any]:
        return {
            "first_name": customer.first_name,
            "last_name": customer.last_name,
            "email": customer.email,
            "phone": customer.phone,
            "address": customer.address,
            "available_credit": Decimal128(customer.available_credit),
        }

    @staticmethod
    def _to_entity(doc: dict[str, Any]) -> Customer:
        credit = doc.get("available_credit", Decimal("0"))
        if isinstance(credit, Decimal128):
            credit = credit.to_decimal()
        return Customer(
            id=str(doc["_id"]),
            first_name=doc["first_name"],
            last_name=doc["last_name"],
            email=doc["email"],
            phone=doc["phone"],
            address=doc["address"],
            available_credit=credit,
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )
