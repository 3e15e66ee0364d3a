"""Customer use cases on top of a CustomerRepository."""

import logging
from decimal import Decimal

from ..domain import Customer, CustomerNotFoundError, EmailAlreadyExistsError, SortOrder
from .repository import CustomerRepository

LOGGER = logging.getLogger(__name__)


class CustomerService:
    """Application-level operations on customers.

    The service only talks to the repository contract, so it works the same
    against the cached repository, the bare store, or the in-memory
    repository used in tests. Each call loads its own copy of the customer;
    nothing is shared between concurrent requests.

    Examples:
        >>> service = CustomerService(repository)
        >>> customer = await service.create_customer(
        ...     first_name="Ada",
        ...     last_name="Lovelace",
        ...     email="ada@example.com",
        ...     phone="555-0100",
        ...     address="12 Analytical Row",
        ...     available_credit=Decimal("100"),
        ... )
        >>> await service.add_credit(customer.id, Decimal("50"))
    """

    def __init__(self, repository: CustomerRepository):
        self.repository = repository

    async def create_customer(
        self,
        first_name: str,
        last_name: str,
        email: str,
        phone: str,
        address: str,
        available_credit: Decimal = Decimal("0"),
    ) -> Customer:
        """Create a customer with a unique email.

        Raises:
            EmailAlreadyExistsError: If the email is already taken.
            pydantic.ValidationError: If a field violates the customer's rules.
        """
        LOGGER.info("Creating new customer")

        if await self.repository.find_by_email(email) is not None:
            LOGGER.warning("Customer with this email already exists")
            raise EmailAlreadyExistsError(email)

        customer = Customer(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            address=address,
            available_credit=available_credit,
        )
        saved = await self.repository.create(customer)
        LOGGER.info("Customer created successfully", extra={"customer_id": saved.id})
        return saved

    async def get_customer(self, customer_id: str) -> Customer:
        customer = await self.repository.find_by_id(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    async def update_customer(self, customer_id: str, **changes: str) -> Customer:
        LOGGER.info("Updating customer", extra={"customer_id": customer_id, "fields": sorted(changes)})

        customer = await self.get_customer(customer_id)
        customer.change_details(**changes)
        return await self.repository.update(customer)

    async def delete_customer(self, customer_id: str) -> bool:
        LOGGER.info("Deleting customer", extra={"customer_id": customer_id})

        deleted = await self.repository.delete(customer_id)
        if not deleted:
            LOGGER.warning("Customer not found for deletion", extra={"customer_id": customer_id})
        return deleted

    async def add_credit(self, customer_id: str, amount: Decimal) -> Customer:
        LOGGER.info("Adding credit to customer", extra={"customer_id": customer_id})

        customer = await self.get_customer(customer_id)
        customer.add_credit(amount)
        updated = await self.repository.update(customer)
        LOGGER.info(
            "Credit added successfully",
            extra={"customer_id": customer_id, "new_credit": str(updated.available_credit)},
        )
        return updated

    async def use_credit(self, customer_id: str, amount: Decimal) -> Customer:
        """Spend credit.

        Raises:
            CustomerNotFoundError: If the customer does not exist.
            InsufficientCreditError: If the balance does not cover the amount.
        """
        LOGGER.info("Using credit from customer", extra={"customer_id": customer_id})

        customer = await self.get_customer(customer_id)
        customer.use_credit(amount)
        updated = await self.repository.update(customer)
        LOGGER.info(
            "Credit used successfully",
            extra={"customer_id": customer_id, "new_credit": str(updated.available_credit)},
        )
        return updated

    async def list_customers(
        self, sort_field: str = "created_at", order: SortOrder = "desc"
    ) -> list[Customer]:
        return await self.repository.find_all(sort_field, order)

    async def list_customers_by_credit(self, order: SortOrder = "desc") -> list[Customer]:
        customers = await self.repository.find_all("available_credit", order)
        LOGGER.info("Retrieved sorted customers", extra={"count": len(customers)})
        return customers
