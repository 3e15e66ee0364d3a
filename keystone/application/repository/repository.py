from abc import ABC, abstractmethod

from ulid import ULID

from ...domain import (
    ConflictError,
    Customer,
    CustomerNotFoundError,
    EmailAlreadyExistsError,
    SortOrder,
    utc_now,
)


def validate_sort(sort_field: str, order: str) -> None:
    """Reject sort parameters outside the supported listing keys.

    Raises:
        ValueError: If the field is not sortable or the order is not asc/desc.
    """
    if sort_field not in Customer.SORTABLE_FIELDS:
        raise ValueError(f"Cannot sort customers by {sort_field!r}")
    if order not in ("asc", "desc"):
        raise ValueError(f"Sort order must be 'asc' or 'desc', got {order!r}")


def new_customer_id() -> str:
    return str(ULID())


class CustomerRepository(ABC):
    """Persistence contract for customers.

    `update` and `delete` report a missing record differently on purpose:
    `update` raises `CustomerNotFoundError` so a partial update of a record
    that never existed is surfaced, while `delete` returns False so callers
    can treat "already gone" as success.
    """

    @abstractmethod
    async def find_all(
        self, sort_field: str = "created_at", order: SortOrder = "desc"
    ) -> list[Customer]: ...

    @abstractmethod
    async def find_by_id(self, customer_id: str) -> Customer | None: ...

    @abstractmethod
    async def find_by_email(self, email: str) -> Customer | None: ...

    @abstractmethod
    async def create(self, customer: Customer) -> Customer:
        """Persist a new customer, assigning an id when it has none.

        Raises:
            EmailAlreadyExistsError: If another customer has the same email.
        """
        ...

    @abstractmethod
    async def update(self, customer: Customer) -> Customer:
        """Persist changes to an existing customer.

        Raises:
            CustomerNotFoundError: If no customer has this id.
            EmailAlreadyExistsError: If the new email belongs to another customer.
        """
        ...

    @abstractmethod
    async def delete(self, customer_id: str) -> bool:
        """Remove a customer. Returns False when it did not exist."""
        ...


class InMemoryCustomerRepository(CustomerRepository):
    """Dict-backed repository for tests and local runs.

    Every read and write hands out copies, so callers never share mutable
    state with the repository or with each other.
    """

    def __init__(self) -> None:
        self._customers: dict[str, Customer] = {}

    async def find_all(
        self, sort_field: str = "created_at", order: SortOrder = "desc"
    ) -> list[Customer]:
        validate_sort(sort_field, order)
        customers = sorted(
            self._customers.values(),
            key=lambda c: getattr(c, sort_field),
            reverse=order == "desc",
        )
        return [c.model_copy(deep=True) for c in customers]

    async def find_by_id(self, customer_id: str) -> Customer | None:
        customer = self._customers.get(customer_id)
        return customer.model_copy(deep=True) if customer else None

    async def find_by_email(self, email: str) -> Customer | None:
        for customer in self._customers.values():
            if customer.email == email:
                return customer.model_copy(deep=True)
        return None

    async def create(self, customer: Customer) -> Customer:
        if customer.id is not None and customer.id in self._customers:
            raise ConflictError(f"Customer with id {customer.id} already exists")
        self._check_email_free(customer.email, exclude_id=None)
        stored = customer.model_copy(deep=True, update={"id": customer.id or new_customer_id()})
        self._customers[stored.id] = stored  # type: ignore[index]
        return stored.model_copy(deep=True)

    async def update(self, customer: Customer) -> Customer:
        if customer.id is None or customer.id not in self._customers:
            raise CustomerNotFoundError(str(customer.id))
        self._check_email_free(customer.email, exclude_id=customer.id)

        existing = self._customers[customer.id]
        stored = customer.model_copy(
            deep=True, update={"created_at": existing.created_at, "updated_at": utc_now()}
        )
        self._customers[customer.id] = stored
        return stored.model_copy(deep=True)

    async def delete(self, customer_id: str) -> bool:
        return self._customers.pop(customer_id, None) is not None

    def _check_email_free(self, email: str, exclude_id: str | None) -> None:
        for customer in self._customers.values():
            if customer.email == email and customer.id != exclude_id:
                raise EmailAlreadyExistsError(email)
