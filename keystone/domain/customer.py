from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import InsufficientCreditError

SortOrder = Literal["asc", "desc"]


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class Customer(BaseModel):
    """A customer record with a credit balance.

    The customer owns its own invariants: the email must look like an email
    address and `available_credit` can never drop below zero. Every mutating
    method refreshes `updated_at`.

    The identity is `None` until a repository assigns one on create; once
    assigned it cannot be changed.

    Examples:
        >>> customer = Customer(
        ...     first_name="Ada",
        ...     last_name="Lovelace",
        ...     email="ada@example.com",
        ...     phone="555-0100",
        ...     address="12 Analytical Row",
        ...     available_credit=Decimal("100"),
        ... )
        >>> customer.add_credit(Decimal("50"))
        >>> customer.available_credit
        Decimal('150')

    Attributes:
        id: Store-assigned identifier (a ULID string).
        available_credit: Credit balance, never negative.
        created_at: Set once when the customer is first built.
        updated_at: Refreshed on every mutation.
    """

    model_config = ConfigDict(validate_assignment=True)

    MUTABLE_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"first_name", "last_name", "email", "phone", "address"}
    )
    SORTABLE_FIELDS: ClassVar[tuple[str, ...]] = (
        "created_at",
        "updated_at",
        "available_credit",
        "last_name",
        "email",
    )

    id: str | None = Field(default=None, frozen=True)
    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    available_credit: Decimal = Field(default=Decimal("0"), ge=0)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("Invalid email format")
        return value

    def add_credit(self, amount: Decimal) -> None:
        """Increase the available credit by a positive amount."""
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValueError("Credit amount must be positive")
        self.available_credit += amount
        self.touch()

    def use_credit(self, amount: Decimal) -> None:
        """Spend credit.

        Raises:
            ValueError: If the amount is not positive.
            InsufficientCreditError: If the balance does not cover the amount.
        """
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValueError("Credit amount must be positive")
        if self.available_credit < amount:
            raise InsufficientCreditError("Insufficient credit")
        self.available_credit -= amount
        self.touch()

    def change_details(self, **changes: str) -> None:
        """Update any of the mutable contact attributes.

        Raises:
            ValueError: For an attribute that is not mutable, or an invalid value.
        """
        unknown = set(changes) - self.MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot change attributes: {', '.join(sorted(unknown))}")
        # A rejected change set leaves the record untouched.
        validated = self.model_validate({**self.model_dump(), **changes})
        for name in changes:
            setattr(self, name, getattr(validated, name))
        self.touch()

    def touch(self) -> None:
        self.updated_at = utc_now()
