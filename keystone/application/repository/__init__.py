"""Customer repositories.

This package provides:
- CustomerRepository: The persistence contract shared by every implementation
- InMemoryCustomerRepository: Dict-backed implementation for tests
- CachedCustomerRepository: Cache-aside decorator over any repository
"""

from .cached import CachedCustomerRepository
from .repository import (
    CustomerRepository,
    InMemoryCustomerRepository,
    new_customer_id,
    validate_sort,
)

__all__ = [
    "CustomerRepository",
    "InMemoryCustomerRepository",
    "CachedCustomerRepository",
    "new_customer_id",
    "validate_sort",
]
