from .customer import Customer, SortOrder, utc_now
from .exceptions import (
    CacheTransportError,
    ConflictError,
    CustomerNotFoundError,
    EmailAlreadyExistsError,
    InsufficientCreditError,
    KeystoneError,
    NotFoundError,
    StoreConnectionError,
)

__all__ = [
    "Customer",
    "SortOrder",
    "utc_now",
    "KeystoneError",
    "StoreConnectionError",
    "NotFoundError",
    "CustomerNotFoundError",
    "ConflictError",
    "EmailAlreadyExistsError",
    "CacheTransportError",
    "InsufficientCreditError",
]
