"""Exceptions raised by the customer data-access layer."""


class KeystoneError(Exception):
    """Base class for all keystone errors."""

    pass


class StoreConnectionError(KeystoneError):
    """Raised when the authoritative store cannot be reached.

    This is fatal at startup, after the connection manager has exhausted its
    retry budget. Connection loss after startup is reported through lifecycle
    events instead.
    """

    pass


class NotFoundError(KeystoneError):
    """Raised when an id-qualified mutation targets a record that does not exist."""

    pass


class CustomerNotFoundError(NotFoundError):
    def __init__(self, customer_id: str):
        super().__init__(f"Customer with id {customer_id} not found")
        self.customer_id = customer_id


class ConflictError(KeystoneError):
    """Raised when a write violates a uniqueness constraint of the store."""

    pass


class EmailAlreadyExistsError(ConflictError):
    def __init__(self, email: str):
        super().__init__("Customer with this email already exists")
        self.email = email


class CacheTransportError(KeystoneError):
    """Raised by cache stores when the cache transport fails.

    Never propagates past the cache layer: reads treat it as a miss and
    writes skip the population or invalidation step.
    """

    pass


class InsufficientCreditError(ValueError):
    """Raised when a customer tries to use more credit than is available."""

    pass
