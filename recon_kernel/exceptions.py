"""
Typed exception hierarchy for the reconciliation engine.

Every error carries a machine-readable ``code`` class attribute and its
context as structured attributes, so callers catch by type and report by
code instead of parsing message strings.

    ReconciliationError (base)
    |
    +-- NotFoundError
    |   +-- OrderNotFoundError
    |   +-- CreditAccountNotFoundError
    |
    +-- StorageError
    |   +-- TransientStorageError
    |
    +-- EventError
    |   +-- UnsupportedEventTypeError
    |   +-- InvalidEventPayloadError
    |
    +-- ConfigError
        +-- InvalidConfigError

Category  | Code                      | When raised
----------|---------------------------|------------------------------------------
NotFound  | ORDER_NOT_FOUND           | Order id does not exist in storage
          | CREDIT_ACCOUNT_NOT_FOUND  | Credit account id does not exist
Storage   | TRANSIENT_STORAGE_ERROR   | Storage I/O failed (retry is meaningful)
Event     | UNSUPPORTED_EVENT_TYPE    | Webhook type outside the dispatch table
          | INVALID_EVENT_PAYLOAD     | Webhook data missing / malformed
Config    | INVALID_CONFIG            | Configuration value out of range

The event processor converts these into failed ``FinancialSyncResult``
values at its boundary; batch loops record them per entity and continue.
"""


class ReconciliationError(Exception):
    """Base exception for all reconciliation engine errors."""

    code: str = "RECONCILIATION_ERROR"


# Not-found errors


class NotFoundError(ReconciliationError):
    """Base exception for missing referenced entities."""

    code: str = "NOT_FOUND"


class OrderNotFoundError(NotFoundError):
    """Order with given ID was not found."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class CreditAccountNotFoundError(NotFoundError):
    """Credit account with given ID was not found."""

    code: str = "CREDIT_ACCOUNT_NOT_FOUND"

    def __init__(self, credit_account_id: str):
        self.credit_account_id = credit_account_id
        super().__init__(f"Credit account not found: {credit_account_id}")


# Storage errors


class StorageError(ReconciliationError):
    """Base exception for storage collaborator failures."""

    code: str = "STORAGE_ERROR"


class TransientStorageError(StorageError):
    """
    A storage operation failed at the I/O level.

    The operation may succeed on a later attempt; batch loops record the
    failure and move on to the next entity.
    """

    code: str = "TRANSIENT_STORAGE_ERROR"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Storage operation {operation} failed: {reason}")


# Event errors


class EventError(ReconciliationError):
    """Base exception for webhook event errors."""

    code: str = "EVENT_ERROR"


class UnsupportedEventTypeError(EventError):
    """Webhook event type has no handler."""

    code: str = "UNSUPPORTED_EVENT_TYPE"

    def __init__(self, event_type: str, supported: tuple[str, ...] = ()):
        self.event_type = event_type
        self.supported = supported
        super().__init__(f"Unsupported webhook event type: {event_type}")


class InvalidEventPayloadError(EventError):
    """Webhook event data is missing a field or carries an invalid value."""

    code: str = "INVALID_EVENT_PAYLOAD"

    def __init__(self, event_type: str, field: str, reason: str):
        self.event_type = event_type
        self.field = field
        self.reason = reason
        super().__init__(
            f"Invalid payload for {event_type}: field {field!r} {reason}"
        )


# Configuration errors


class ConfigError(ReconciliationError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class InvalidConfigError(ConfigError):
    """A configuration value is missing, unknown or out of range."""

    code: str = "INVALID_CONFIG"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for {key!r}: {reason}")
