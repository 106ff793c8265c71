"""
Custom exceptions for loyalty business logic.

Two families matter to callers:
- ValidationError: malformed input, raised before any state is touched
- InvalidOperationError: the request is well-formed but the current state
  of a program, card or reward does not allow it

Every exception carries a machine-readable code so the API layer can map it
to an HTTP status without string matching.
"""


class LoyaltyError(Exception):
    """Base exception for all loyalty business logic errors."""

    def __init__(self, message: str, code: str = "LOYALTY_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(LoyaltyError):
    """Invalid input data."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"INVALID_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)


class InvalidOperationError(LoyaltyError):
    """Operation not allowed in the current state."""

    def __init__(self, message: str, code: str = "INVALID_OPERATION"):
        super().__init__(message, code)


class InsufficientBalanceError(InvalidOperationError):
    """Not enough stamps or points for the operation."""

    def __init__(self, current, required, currency: str = "points"):
        self.current = current
        self.required = required
        message = f"Insufficient {currency}. Current: {current}, Required: {required}"
        super().__init__(message, "INSUFFICIENT_BALANCE")


class InvalidStatusTransitionError(InvalidOperationError):
    """Invalid status transition for a resource."""

    def __init__(self, resource: str, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        message = f"Cannot change {resource} status from '{from_status}' to '{to_status}'"
        super().__init__(message, "INVALID_STATUS_TRANSITION")


class LimitExceededError(InvalidOperationError):
    """A configured limit would be exceeded (e.g. daily stamps)."""

    def __init__(self, resource: str, limit: int, current: int):
        self.limit = limit
        self.current = current
        message = f"{resource} limit exceeded. Limit: {limit}, Current: {current}"
        super().__init__(message, f"{resource.upper().replace(' ', '_')}_LIMIT_EXCEEDED")


class DuplicateError(InvalidOperationError):
    """Resource already exists."""

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} already exists"
        if identifier:
            message = f"{resource} with {identifier} already exists"
        super().__init__(message, "DUPLICATE_ENTRY")


class ConcurrencyError(InvalidOperationError):
    """Another writer updated the same aggregate first."""

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} {identifier} was modified concurrently, reload and retry"
        super().__init__(message, "CONCURRENT_MODIFICATION")


class NotFoundError(LoyaltyError):
    """Resource not found."""

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with ID {identifier} not found"
        super().__init__(message, f"{resource.upper()}_NOT_FOUND")


class ProgramNotFoundError(NotFoundError):
    """Loyalty program not found."""

    def __init__(self, identifier=None):
        super().__init__("Program", identifier)


class CardNotFoundError(NotFoundError):
    """Loyalty card not found."""

    def __init__(self, identifier=None):
        super().__init__("Card", identifier)


class RewardNotFoundError(NotFoundError):
    """Reward not found."""

    def __init__(self, identifier=None):
        super().__init__("Reward", identifier)
