"""
Utility modules for the loyalty service.
"""
from .logging_config import setup_logging
from .errors import (
    ErrorCode,
    error_response,
    register_error_handlers,
)
from .exceptions import (
    LoyaltyError,
    ValidationError,
    InvalidOperationError,
    InsufficientBalanceError,
    InvalidStatusTransitionError,
    LimitExceededError,
    DuplicateError,
    ConcurrencyError,
    NotFoundError,
    ProgramNotFoundError,
    CardNotFoundError,
    RewardNotFoundError,
)
from .time_utils import Clock, SystemClock, FixedClock, system_clock, utcnow
