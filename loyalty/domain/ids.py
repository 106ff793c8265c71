"""
Strongly-typed identifiers.

Each aggregate and entity gets its own ID class so a card ID can never be
passed where a reward ID is expected: IDs of different classes never compare
equal even when they wrap the same UUID.
"""
from __future__ import annotations

import uuid
from typing import Type, TypeVar, Union

from ..utils.exceptions import ValidationError

T = TypeVar('T', bound='TypedId')


class TypedId:
    """Thin wrapper around a non-nil UUID, tagged by subclass."""

    __slots__ = ('_value',)

    def __init__(self, value: Union[uuid.UUID, str, None] = None):
        if value is None:
            value = uuid.uuid4()
        elif isinstance(value, str):
            try:
                value = uuid.UUID(value)
            except ValueError:
                raise ValidationError(f"'{value}' is not a valid {type(self).__name__}") from None
        elif not isinstance(value, uuid.UUID):
            raise ValidationError(f"Cannot build {type(self).__name__} from {type(value).__name__}")

        if value.int == 0:
            raise ValidationError(f"{type(self).__name__} cannot be empty")
        object.__setattr__(self, '_value', value)

    @classmethod
    def new(cls: Type[T]) -> T:
        return cls(uuid.uuid4())

    @classmethod
    def parse(cls: Type[T], value) -> T:
        """Accept an instance of this class, a UUID, or its string form."""
        if isinstance(value, cls):
            return value
        if isinstance(value, TypedId):
            raise ValidationError(f"Expected {cls.__name__}, got {type(value).__name__}")
        return cls(value)

    @property
    def value(self) -> uuid.UUID:
        return self._value

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._value == other._value

    def __hash__(self):
        return hash((type(self).__name__, self._value))

    def __str__(self):
        return str(self._value)

    def __repr__(self):
        return f'{type(self).__name__}({self._value})'


class BrandId(TypedId):
    __slots__ = ()


class LoyaltyProgramId(TypedId):
    __slots__ = ()


class RewardId(TypedId):
    __slots__ = ()


class LoyaltyCardId(TypedId):
    __slots__ = ()


class CustomerId(TypedId):
    __slots__ = ()


class TransactionId(TypedId):
    __slots__ = ()


class StoreId(TypedId):
    __slots__ = ()


class StaffId(TypedId):
    __slots__ = ()
