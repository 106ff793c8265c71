"""
Expiration policy value object.

Describes when accrued loyalty (or a whole card) lapses. A policy is one of:
- never expires
- expires a relative period after a reference date (N days/months/years)
- expires on a fixed calendar day, optionally in a fixed month
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from dateutil.relativedelta import relativedelta

from .enums import ExpirationType
from ..utils.exceptions import ValidationError


@dataclass(frozen=True)
class ExpirationPolicy:
    """
    Immutable expiration rule.

    Build instances with the named constructors rather than the raw
    dataclass fields; they normalize the unused fields so that default
    dataclass equality gives value semantics (two "never" policies are equal,
    relative policies compare type and value, fixed-date policies compare
    day and month).
    """
    has_expiration: bool = False
    expiration_type: ExpirationType = ExpirationType.DAYS
    expiration_value: int = 0
    expires_on_specific_date: bool = False
    expiration_day: Optional[int] = None
    expiration_month: Optional[int] = None

    def __post_init__(self):
        if not self.has_expiration:
            return

        if self.expires_on_specific_date:
            if not _is_int(self.expiration_day) or not 1 <= self.expiration_day <= 31:
                raise ValidationError("Day must be between 1 and 31", field='expiration_day')
            if self.expiration_month is not None and (
                    not _is_int(self.expiration_month) or not 1 <= self.expiration_month <= 12):
                raise ValidationError("Month must be between 1 and 12", field='expiration_month')
        else:
            if not isinstance(self.expiration_type, ExpirationType):
                raise ValidationError("Unknown expiration type", field='expiration_type')
            if not _is_int(self.expiration_value):
                raise ValidationError("Expiration value must be an integer", field='expiration_value')
            if self.expiration_value <= 0:
                raise ValidationError("Expiration value must be greater than zero", field='expiration_value')

    # ==================== Named constructors ====================

    @classmethod
    def never(cls) -> 'ExpirationPolicy':
        return cls()

    @classmethod
    def after(cls, expiration_type: ExpirationType, value: int) -> 'ExpirationPolicy':
        """Expire ``value`` days/months/years after the reference date."""
        try:
            expiration_type = ExpirationType(expiration_type)
        except ValueError:
            raise ValidationError(f"Unknown expiration type '{expiration_type}'", field='expiration_type') from None
        return cls(
            has_expiration=True,
            expiration_type=expiration_type,
            expiration_value=value,
        )

    @classmethod
    def on_date(cls, day: int, month: Optional[int] = None) -> 'ExpirationPolicy':
        """Expire on a calendar day (of a given month, or of the reference month)."""
        return cls(
            has_expiration=True,
            expiration_type=ExpirationType.YEARS,
            expiration_value=1,
            expires_on_specific_date=True,
            expiration_day=day,
            expiration_month=month,
        )

    # ==================== Behaviour ====================

    def calculate_expiration_date(self, reference: datetime) -> datetime:
        """
        Calculate when loyalty accrued at ``reference`` expires.

        Never-expiring policies return ``datetime.max``. Fixed-date policies
        always return a date strictly after ``reference``.
        """
        if not self.has_expiration:
            return datetime.max

        if not self.expires_on_specific_date:
            if self.expiration_type == ExpirationType.DAYS:
                return reference + timedelta(days=self.expiration_value)
            if self.expiration_type == ExpirationType.MONTHS:
                return reference + relativedelta(months=self.expiration_value)
            return reference + relativedelta(years=self.expiration_value)

        month = self.expiration_month or reference.month
        days_in_month = calendar.monthrange(reference.year, month)[1]
        day = min(self.expiration_day, days_in_month)

        expiration = datetime(reference.year, month, day)
        if expiration <= reference:
            expiration = expiration + relativedelta(years=1)
        return expiration

    def describe(self) -> str:
        if not self.has_expiration:
            return 'Never expires'
        if self.expires_on_specific_date:
            if self.expiration_month:
                return f'Expires every {calendar.month_name[self.expiration_month]} {self.expiration_day}'
            return f'Expires on day {self.expiration_day} of the month'
        return f'Expires after {self.expiration_value} {self.expiration_type.value}'

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            'has_expiration': self.has_expiration,
            'expiration_type': self.expiration_type.value,
            'expiration_value': self.expiration_value,
            'expires_on_specific_date': self.expires_on_specific_date,
            'expiration_day': self.expiration_day,
            'expiration_month': self.expiration_month,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ExpirationPolicy':
        """
        Build a policy from a stored or request payload.

        Accepts either the full ``to_dict`` shape or the short request forms:
        ``{"type": "days", "value": 30}`` and ``{"day": 31, "month": 12}``.
        """
        if not data:
            return cls.never()

        if 'day' in data or data.get('expires_on_specific_date'):
            day = data.get('day', data.get('expiration_day'))
            month = data.get('month', data.get('expiration_month'))
            return cls.on_date(_as_int(day, 'expiration_day'), _as_int(month, 'expiration_month') if month is not None else None)

        if 'type' in data or data.get('has_expiration'):
            raw_type = data.get('type', data.get('expiration_type'))
            value = data.get('value', data.get('expiration_value'))
            try:
                expiration_type = ExpirationType(raw_type)
            except ValueError:
                raise ValidationError(f"Unknown expiration type '{raw_type}'", field='expiration_type') from None
            return cls.after(expiration_type, _as_int(value, 'expiration_value'))

        return cls.never()


def _as_int(value, field: str) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f'{field} must be an integer', field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an integer', field=field) from None


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
