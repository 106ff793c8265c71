"""
Request parsing helpers shared by the API blueprints.

Each helper raises ValidationError with the offending field, which the app
error handler turns into a 400 response.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Type, TypeVar

from flask import request

from ..domain import TypedId
from ..domain.points_config import to_decimal
from ..utils.exceptions import ValidationError
from ..utils.time_utils import parse_iso_datetime

T = TypeVar('T', bound=TypedId)


def get_json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def require_fields(data: Dict[str, Any], fields: Iterable[str]) -> None:
    for field in fields:
        if field not in data or data[field] is None or data[field] == '':
            raise ValidationError(f'{field} is required', field=field)


def parse_id(id_class: Type[T], value, field: str) -> T:
    try:
        return id_class.parse(value)
    except ValidationError:
        raise ValidationError(f'{field} must be a valid UUID', field=field) from None


def optional_id(id_class: Type[T], value, field: str) -> Optional[T]:
    if value is None or value == '':
        return None
    return parse_id(id_class, value, field)


def parse_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an integer', field=field)
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f'{field} must be an integer', field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an integer', field=field) from None


def optional_int(value, field: str) -> Optional[int]:
    return None if value is None else parse_int(value, field)


def optional_decimal(value, field: str) -> Optional[Decimal]:
    return None if value is None or value == '' else to_decimal(value, field)


def optional_datetime(value, field: str) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{field} must be an ISO-8601 string', field=field)
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f'{field} must be an ISO-8601 datetime', field=field) from None


def query_flag(name: str, default: str = 'false') -> bool:
    return request.args.get(name, default).lower() == 'true'
