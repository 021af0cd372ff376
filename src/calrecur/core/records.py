"""Helpers for reading host-written plain-data records (camelCase JSON)."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from .errors import RecordFormatError
from .types import CalDate


def require(data: Mapping[str, Any], key: str, where: str) -> Any:
    if not isinstance(data, Mapping):
        raise RecordFormatError(f"{where}: expected an object, got {type(data).__name__}")
    if key not in data or data[key] is None:
        raise RecordFormatError(f"{where}: missing required field '{key}'")
    return data[key]


def as_int(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value != int(value):
        raise RecordFormatError(f"{where}: expected an integer, got {value!r}")
    return int(value)


def opt_int(data: Mapping[str, Any], key: str, where: str, default: Optional[int] = None) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return default
    return as_int(value, f"{where}.{key}")


def as_number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RecordFormatError(f"{where}: expected a number, got {value!r}")
    return value


def date_from_dict(data: Mapping[str, Any], where: str = "date") -> CalDate:
    """``{year, month, day, hour?, minute?}`` -> CalDate (month 0-based, day 1-based)."""
    return CalDate(
        year=as_int(require(data, "year", where), f"{where}.year"),
        month=as_int(require(data, "month", where), f"{where}.month"),
        day=as_int(require(data, "day", where), f"{where}.day"),
        hour=opt_int(data, "hour", where),
        minute=opt_int(data, "minute", where),
    )


def opt_date(data: Mapping[str, Any], key: str, where: str) -> Optional[CalDate]:
    value = data.get(key)
    if value is None:
        return None
    return date_from_dict(value, f"{where}.{key}")
