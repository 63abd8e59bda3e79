"""Input validation shared by the seat inventory use cases."""

import re
from datetime import date, datetime
from typing import Any, Sequence

from src.platform.exception.exceptions import ValidationError


_HHMM = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$')


def validate_seat_numbers(seat_numbers: Sequence[Any]) -> list[str]:
    """Return the batch as a list, rejecting empty, blank or duplicated seat numbers."""
    if isinstance(seat_numbers, str) or not seat_numbers:
        raise ValidationError('seat_numbers must be a non-empty list')

    for seat_number in seat_numbers:
        if not isinstance(seat_number, str) or not seat_number.strip():
            raise ValidationError(f'Invalid seat number: {seat_number!r}')

    duplicates = sorted({s for s in seat_numbers if seat_numbers.count(s) > 1})
    if duplicates:
        raise ValidationError(f'Duplicate seat numbers: {", ".join(duplicates)}')

    return list(seat_numbers)


def validate_positive_minutes(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f'{field_name} must be a positive number of minutes')
    return value


def validate_required_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'{field_name} is required')
    return value


def parse_travel_date(value: Any) -> date:
    """Accept a date or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise ValidationError(f'Invalid travel date: {value!r}')


def validate_hhmm(_instance: Any, attribute: Any, value: str) -> None:
    """attrs validator for HH:MM clock times"""
    if not isinstance(value, str) or not _HHMM.match(value):
        raise ValidationError(f'{attribute.name} must be in HH:MM format')
