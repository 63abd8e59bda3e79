from datetime import date, datetime, time, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

import attrs

from src.platform.exception.exceptions import ValidationError
from src.service.seat_inventory.domain.enum import (
    CancellationReason,
    Gender,
    PaymentMethod,
    PaymentStatus,
    RefundStatus,
)
from src.service.seat_inventory.domain.validators import validate_hhmm


def _validate_age(_instance: Any, attribute: Any, value: int) -> None:
    if not 1 <= value <= 120:
        raise ValidationError(f'{attribute.name} must be between 1 and 120')


def _validate_non_negative(_instance: Any, attribute: Any, value: int) -> None:
    if value < 0:
        raise ValidationError(f'{attribute.name} must not be negative')


@attrs.define(frozen=True)
class BookingUser:
    user_id: str
    name: str
    phone: str
    email: Optional[str] = None


@attrs.define(frozen=True)
class RouteRef:
    route_id: str
    route_code: str
    origin: str
    destination: str
    operator_name: str
    vehicle_number: Optional[str] = None


@attrs.define(frozen=True)
class Journey:
    travel_date: date
    departure_time: str = attrs.field(validator=validate_hhmm)
    estimated_arrival_time: str = attrs.field(validator=validate_hhmm)
    pickup_point: str
    drop_point: str
    timezone: str = 'UTC'

    def departure_at(self) -> datetime:
        """Scheduled departure as an aware UTC instant."""
        hours, minutes = (int(part) for part in self.departure_time.split(':'))
        tz = timezone.utc if self.timezone == 'UTC' else ZoneInfo(self.timezone)
        local = datetime.combine(self.travel_date, time(hours, minutes), tzinfo=tz)
        return local.astimezone(timezone.utc)


@attrs.define(frozen=True)
class Passenger:
    name: str
    age: int = attrs.field(validator=_validate_age)
    gender: Gender = attrs.field(converter=Gender)
    seat_number: str
    fare: int = attrs.field(validator=_validate_non_negative)
    is_child: bool = False
    phone: Optional[str] = None
    id_proof_type: Optional[str] = None
    id_proof_number: Optional[str] = None


@attrs.define(frozen=True)
class RefundDetails:
    amount: int
    status: RefundStatus = attrs.field(converter=RefundStatus)
    reason: Optional[str] = None
    processed_at: Optional[datetime] = None
    refund_id: Optional[str] = None


@attrs.define(frozen=True)
class Payment:
    total_amount: int = attrs.field(validator=_validate_non_negative)
    base_fare: int = attrs.field(validator=_validate_non_negative)
    payment_method: PaymentMethod = attrs.field(converter=PaymentMethod)
    taxes: int = 0
    convenience_fee: int = 0
    discount: int = 0
    currency: str = 'INR'
    payment_id: Optional[str] = None
    status: PaymentStatus = attrs.field(default=PaymentStatus.PENDING, converter=PaymentStatus)
    paid_at: Optional[datetime] = None
    refund_details: Optional[RefundDetails] = None


@attrs.define(frozen=True)
class Cancellation:
    cancelled_at: datetime
    reason: CancellationReason = attrs.field(converter=CancellationReason)
    refund_amount: int
    cancellation_fee: int
    cancelled_by: Optional[str] = None
    notes: Optional[str] = None


@attrs.define(frozen=True)
class Modification:
    """Append-only audit record of a single field change."""

    modified_at: datetime
    field: str
    old_value: Any
    new_value: Any
    reason: Optional[str] = None
    modified_by: Optional[str] = None


@attrs.define(frozen=True)
class CancellationCheck:
    allowed: bool
    reason: Optional[str] = None
    hours_until_departure: Optional[float] = None


@attrs.define(frozen=True)
class CancellationQuote:
    refund_amount: int
    cancellation_fee: int
    refund_percentage: int
