"""
JSON document codec for the durable Kvrocks documents

Inventory documents keep the camelCase layout of the seat availability
collection ({routeId, travelDate, seatsAvailable, summary, ...}). The stored
summary is for readers only; on load it is recomputed from the seats.
"""

from datetime import date, datetime
from typing import Any, Optional

import attrs
import orjson

from src.service.seat_inventory.domain.entity.booking_entity import Booking
from src.service.seat_inventory.domain.entity.route_template_entity import (
    RouteTemplate,
    SeatTemplate,
)
from src.service.seat_inventory.domain.entity.seat_inventory_entity import Seat, SeatInventory
from src.service.seat_inventory.domain.value_object import (
    BookingUser,
    Cancellation,
    Journey,
    Modification,
    Passenger,
    Payment,
    RefundDetails,
    RouteRef,
)


def _dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


# ---------------------------------------------------------------- inventory


def seat_to_dict(seat: Seat) -> dict[str, Any]:
    return {
        'seatNumber': seat.seat_number,
        'status': seat.status,
        'lockedBy': seat.locked_by,
        'lockedAt': seat.locked_at,
        'lockExpiry': seat.lock_expiry,
        'bookedBy': seat.booked_by,
        'bookedAt': seat.booked_at,
        'bookingId': seat.booking_id,
        'price': seat.price,
        'seatType': seat.seat_type,
    }


def seat_from_dict(data: dict[str, Any]) -> Seat:
    return Seat(
        seat_number=data['seatNumber'],
        status=data['status'],
        price=data['price'],
        seat_type=data['seatType'],
        locked_by=data.get('lockedBy'),
        locked_at=_dt(data.get('lockedAt')),
        lock_expiry=_dt(data.get('lockExpiry')),
        booked_by=data.get('bookedBy'),
        booked_at=_dt(data.get('bookedAt')),
        booking_id=data.get('bookingId'),
    )


def encode_inventory(inventory: SeatInventory) -> bytes:
    summary = inventory.summary
    return orjson.dumps(
        {
            'routeId': inventory.route_id,
            'travelDate': inventory.travel_date,
            'seatsAvailable': [seat_to_dict(seat) for seat in inventory.seats],
            'summary': {
                'totalSeats': summary.total_seats,
                'availableCount': summary.available_count,
                'lockedCount': summary.locked_count,
                'bookedCount': summary.booked_count,
                'blockedCount': summary.blocked_count,
            },
            'createdAt': inventory.created_at,
            'updatedAt': inventory.updated_at,
        }
    )


def decode_inventory(raw: str | bytes) -> SeatInventory:
    data = orjson.loads(raw)
    return SeatInventory(
        route_id=data['routeId'],
        travel_date=date.fromisoformat(data['travelDate']),
        seats=tuple(seat_from_dict(seat) for seat in data['seatsAvailable']),
        created_at=_dt(data.get('createdAt')),
        updated_at=_dt(data.get('updatedAt')),
    )


# ---------------------------------------------------------------- route template


def seat_template_from_dict(seat: dict[str, Any]) -> SeatTemplate:
    # Route documents nest price.{base,premium} and position.{row,column}; flat keys are still read
    price = seat.get('price') or {}
    position = seat.get('position') or {}
    return SeatTemplate(
        seat_number=seat['seatNumber'],
        seat_type=seat['type'],
        base_price=price.get('base', seat.get('basePrice', 0)),
        premium=price.get('premium', seat.get('premium', 0)),
        is_blocked=seat.get('isBlocked', False),
        row=position.get('row', seat.get('row')),
        column=position.get('column', seat.get('column')),
    )


def decode_route_template(raw: str | bytes) -> RouteTemplate:
    data = orjson.loads(raw)
    seat_map = (data.get('seating') or {}).get('seatMap', data.get('seatMap', []))
    return RouteTemplate(
        route_id=data['routeId'],
        route_code=data.get('routeCode', ''),
        departure_time=data.get('departureTime', '00:00'),
        timezone=data.get('timezone', 'UTC'),
        seat_map=tuple(seat_template_from_dict(seat) for seat in seat_map),
    )


# ---------------------------------------------------------------- booking


def encode_booking(booking: Booking) -> bytes:
    # attrs.asdict keeps field names; orjson renders dates, datetimes and enums
    return orjson.dumps(attrs.asdict(booking, recurse=True))


def decode_booking(raw: str | bytes) -> Booking:
    data = orjson.loads(raw)

    payment = dict(data['payment'])
    refund = payment.pop('refund_details', None)
    payment['paid_at'] = _dt(payment.get('paid_at'))
    if refund:
        refund['processed_at'] = _dt(refund.get('processed_at'))

    journey = dict(data['journey'])
    journey['travel_date'] = date.fromisoformat(journey['travel_date'])

    cancellation = data.get('cancellation')
    if cancellation:
        cancellation = Cancellation(
            **{**cancellation, 'cancelled_at': _dt(cancellation['cancelled_at'])}
        )

    return Booking(
        booking_id=data['booking_id'],
        user=BookingUser(**data['user']),
        route=RouteRef(**data['route']),
        journey=Journey(**journey),
        passengers=tuple(Passenger(**passenger) for passenger in data['passengers']),
        payment=Payment(**payment, refund_details=RefundDetails(**refund) if refund else None),
        status=data['status'],
        cancellation=cancellation,
        modifications=tuple(
            Modification(**{**modification, 'modified_at': _dt(modification['modified_at'])})
            for modification in data.get('modifications', [])
        ),
        created_at=_dt(data.get('created_at')),
        updated_at=_dt(data.get('updated_at')),
    )
