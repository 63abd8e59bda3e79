"""
Key String Generator

Kvrocks keys for leases, the holds index and the durable documents.
"""

import os
from datetime import date


def _get_key_prefix() -> str:
    # Read per call: pytest sets KVROCKS_KEY_PREFIX after modules are imported
    return os.getenv('KVROCKS_KEY_PREFIX', '')


def make_key(key: str) -> str:
    """Add prefix to key for test isolation in parallel testing"""
    return f'{_get_key_prefix()}{key}'


def strip_key_prefix(key: str) -> str:
    prefix = _get_key_prefix()
    return key[len(prefix) :] if prefix and key.startswith(prefix) else key


def make_seat_hold_key(*, user_id: str) -> str:
    return make_key(f'seat_locks:{user_id}')


def make_seat_inventory_key(*, route_id: str, travel_date: date) -> str:
    return make_key(f'seat_inventory:{route_id}:{travel_date.isoformat()}')


def make_seat_inventory_pattern() -> str:
    return make_key('seat_inventory:*')


def make_lock_expiry_index_key() -> str:
    """Sorted set: member '{route_id}:{travel_date}', score = earliest lock_expiry (epoch seconds)"""
    return make_key('seat_inventory_lock_expiry')


def make_booking_key(*, booking_id: str) -> str:
    return make_key(f'booking:{booking_id}')


def make_route_template_key(*, route_id: str) -> str:
    return make_key(f'route_template:{route_id}')
