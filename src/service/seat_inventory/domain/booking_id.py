import random
from datetime import datetime
from typing import Callable


SUFFIX_MIN = 100000
SUFFIX_MAX = 999999


def generate_booking_id(
    *,
    now: datetime,
    prefix: str = 'SB',
    randint: Callable[[int, int], int] = random.randint,
) -> str:
    """PREFIX + YYYYMMDD + six random digits, e.g. SB20240115482913"""
    return f'{prefix}{now:%Y%m%d}{randint(SUFFIX_MIN, SUFFIX_MAX)}'
