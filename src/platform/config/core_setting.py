from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Seat Inventory Service'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # Kvrocks Configuration (Redis protocol + Kvrocks storage)
    KVROCKS_HOST: str = 'localhost'
    KVROCKS_PORT: int = 6666
    KVROCKS_DB: int = 0
    KVROCKS_PASSWORD: str = ''
    REDIS_DECODE_RESPONSES: bool = True

    # Kvrocks Connection Pool Configuration
    KVROCKS_POOL_MAX_CONNECTIONS: int = 100
    KVROCKS_POOL_SOCKET_TIMEOUT: int = 10  # seconds
    KVROCKS_POOL_SOCKET_CONNECT_TIMEOUT: int = 10  # seconds
    KVROCKS_POOL_SOCKET_KEEPALIVE: bool = True
    KVROCKS_POOL_HEALTH_CHECK_INTERVAL: int = 30  # seconds

    # Seat hold (business window) vs. operation lease (mutual exclusion)
    SEAT_HOLD_MINUTES: int = 15
    OPERATION_LOCK_TTL_SECONDS: int = 30
    HOLD_EXTENSION_MINUTES: int = 5
    HOLD_INDEX_TTL_BUFFER_MINUTES: int = 5

    # Expiry reaper
    REAPER_INTERVAL_SECONDS: float = 60.0

    # Booking
    BOOKING_ID_PREFIX: str = 'SB'

    @field_validator(
        'SEAT_HOLD_MINUTES',
        'OPERATION_LOCK_TTL_SECONDS',
        'HOLD_EXTENSION_MINUTES',
        'REAPER_INTERVAL_SECONDS',
    )
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError('must be positive')
        return v


settings = Settings()  # type: ignore
