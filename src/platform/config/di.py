"""
https://python-dependency-injector.ets-labs.org/index.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings, settings
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.seat_inventory.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.seat_inventory.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.seat_inventory.app.command.expiry_reaper import ExpiryReaper
from src.service.seat_inventory.app.command.seat_locking_service import SeatLockingService
from src.service.seat_inventory.app.query.get_lock_statistics_use_case import (
    GetLockStatisticsUseCase,
)
from src.service.seat_inventory.app.query.get_seat_availability_use_case import (
    GetSeatAvailabilityUseCase,
)
from src.service.seat_inventory.driven_adapter.repo.booking_repo_impl import BookingRepoImpl
from src.service.seat_inventory.driven_adapter.repo.route_template_query_repo_impl import (
    RouteTemplateQueryRepoImpl,
)
from src.service.seat_inventory.driven_adapter.repo.seat_inventory_repo_impl import (
    SeatInventoryRepoImpl,
)
from src.service.seat_inventory.driven_adapter.state.distributed_lock_impl import (
    DistributedLockImpl,
)
from src.service.seat_inventory.driven_adapter.state.seat_hold_index_impl import (
    SeatHoldIndexImpl,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Kvrocks client is resolved lazily: kvrocks_client.initialize() must run first
    kvrocks = providers.Factory(kvrocks_client.get_client)

    # Driven adapters
    distributed_lock = providers.Singleton(DistributedLockImpl, client=kvrocks)
    seat_hold_index = providers.Singleton(SeatHoldIndexImpl, client=kvrocks)
    seat_inventory_repo = providers.Singleton(SeatInventoryRepoImpl, client=kvrocks)
    route_template_query_repo = providers.Singleton(RouteTemplateQueryRepoImpl, client=kvrocks)
    booking_repo = providers.Singleton(BookingRepoImpl, client=kvrocks)

    # Commands
    seat_locking_service = providers.Singleton(
        SeatLockingService,
        inventory_repo=seat_inventory_repo,
        route_template_repo=route_template_query_repo,
        distributed_lock=distributed_lock,
        hold_index=seat_hold_index,
        hold_minutes=settings.SEAT_HOLD_MINUTES,
        lease_ttl_seconds=settings.OPERATION_LOCK_TTL_SECONDS,
        extension_minutes=settings.HOLD_EXTENSION_MINUTES,
        index_ttl_buffer_minutes=settings.HOLD_INDEX_TTL_BUFFER_MINUTES,
    )
    expiry_reaper = providers.Singleton(
        ExpiryReaper,
        inventory_repo=seat_inventory_repo,
        distributed_lock=distributed_lock,
        lease_ttl_seconds=settings.OPERATION_LOCK_TTL_SECONDS,
    )
    create_booking_use_case = providers.Singleton(
        CreateBookingUseCase,
        booking_repo=booking_repo,
        seat_locking_service=seat_locking_service,
        booking_id_prefix=settings.BOOKING_ID_PREFIX,
    )
    cancel_booking_use_case = providers.Singleton(
        CancelBookingUseCase,
        booking_repo=booking_repo,
        seat_locking_service=seat_locking_service,
    )

    # Queries
    get_seat_availability_use_case = providers.Singleton(
        GetSeatAvailabilityUseCase, inventory_repo=seat_inventory_repo
    )
    get_lock_statistics_use_case = providers.Singleton(
        GetLockStatisticsUseCase, inventory_repo=seat_inventory_repo
    )


container = Container()


def setup() -> None:
    container.config_service()


def cleanup() -> None:
    container.reset_singletons()
