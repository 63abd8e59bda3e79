from prometheus_client import Counter, Histogram


class ReservationMetrics:
    """
    Seat inventory metrics

    Lease contention and seat operation outcomes per operation, plus reaper
    throughput. Labels stay low-cardinality (no route or user ids).
    """

    def __init__(self) -> None:
        self.lease_acquisitions = Counter(
            'seat_inventory_lease_acquisitions_total',
            'Operation lease acquisition attempts',
            ['result'],  # acquired / contended
        )

        self.seat_operations = Counter(
            'seat_inventory_operations_total',
            'Seat inventory operations',
            ['operation', 'result'],  # operation: lock/confirm/release/extend/cancel
        )

        self.seat_operation_duration = Histogram(
            'seat_inventory_operation_duration_seconds',
            'Seat inventory operation duration including lease round-trips',
            ['operation'],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0],
        )

        self.seats_reclaimed = Counter(
            'seat_inventory_seats_reclaimed_total',
            'Seats returned to available by the expiry reaper',
        )

        self.reaper_sweep_duration = Histogram(
            'seat_inventory_reaper_sweep_duration_seconds',
            'Expiry reaper sweep duration',
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
        )

    def record_lease(self, *, acquired: bool) -> None:
        self.lease_acquisitions.labels(result='acquired' if acquired else 'contended').inc()

    def record_seat_operation(self, *, operation: str, result: str, duration: float) -> None:
        self.seat_operations.labels(operation=operation, result=result).inc()
        self.seat_operation_duration.labels(operation=operation).observe(duration)

    def record_sweep(self, *, reclaimed: int, duration: float) -> None:
        if reclaimed:
            self.seats_reclaimed.inc(reclaimed)
        self.reaper_sweep_duration.observe(duration)


metrics = ReservationMetrics()
