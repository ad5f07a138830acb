"""Price calculation for accepted booking requests"""
from decimal import Decimal

from domain.value_objects import Interval, Money, ResourceSnapshot


def effective_daily_rate(snapshot: ResourceSnapshot, default_rate: Decimal) -> Decimal:
    """Snapshot daily rate, or ``default_rate`` when the resource has none set"""
    if not snapshot.daily_rate:
        return Decimal(default_rate)
    return snapshot.daily_rate


def compute_price(snapshot: ResourceSnapshot, interval: Interval, default_rate: Decimal) -> Money:
    """Total for ``interval``: daily rate times whole days, partial days rounded up"""
    amount = effective_daily_rate(snapshot, default_rate) * interval.duration_days()
    return Money(amount=amount, currency=snapshot.currency)
