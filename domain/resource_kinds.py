"""Per-kind profiles for guide, vehicle and hotel room resources.

Catalog records keep their own shape per kind (a guide stores its group size
under ``services.groupSize.max``, a vehicle stores ``capacity`` at the top
level, a hotel room stores ``price`` rather than ``pricing.daily``). A profile
names where each field lives so a single engine can read every kind.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from domain.enums import BookingStatus, ResourceKind
from domain.value_objects import BlackoutPeriod, ResourceSnapshot

Predicate = Callable[[Mapping[str, Any]], bool]


def dig(record: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Read a dotted path such as ``pricing.daily`` from a nested record"""
    current: Any = record
    for key in path.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return default
        current = current[key]
    return default if current is None else current


def _decimal_or_none(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _blackout_period(entry: Any) -> BlackoutPeriod:
    """A stored blackout: either a period mapping or a bare date blocking that whole day"""
    if isinstance(entry, Mapping):
        return BlackoutPeriod(**entry)
    return BlackoutPeriod.for_day(entry)


class ResourceKindProfile(BaseModel):
    """Where a kind keeps its capacity, rates and availability"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: ResourceKind
    capacity_field: str
    daily_rate_field: str
    currency_field: str
    availability_field: str
    blackout_field: str = "availability.blackoutDates"
    default_capacity: Optional[int] = None
    hourly_rate_field: Optional[str] = None
    weekly_rate_field: Optional[str] = None
    units_field: Optional[str] = None
    extra_availability_checks: Tuple[Predicate, ...] = ()
    uses_in_progress: bool = True

    def is_available(self, record: Mapping[str, Any]) -> bool:
        if not dig(record, self.availability_field, True):
            return False
        return all(check(record) for check in self.extra_availability_checks)

    def capacity(self, record: Mapping[str, Any]) -> int:
        value = dig(record, self.capacity_field)
        if not value:
            return self.default_capacity or 0
        return int(value)

    def to_snapshot(self, resource_id: str, record: Mapping[str, Any], default_currency: str) -> ResourceSnapshot:
        blackouts: List[Any] = dig(record, self.blackout_field, [])
        units = int(dig(record, self.units_field, 1)) if self.units_field else 1
        return ResourceSnapshot(
            resource_id=resource_id,
            kind=self.kind,
            capacity=self.capacity(record),
            daily_rate=_decimal_or_none(dig(record, self.daily_rate_field)),
            hourly_rate=_decimal_or_none(dig(record, self.hourly_rate_field)) if self.hourly_rate_field else None,
            weekly_rate=_decimal_or_none(dig(record, self.weekly_rate_field)) if self.weekly_rate_field else None,
            currency=dig(record, self.currency_field, default_currency),
            is_available=self.is_available(record),
            blackout_dates=[_blackout_period(entry) for entry in blackouts],
            units=max(units, 1),
        )

    def allowed_transitions(self) -> Dict[BookingStatus, Tuple[BookingStatus, ...]]:
        confirmed_next = (
            (BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED, BookingStatus.CANCELLED)
            if self.uses_in_progress
            else (BookingStatus.COMPLETED, BookingStatus.CANCELLED)
        )
        return {
            BookingStatus.PENDING: (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
            BookingStatus.CONFIRMED: confirmed_next,
            BookingStatus.IN_PROGRESS: (BookingStatus.COMPLETED,) if self.uses_in_progress else (),
            BookingStatus.COMPLETED: (),
            BookingStatus.CANCELLED: (),
        }


def _vehicle_is_active(record: Mapping[str, Any]) -> bool:
    return record.get("status", "active") == "active"


def _hotel_is_active(record: Mapping[str, Any]) -> bool:
    return bool(record.get("hotelActive", True))


def _room_has_free_units(record: Mapping[str, Any]) -> bool:
    return int(record.get("availableRooms", 1)) >= 1


def build_profiles(default_guide_capacity: int) -> Dict[ResourceKind, ResourceKindProfile]:
    return {
        ResourceKind.GUIDE: ResourceKindProfile(
            kind=ResourceKind.GUIDE,
            capacity_field="services.groupSize.max",
            default_capacity=default_guide_capacity,
            daily_rate_field="pricing.daily",
            hourly_rate_field="pricing.hourly",
            weekly_rate_field="pricing.weekly",
            currency_field="pricing.currency",
            availability_field="availability.isAvailable",
        ),
        ResourceKind.VEHICLE: ResourceKindProfile(
            kind=ResourceKind.VEHICLE,
            capacity_field="capacity",
            daily_rate_field="pricing.daily",
            hourly_rate_field="pricing.hourly",
            weekly_rate_field="pricing.weekly",
            currency_field="pricing.currency",
            availability_field="availability.isAvailable",
            extra_availability_checks=(_vehicle_is_active,),
        ),
        ResourceKind.HOTEL_ROOM: ResourceKindProfile(
            kind=ResourceKind.HOTEL_ROOM,
            capacity_field="capacity",
            daily_rate_field="price",
            currency_field="currency",
            availability_field="isAvailable",
            blackout_field="blackoutDates",
            units_field="availableRooms",
            extra_availability_checks=(_hotel_is_active, _room_has_free_units),
            uses_in_progress=False,
        ),
    }
