"""
Booking list ranking
Orders booking records for the admin list and slices them into pages
"""
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from functools import cmp_to_key
from typing import Any, Optional, Sequence
from zoneinfo import ZoneInfo

from catering.config import settings


UPCOMING_WINDOW = timedelta(hours=48)


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    DEPOSIT_PAID = "deposit_paid"
    FULLY_PAID = "fully_paid"


class SortOrder(str, Enum):
    PRIORITY = "priority"
    LATEST = "latest"
    EVENT_DATE_NEWEST = "event_date_newest"
    EVENT_DATE_OLDEST = "event_date_oldest"


class RankingError(ValueError):
    """Booking record cannot be ranked"""

    def __init__(self, booking_id: Any, field_name: str, message: str):
        self.booking_id = booking_id
        self.field_name = field_name
        super().__init__(f"Booking {booking_id}: {message}")


class InvalidBookingDate(RankingError):
    """order_date or delivery_date is missing or unparseable"""


class InvalidBookingField(RankingError):
    """status or payment_status holds an unknown value"""


@dataclass(frozen=True)
class BookingView:
    """
    Read-only snapshot of the fields the ranker looks at.

    Fields are normalised on construction: statuses become enum members
    (None means pending) and dates become UTC-aware datetimes.
    """

    id: Any
    order_date: datetime
    delivery_date: datetime
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING

    def __post_init__(self):
        # frozen, so normalised values go in through object.__setattr__
        object.__setattr__(
            self, "status", _coerce(BookingStatus, self.status, self.id, "status")
        )
        object.__setattr__(
            self,
            "payment_status",
            _coerce(PaymentStatus, self.payment_status, self.id, "payment_status"),
        )
        for name in ("order_date", "delivery_date"):
            object.__setattr__(self, name, _parse_datetime(getattr(self, name), self.id, name))

    @property
    def is_fully_completed(self) -> bool:
        return (
            self.status == BookingStatus.COMPLETED
            and self.payment_status == PaymentStatus.FULLY_PAID
        )


def _coerce(enum_type, value: Any, booking_id: Any, field_name: str):
    if value is None or value == "":
        return enum_type.PENDING
    try:
        return enum_type(value)
    except ValueError:
        label = field_name.replace("_", " ")
        raise InvalidBookingField(booking_id, field_name, f"unknown {label} {value!r}")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _read(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        # JSON payloads from the dashboard use camelCase keys
        value = record.get(name)
        return value if value is not None else record.get(_camel(name))
    return getattr(record, name, None)


def _parse_datetime(value: Any, booking_id: Any, field_name: str) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        # A bare calendar day means midnight
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise InvalidBookingDate(booking_id, field_name, f"unparseable {field_name} {value!r}")
    elif value is None or isinstance(value, str):
        raise InvalidBookingDate(booking_id, field_name, f"missing {field_name}")
    else:
        raise InvalidBookingDate(
            booking_id, field_name, f"unsupported {field_name} type {type(value).__name__}"
        )

    # Stored timestamps are naive UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def booking_view(record: Any) -> BookingView:
    """
    Build a ranking view from an ORM booking, a dict or a BookingView.

    Raises:
        InvalidBookingDate: order_date or delivery_date is missing or malformed
        InvalidBookingField: status or payment_status is not a known value
    """
    if isinstance(record, BookingView):
        return record

    return BookingView(
        id=_read(record, "id"),
        order_date=_read(record, "order_date"),
        delivery_date=_read(record, "delivery_date"),
        status=_read(record, "status"),
        payment_status=_read(record, "payment_status"),
    )


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


class _Tier(int, Enum):
    TODAY = 0
    UPCOMING = 1
    FUTURE = 2
    PAST = 3


def _classify(view: BookingView, now: datetime, tz: tzinfo) -> Optional[_Tier]:
    if view.delivery_date.astimezone(tz).date() == now.astimezone(tz).date():
        return _Tier.TODAY
    delta = view.delivery_date - now
    if timedelta(0) < delta <= UPCOMING_WINDOW:
        return _Tier.UPCOMING
    if delta > UPCOMING_WINDOW:
        return _Tier.FUTURE
    if delta < timedelta(0):
        return _Tier.PAST
    return None


def _priority_comparator(now: datetime, tz: tzinfo):
    def compare(a: BookingView, b: BookingView) -> int:
        if a.is_fully_completed != b.is_fully_completed:
            return 1 if a.is_fully_completed else -1
        if a.is_fully_completed:
            return _cmp(b.delivery_date, a.delivery_date)

        tier_a, tier_b = _classify(a, now, tz), _classify(b, now, tz)
        if tier_a is not None and tier_b is not None:
            if tier_a != tier_b:
                return _cmp(tier_a, tier_b)
            if tier_a is _Tier.TODAY:
                return _cmp(a.order_date, b.order_date) or _cmp(a.delivery_date, b.delivery_date)
            if tier_a is _Tier.PAST:
                return _cmp(b.order_date, a.order_date) or _cmp(b.delivery_date, a.delivery_date)
            # Upcoming and future
            return _cmp(b.order_date, a.order_date) or _cmp(a.delivery_date, b.delivery_date)

        return _cmp(b.order_date, a.order_date)

    return compare


def _resolve_tz(tz: Optional[tzinfo]) -> tzinfo:
    if tz is not None:
        return tz
    return ZoneInfo(settings.timezone)


def rank_bookings(
    bookings: Sequence[Any],
    sort_order: SortOrder | str = SortOrder.PRIORITY,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> list:
    """
    Order bookings for display without touching the input.

    Args:
        bookings: ORM bookings, dicts or BookingView objects
        sort_order: one of SortOrder; "priority" is the composite urgency order
        now: reference time for the priority tiers, defaults to current UTC time
        tz: timezone deciding which calendar day is "today"

    Returns:
        New list holding the same record objects in ranked order

    Raises:
        ValueError: unknown sort_order
        RankingError: a record has malformed dates or unknown statuses
    """
    sort_order = SortOrder(sort_order)
    views = [booking_view(record) for record in bookings]
    pairs = list(zip(views, bookings))

    if sort_order is SortOrder.LATEST:
        pairs.sort(key=lambda pair: pair[0].order_date, reverse=True)
    elif sort_order is SortOrder.EVENT_DATE_NEWEST:
        pairs.sort(key=lambda pair: pair[0].delivery_date, reverse=True)
    elif sort_order is SortOrder.EVENT_DATE_OLDEST:
        pairs.sort(key=lambda pair: pair[0].delivery_date)
    else:
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        compare = _priority_comparator(now, _resolve_tz(tz))
        pairs.sort(key=cmp_to_key(lambda x, y: compare(x[0], y[0])))

    return [record for _, record in pairs]


@dataclass
class Page:
    items: list = field(default_factory=list)
    current_page: int = 1
    total_pages: int = 0
    total_count: int = 0
    limit: int = 10

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.current_page > 1

    def pagination(self) -> dict:
        return {
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total_count": self.total_count,
            "has_next_page": self.has_next_page,
            "has_prev_page": self.has_prev_page,
            "limit": self.limit,
        }


def paginate(items: Sequence[Any], page: int = 1, page_size: Optional[int] = None) -> Page:
    """Slice ranked items into a page, clamping the page number into range"""
    page_size = page_size or settings.page_size
    if page_size < 1:
        raise ValueError("page_size must be positive")

    total_count = len(items)
    total_pages = math.ceil(total_count / page_size)
    current_page = min(max(page, 1), total_pages or 1)
    start = (current_page - 1) * page_size

    return Page(
        items=list(items[start:start + page_size]),
        current_page=current_page,
        total_pages=total_pages,
        total_count=total_count,
        limit=page_size,
    )
