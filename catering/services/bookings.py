"""
Booking service
Persistence, lookups, status changes and reporting for catering bookings
"""
import logging
import random
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import or_
from sqlalchemy.orm import Session

from catering.config import settings
from catering.models import Booking, BookingItem
from catering.schemas.booking import BookingCreate, BookingUpdate
from catering.services.email_service import send_admin_notification_email, send_customer_confirmation_email
from catering.services.ranking import Page, SortOrder, paginate, rank_bookings
from catering.services.sms_service import send_admin_booking_alert, send_booking_confirmation

logger = logging.getLogger(__name__)

REFERENCE_ATTEMPTS = 10


class BookingError(Exception):
    """Base error for booking operations"""


class BookingStateError(BookingError):
    """Requested change is not allowed in the booking's current state"""


class BookingReferenceError(BookingError):
    """No unique booking reference could be generated"""


@dataclass
class BookingFilters:
    status: Optional[str] = None
    delivery_type: Optional[str] = None
    location_id: Optional[str] = None
    service_id: Optional[str] = None
    order_type: Optional[str] = None  # "custom" or "regular"
    dietary_requirement: Optional[str] = None
    spice_level: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search: Optional[str] = None


def business_tz() -> tzinfo:
    return ZoneInfo(settings.timezone)


def to_utc_naive(value: datetime) -> datetime:
    """Normalize a datetime to the naive UTC form stored in the database"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def generate_booking_reference(db: Session, is_custom_order: bool = False) -> str:
    """
    Generate a unique booking reference like BK240115042.

    Custom orders use the CU prefix. The date part is the business-local day.

    Raises:
        BookingReferenceError: no free reference after REFERENCE_ATTEMPTS tries
    """
    prefix = "CU" if is_custom_order else "BK"
    day = datetime.now(business_tz()).strftime("%y%m%d")

    for _ in range(REFERENCE_ATTEMPTS):
        reference = f"{prefix}{day}{random.randint(0, 999):03d}"
        exists = db.query(Booking.id).filter(Booking.booking_reference == reference).first()
        if not exists:
            return reference

    raise BookingReferenceError("Could not generate unique booking reference")


def _notify_new_booking(booking: Booking) -> None:
    # Notifications never fail the booking
    notifiers = (
        send_customer_confirmation_email,
        send_admin_notification_email,
        send_booking_confirmation,
        send_admin_booking_alert,
    )
    for notify in notifiers:
        try:
            result = notify(booking)
            if result.get("status") != "success":
                logger.warning(f"{notify.__name__} failed for {booking.booking_reference}: {result.get('message')}")
        except Exception as e:
            logger.warning(f"{notify.__name__} raised for {booking.booking_reference}: {e}")


def create_booking(db: Session, data: BookingCreate, now: Optional[datetime] = None) -> Booking:
    """
    Create a booking with its selected items and send confirmation email and SMS.

    Args:
        db: Database session
        data: Validated booking payload
        now: Order placement time, defaults to current UTC time

    Returns:
        The persisted booking
    """
    source = data.order_source
    customer = data.customer_details
    is_custom_order = source.source_type == "customOrder"

    booking = Booking(
        booking_reference=generate_booking_reference(db, is_custom_order),
        source_type=source.source_type,
        source_id=source.source_id,
        source_name=source.source_name,
        location_id=source.location_id,
        location_name=source.location_name,
        service_id=source.service_id,
        service_name=source.service_name,
        customer_name=customer.name.strip(),
        customer_email=customer.email.strip().lower(),
        customer_phone=customer.phone.strip(),
        special_instructions=customer.special_instructions,
        dietary_requirements=list(customer.dietary_requirements),
        spice_level=customer.spice_level,
        people_count=data.people_count,
        delivery_type=data.delivery_type,
        delivery_date=to_utc_naive(data.delivery_date),
        base_price=data.pricing.base_price,
        modifier_price=data.pricing.modifier_price,
        items_price=data.pricing.items_price,
        addons_price=data.pricing.addons_price,
        pricing_total=data.pricing.total,
        deposit_amount=data.deposit_amount,
        is_function=data.is_function,
        venue_selection=data.venue_selection,
        venue_charge=data.venue_charge,
        status="pending",
        payment_status="pending",
        order_date=to_utc_naive(now or datetime.now(timezone.utc)),
    )
    if data.address is not None:
        _apply_address(booking, data.address)
    booking.selected_items = [BookingItem(**item.model_dump()) for item in data.selected_items]

    db.add(booking)
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking.booking_reference} created for {booking.customer_email}")

    _notify_new_booking(booking)
    return booking


def _apply_address(booking: Booking, address) -> None:
    booking.street = address.street.strip()
    booking.suburb = address.suburb.strip()
    booking.postcode = address.postcode.strip()
    booking.state = address.state.strip()
    booking.country = address.country


def _filtered_query(db: Session, filters: BookingFilters, date_column=Booking.delivery_date):
    query = db.query(Booking).filter(Booking.is_deleted == False)

    if filters.status:
        query = query.filter(Booking.status == filters.status)
    if filters.delivery_type:
        query = query.filter(Booking.delivery_type == filters.delivery_type)
    if filters.location_id:
        query = query.filter(Booking.location_id == filters.location_id)
    if filters.service_id:
        # Custom orders have no service
        query = query.filter(
            Booking.service_id == filters.service_id,
            Booking.source_type == "menu",
        )
    if filters.order_type == "custom":
        query = query.filter(Booking.source_type == "customOrder")
    elif filters.order_type == "regular":
        query = query.filter(Booking.source_type == "menu")
    if filters.spice_level:
        query = query.filter(Booking.spice_level == filters.spice_level)
    if filters.start_date and filters.end_date:
        query = query.filter(
            date_column >= to_utc_naive(filters.start_date),
            date_column <= to_utc_naive(filters.end_date),
        )
    if filters.search and filters.search.strip():
        term = f"%{filters.search.strip()}%"
        query = query.filter(
            or_(
                Booking.booking_reference.ilike(term),
                Booking.customer_name.ilike(term),
                Booking.customer_email.ilike(term),
                Booking.customer_phone.ilike(term),
                Booking.source_name.ilike(term),
                Booking.location_name.ilike(term),
                Booking.service_name.ilike(term),
            )
        )
    return query


def find_bookings(db: Session, filters: Optional[BookingFilters] = None, date_column=Booking.delivery_date) -> list:
    """All non-deleted bookings matching the filters, unordered"""
    filters = filters or BookingFilters()
    bookings = _filtered_query(db, filters, date_column).all()

    # Dietary requirements live in a JSON list
    if filters.dietary_requirement:
        bookings = [
            b for b in bookings
            if filters.dietary_requirement in (b.dietary_requirements or [])
        ]
    return bookings


def list_bookings(
    db: Session,
    filters: Optional[BookingFilters] = None,
    sort_order: SortOrder | str = SortOrder.PRIORITY,
    page: int = 1,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Page:
    """
    Filtered admin booking list, ranked and paginated.

    Args:
        db: Database session
        filters: Optional filter set
        sort_order: Ranking mode
        page: 1-based page number
        limit: Page size, defaults to settings.page_size
        now: Reference time for priority ranking

    Returns:
        Page of bookings
    """
    bookings = find_bookings(db, filters)
    ranked = rank_bookings(bookings, sort_order, now=now, tz=business_tz())
    return paginate(ranked, page, limit)


def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
    return (
        db.query(Booking)
        .filter(Booking.id == booking_id, Booking.is_deleted == False)
        .first()
    )


def get_booking_by_reference(db: Session, reference: str, email: Optional[str] = None) -> Optional[Booking]:
    """Customer lookup by reference, optionally checked against the customer email"""
    query = db.query(Booking).filter(
        Booking.booking_reference == reference.strip().upper(),
        Booking.is_deleted == False,
    )
    if email:
        query = query.filter(Booking.customer_email == email.strip().lower())
    return query.first()


def get_bookings_by_customer(db: Session, email: str, page: int = 1, limit: Optional[int] = None) -> Page:
    """Customer booking history, most recently placed first"""
    bookings = (
        db.query(Booking)
        .filter(Booking.customer_email == email.strip().lower(), Booking.is_deleted == False)
        .order_by(Booking.order_date.desc())
        .all()
    )
    return paginate(bookings, page, limit)


def update_booking_status(
    db: Session, booking_id: int, status: str, admin_notes: Optional[str] = None
) -> Optional[Booking]:
    booking = get_booking(db, booking_id)
    if not booking:
        return None

    booking.status = status
    if admin_notes:
        booking.admin_notes = admin_notes
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking.booking_reference} status -> {status}")
    return booking


def update_payment_status(
    db: Session, booking_id: int, payment_status: str, deposit_amount: Optional[float] = None
) -> Optional[Booking]:
    booking = get_booking(db, booking_id)
    if not booking:
        return None

    booking.payment_status = payment_status
    if deposit_amount is not None:
        booking.deposit_amount = deposit_amount
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking.booking_reference} payment -> {payment_status}")
    return booking


def update_booking(db: Session, booking_id: int, changes: BookingUpdate) -> Optional[Booking]:
    """
    Apply a partial update to a booking.

    The address is only applied when the booking is (or becomes) a delivery.
    Selected items, when given, replace the existing ones.
    """
    booking = get_booking(db, booking_id)
    if not booking:
        return None

    customer = changes.customer_details
    if customer is not None:
        if customer.name:
            booking.customer_name = customer.name.strip()
        if customer.email:
            booking.customer_email = customer.email.strip().lower()
        if customer.phone:
            booking.customer_phone = customer.phone.strip()
        if customer.special_instructions is not None:
            booking.special_instructions = customer.special_instructions
        if customer.dietary_requirements is not None:
            booking.dietary_requirements = list(customer.dietary_requirements)
        if customer.spice_level is not None:
            booking.spice_level = customer.spice_level

    if changes.people_count:
        booking.people_count = changes.people_count
    if changes.delivery_type:
        booking.delivery_type = changes.delivery_type
    if changes.delivery_date:
        booking.delivery_date = to_utc_naive(changes.delivery_date)
        # A moved event needs a fresh reminder
        booking.reminder_sent = False
    if changes.address is not None and booking.delivery_type == "Delivery":
        _apply_address(booking, changes.address)
    if changes.selected_items is not None:
        booking.selected_items = [BookingItem(**item.model_dump()) for item in changes.selected_items]
    if changes.pricing is not None:
        booking.base_price = changes.pricing.base_price
        booking.modifier_price = changes.pricing.modifier_price
        booking.items_price = changes.pricing.items_price
        booking.addons_price = changes.pricing.addons_price
        booking.pricing_total = changes.pricing.total
    if changes.admin_notes is not None:
        booking.admin_notes = changes.admin_notes

    db.commit()
    db.refresh(booking)
    return booking


def cancel_booking(db: Session, booking_id: int, reason: Optional[str] = None) -> Optional[Booking]:
    """
    Cancel a booking.

    Raises:
        BookingStateError: booking is already cancelled
    """
    booking = get_booking(db, booking_id)
    if not booking:
        return None
    if booking.status == "cancelled":
        raise BookingStateError("Booking is already cancelled")

    booking.status = "cancelled"
    if reason:
        booking.cancellation_reason = reason
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking.booking_reference} cancelled")
    return booking


def booking_stats(db: Session, filters: Optional[BookingFilters] = None) -> dict:
    """
    Aggregate booking statistics.

    Takes the same filters as the booking list, except that the date range
    applies to the order date here, not the delivery date.
    """
    bookings = find_bookings(db, filters, date_column=Booking.order_date)

    total_revenue = sum(b.pricing_total or 0 for b in bookings)
    item_counts = Counter()
    item_categories = {}
    for booking in bookings:
        for item in booking.selected_items:
            item_counts[item.name] += 1
            item_categories.setdefault(item.name, item.category)

    return {
        "overview": {
            "total_bookings": len(bookings),
            "total_revenue": total_revenue,
            "total_people": sum(b.people_count or 0 for b in bookings),
            "average_order_value": round(total_revenue / len(bookings), 2) if bookings else 0,
            "custom_orders": sum(1 for b in bookings if b.is_custom_order),
            "regular_orders": sum(1 for b in bookings if not b.is_custom_order),
            "status_counts": dict(Counter(b.status for b in bookings)),
            "dietary_breakdown": dict(
                Counter(req for b in bookings for req in (b.dietary_requirements or []))
            ),
            "spice_level_breakdown": dict(Counter(b.spice_level for b in bookings if b.spice_level)),
        },
        "popular_items": [
            {"name": name, "count": count, "category": item_categories[name]}
            for name, count in item_counts.most_common(10)
        ],
    }


def month_bounds(year: int, month: int, tz: Optional[tzinfo] = None) -> tuple[datetime, datetime]:
    """Naive UTC [start, end) range covering a business-local calendar month"""
    tz = tz or business_tz()
    start = datetime(year, month, 1, tzinfo=tz)
    end = datetime(year + month // 12, month % 12 + 1, 1, tzinfo=tz)
    return to_utc_naive(start), to_utc_naive(end)


def local_day(value: datetime, tz: Optional[tzinfo] = None) -> date:
    """Business-local calendar day of a stored (naive UTC) timestamp"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz or business_tz()).date()


def calendar_buckets(bookings, tz: Optional[tzinfo] = None) -> dict:
    """Group bookings by the local day of their delivery date, keeping input order"""
    buckets = {}
    for booking in bookings:
        key = local_day(booking.delivery_date, tz).isoformat()
        buckets.setdefault(key, []).append(booking)
    return buckets


def bookings_for_month(db: Session, year: int, month: int) -> dict:
    """Calendar view of a month: bookings bucketed by day, earliest delivery first"""
    start, end = month_bounds(year, month)
    bookings = (
        db.query(Booking)
        .filter(
            Booking.is_deleted == False,
            Booking.delivery_date >= start,
            Booking.delivery_date < end,
        )
        .all()
    )
    ranked = rank_bookings(bookings, SortOrder.EVENT_DATE_OLDEST)
    return calendar_buckets(ranked)
