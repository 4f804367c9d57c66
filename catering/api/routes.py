import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from catering.config import settings
from catering.database import get_db
from catering.schemas.booking import (
    BookingCreate,
    BookingCreated,
    BookingRead,
    BookingUpdate,
    CancelRequest,
    PaymentUpdate,
    StatusUpdate,
)
from catering.services import bookings as booking_service
from catering.services.bookings import BookingError, BookingFilters, BookingStateError
from catering.services.ranking import BookingStatus, RankingError, SortOrder

router = APIRouter()
logger = logging.getLogger(__name__)


def _page_response(page) -> dict:
    return {
        "bookings": [BookingRead.model_validate(b) for b in page.items],
        "pagination": page.pagination(),
    }


def _not_found():
    return HTTPException(status_code=404, detail="Booking not found")


@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "ok", "app": settings.app_name}


@router.post("/bookings", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
def create_booking(booking: BookingCreate, db: Session = Depends(get_db)):
    """Create a booking (public)"""
    try:
        saved = booking_service.create_booking(db, booking)
    except BookingError as e:
        logger.error(f"Error creating booking: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating booking: {e}")
        raise HTTPException(status_code=500, detail="Failed to create booking")

    if saved.is_custom_order:
        message = "Your custom order has been submitted successfully. You will receive a confirmation SMS shortly."
    else:
        message = "Your booking has been submitted successfully. You will receive a confirmation SMS shortly."
    return BookingCreated(
        booking_id=saved.id,
        booking_reference=saved.booking_reference,
        message=message,
    )


@router.get("/bookings")
def get_bookings(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    sort_order: SortOrder = SortOrder.PRIORITY,
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    delivery_type: Optional[str] = None,
    location_id: Optional[str] = None,
    service_id: Optional[str] = None,
    order_type: Optional[str] = Query(None, pattern="^(custom|regular)$"),
    dietary_requirement: Optional[str] = None,
    spice_level: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Admin booking list.

    - Filter bookings
    - Rank by sort_order (priority by default)
    - Return one page
    """
    filters = BookingFilters(
        status=booking_status.value if booking_status else None,
        delivery_type=delivery_type,
        location_id=location_id,
        service_id=service_id,
        order_type=order_type,
        dietary_requirement=dietary_requirement,
        spice_level=spice_level,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    try:
        result = booking_service.list_bookings(db, filters, sort_order, page, limit)
    except RankingError as e:
        logger.error(f"Cannot rank bookings: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    return _page_response(result)


@router.get("/bookings/stats")
def get_booking_stats(
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    delivery_type: Optional[str] = None,
    location_id: Optional[str] = None,
    service_id: Optional[str] = None,
    order_type: Optional[str] = Query(None, pattern="^(custom|regular)$"),
    dietary_requirement: Optional[str] = None,
    spice_level: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: Session = Depends(get_db),
):
    """Booking statistics for the dashboard"""
    filters = BookingFilters(
        status=booking_status.value if booking_status else None,
        delivery_type=delivery_type,
        location_id=location_id,
        service_id=service_id,
        order_type=order_type,
        dietary_requirement=dietary_requirement,
        spice_level=spice_level,
        start_date=start_date,
        end_date=end_date,
    )
    return booking_service.booking_stats(db, filters)


@router.get("/bookings/calendar")
def get_booking_calendar(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
):
    """Bookings of a month grouped by local delivery day"""
    buckets = booking_service.bookings_for_month(db, year, month)
    return {
        "year": year,
        "month": month,
        "days": {
            day: [BookingRead.model_validate(b) for b in items]
            for day, items in buckets.items()
        },
    }


@router.get("/bookings/reference/{reference}", response_model=BookingRead)
def get_booking_by_reference(reference: str, email: Optional[str] = None, db: Session = Depends(get_db)):
    """Customer lookup by booking reference"""
    booking = booking_service.get_booking_by_reference(db, reference, email)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found or email doesn't match")
    return booking


@router.get("/bookings/customer/{email}")
def get_customer_bookings(
    email: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Booking history of one customer"""
    return _page_response(booking_service.get_bookings_by_customer(db, email, page, limit))


@router.get("/bookings/{booking_id}", response_model=BookingRead)
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    """Get booking details"""
    booking = booking_service.get_booking(db, booking_id)
    if not booking:
        raise _not_found()
    return booking


@router.put("/bookings/{booking_id}", response_model=BookingRead)
def update_booking(booking_id: int, changes: BookingUpdate, db: Session = Depends(get_db)):
    """Update booking details"""
    booking = booking_service.update_booking(db, booking_id, changes)
    if not booking:
        raise _not_found()
    return booking


@router.put("/bookings/{booking_id}/status", response_model=BookingRead)
def update_booking_status(booking_id: int, request: StatusUpdate, db: Session = Depends(get_db)):
    """Change booking status"""
    booking = booking_service.update_booking_status(
        db, booking_id, request.status.value, request.admin_notes
    )
    if not booking:
        raise _not_found()
    return booking


@router.put("/bookings/{booking_id}/payment", response_model=BookingRead)
def update_payment_status(booking_id: int, request: PaymentUpdate, db: Session = Depends(get_db)):
    """Change payment status"""
    booking = booking_service.update_payment_status(
        db, booking_id, request.payment_status.value, request.deposit_amount
    )
    if not booking:
        raise _not_found()
    return booking


@router.put("/bookings/{booking_id}/cancel")
def cancel_booking(booking_id: int, request: CancelRequest, db: Session = Depends(get_db)):
    """Cancel a booking"""
    try:
        booking = booking_service.cancel_booking(db, booking_id, request.reason)
    except BookingStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not booking:
        raise _not_found()

    return {
        "booking_reference": booking.booking_reference,
        "status": booking.status,
        "cancellation_reason": booking.cancellation_reason,
    }
