"""
Unit tests for booking list ranking and pagination
"""
import copy
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from catering.services.ranking import (
    BookingStatus,
    BookingView,
    InvalidBookingDate,
    InvalidBookingField,
    PaymentStatus,
    RankingError,
    SortOrder,
    booking_view,
    paginate,
    rank_bookings,
)

UTC = timezone.utc
NOW = datetime(2024, 1, 10, 12, 0, tzinfo=UTC)


def booking(id, order_date, delivery_date, status="pending", payment_status="pending"):
    return {
        "id": id,
        "order_date": order_date,
        "delivery_date": delivery_date,
        "status": status,
        "payment_status": payment_status,
    }


def ids(bookings):
    return [b["id"] for b in bookings]


def rank(bookings, sort_order=SortOrder.PRIORITY):
    return rank_bookings(bookings, sort_order, now=NOW, tz=UTC)


@pytest.fixture
def mixed_bookings():
    """Bookings covering every priority tier"""
    return [
        booking("past-old", datetime(2023, 12, 1, tzinfo=UTC), NOW - timedelta(days=20)),
        booking("done-recent", datetime(2023, 12, 5, tzinfo=UTC), NOW - timedelta(days=2),
                status="completed", payment_status="fully_paid"),
        booking("future", datetime(2024, 1, 2, tzinfo=UTC), NOW + timedelta(days=10)),
        booking("today", datetime(2024, 1, 1, tzinfo=UTC), NOW + timedelta(hours=3)),
        booking("upcoming", datetime(2024, 1, 3, tzinfo=UTC), NOW + timedelta(hours=30)),
        booking("past-new", datetime(2024, 1, 8, tzinfo=UTC), NOW - timedelta(days=5)),
        booking("done-old", datetime(2023, 11, 1, tzinfo=UTC), NOW - timedelta(days=40),
                status="completed", payment_status="fully_paid"),
    ]


@pytest.mark.unit
class TestPriorityMode:
    """Test the default composite ordering"""

    def test_tier_order(self, mixed_bookings):
        """Today, upcoming, future, past, then fully completed"""
        result = rank(mixed_bookings)

        assert ids(result) == [
            "today", "upcoming", "future", "past-new", "past-old", "done-recent", "done-old",
        ]

    def test_is_default_mode(self, mixed_bookings):
        assert rank_bookings(mixed_bookings, now=NOW, tz=UTC) == rank(mixed_bookings)

    def test_today_tier_orders_by_earliest_placed(self):
        """Scenario: two events today and one in 72 hours"""
        today = NOW.replace(hour=18)
        bookings = [
            booking(1, datetime(2024, 1, 3, tzinfo=UTC), today),
            booking(2, datetime(2024, 1, 1, tzinfo=UTC), today),
            booking(3, datetime(2024, 1, 5, tzinfo=UTC), NOW + timedelta(hours=72)),
        ]

        assert ids(rank(bookings)) == [2, 1, 3]

    def test_today_tier_tie_breaks_on_earlier_delivery(self):
        placed = datetime(2024, 1, 2, tzinfo=UTC)
        bookings = [
            booking("late", placed, NOW.replace(hour=20)),
            booking("early", placed, NOW.replace(hour=14)),
        ]

        assert ids(rank(bookings)) == ["early", "late"]

    def test_earlier_today_event_still_counts_as_today(self):
        """An event a few hours ago today outranks upcoming events"""
        bookings = [
            booking("upcoming", datetime(2024, 1, 9, tzinfo=UTC), NOW + timedelta(hours=20)),
            booking("this-morning", datetime(2024, 1, 1, tzinfo=UTC), NOW.replace(hour=8)),
        ]

        assert ids(rank(bookings)) == ["this-morning", "upcoming"]

    def test_upcoming_and_future_order_by_latest_placed(self):
        bookings = [
            booking("up-old", datetime(2024, 1, 1, tzinfo=UTC), NOW + timedelta(hours=20)),
            booking("up-new", datetime(2024, 1, 9, tzinfo=UTC), NOW + timedelta(hours=40)),
            booking("fut-old", datetime(2024, 1, 1, tzinfo=UTC), NOW + timedelta(days=5)),
            booking("fut-new", datetime(2024, 1, 9, tzinfo=UTC), NOW + timedelta(days=30)),
        ]

        assert ids(rank(bookings)) == ["up-new", "up-old", "fut-new", "fut-old"]

    def test_future_tie_breaks_on_earlier_delivery(self):
        placed = datetime(2024, 1, 4, tzinfo=UTC)
        bookings = [
            booking("later", placed, NOW + timedelta(days=9)),
            booking("sooner", placed, NOW + timedelta(days=4)),
        ]

        assert ids(rank(bookings)) == ["sooner", "later"]

    def test_past_tie_breaks_on_most_recent_event(self):
        placed = datetime(2023, 12, 1, tzinfo=UTC)
        bookings = [
            booking("older-event", placed, NOW - timedelta(days=9)),
            booking("recent-event", placed, NOW - timedelta(days=3)),
        ]

        assert ids(rank(bookings)) == ["recent-event", "older-event"]

    def test_upcoming_window_boundary(self):
        """Exactly 48 hours ahead is still upcoming"""
        bookings = [
            booking("future", datetime(2024, 1, 9, tzinfo=UTC), NOW + timedelta(hours=48, minutes=1)),
            booking("edge", datetime(2024, 1, 1, tzinfo=UTC), NOW + timedelta(hours=48)),
        ]

        assert ids(rank(bookings)) == ["edge", "future"]

    def test_completed_after_past_pending(self):
        """Scenario: completed booking ranks after a past pending one"""
        bookings = [
            booking("A", datetime(2024, 1, 5, tzinfo=UTC), datetime(2024, 6, 1, tzinfo=UTC),
                    status="completed", payment_status="fully_paid"),
            booking("B", datetime(2023, 12, 1, tzinfo=UTC), datetime(2024, 1, 1, tzinfo=UTC)),
        ]

        assert ids(rank(bookings)) == ["B", "A"]

    def test_completed_but_unpaid_is_ranked_normally(self):
        bookings = [
            booking("paid", datetime(2024, 1, 1, tzinfo=UTC), NOW + timedelta(days=4),
                    status="completed", payment_status="fully_paid"),
            booking("unpaid", datetime(2024, 1, 1, tzinfo=UTC), NOW - timedelta(days=4),
                    status="completed", payment_status="deposit_paid"),
        ]

        assert ids(rank(bookings)) == ["unpaid", "paid"]

    def test_fully_completed_always_last(self, mixed_bookings):
        result = rank(mixed_bookings)
        done = [booking_view(b).is_fully_completed for b in result]

        first_done = done.index(True)
        assert all(done[first_done:])
        assert not any(done[:first_done])

    def test_fully_completed_by_latest_event(self, mixed_bookings):
        result = [booking_view(b) for b in rank(mixed_bookings)]
        completed = [v.delivery_date for v in result if v.is_fully_completed]

        assert completed == sorted(completed, reverse=True)

    def test_local_calendar_day_decides_today(self):
        """13:00 UTC on the 10th is midnight on the 11th in Sydney"""
        sydney = ZoneInfo("Australia/Sydney")
        now = datetime(2024, 1, 10, 13, 0, tzinfo=UTC)
        bookings = [
            booking("sydney-today", datetime(2024, 1, 1, tzinfo=UTC), datetime(2024, 1, 11, 2, tzinfo=UTC)),
            booking("upcoming", datetime(2024, 1, 2, tzinfo=UTC), datetime(2024, 1, 11, 20, tzinfo=UTC)),
        ]

        result = rank_bookings(bookings, now=now, tz=sydney)

        assert ids(result) == ["sydney-today", "upcoming"]


@pytest.mark.unit
class TestDateModes:
    """Test the plain date sort modes"""

    def test_latest(self, mixed_bookings):
        result = [booking_view(b) for b in rank(mixed_bookings, SortOrder.LATEST)]
        order_dates = [v.order_date for v in result]

        assert order_dates == sorted(order_dates, reverse=True)

    def test_event_date_newest(self, mixed_bookings):
        result = [booking_view(b) for b in rank(mixed_bookings, "event_date_newest")]
        delivery_dates = [v.delivery_date for v in result]

        assert delivery_dates == sorted(delivery_dates, reverse=True)

    def test_event_date_oldest(self, mixed_bookings):
        result = [booking_view(b) for b in rank(mixed_bookings, "event_date_oldest")]
        delivery_dates = [v.delivery_date for v in result]

        assert delivery_dates == sorted(delivery_dates)

    def test_unknown_mode_rejected(self, mixed_bookings):
        with pytest.raises(ValueError):
            rank(mixed_bookings, "alphabetical")


@pytest.mark.unit
class TestRankingContract:
    """Test purity and permutation properties"""

    @pytest.mark.parametrize("mode", list(SortOrder))
    def test_idempotent(self, mixed_bookings, mode):
        once = rank(mixed_bookings, mode)

        assert ids(rank(once, mode)) == ids(once)

    @pytest.mark.parametrize("mode", list(SortOrder))
    def test_output_is_permutation_and_input_untouched(self, mixed_bookings, mode):
        snapshot = copy.deepcopy(mixed_bookings)
        result = rank(mixed_bookings, mode)

        assert mixed_bookings == snapshot
        assert result is not mixed_bookings
        assert len(result) == len(mixed_bookings)
        assert sorted(ids(result)) == sorted(ids(mixed_bookings))
        assert all(any(r is b for b in mixed_bookings) for r in result)

    def test_empty_list(self):
        assert rank([]) == []

    def test_accepts_objects_and_iso_strings(self):
        view = BookingView(id="v", order_date=datetime(2024, 1, 1, tzinfo=UTC), delivery_date=NOW + timedelta(days=9))
        record = {
            "id": "d",
            "orderDate": "2024-01-09T08:00:00Z",
            "deliveryDate": "2024-01-20T08:00:00Z",
            "paymentStatus": "deposit_paid",
        }

        result = rank([view, record])

        assert result == [record, view]

    def test_naive_datetimes_treated_as_utc(self):
        view = booking_view(booking("n", datetime(2024, 1, 1), datetime(2024, 1, 2)))

        assert view.order_date.tzinfo == UTC

    def test_missing_statuses_default_to_pending(self):
        view = booking_view({"id": 1, "order_date": NOW, "delivery_date": NOW})

        assert view.status is BookingStatus.PENDING
        assert view.payment_status is PaymentStatus.PENDING

    def test_views_with_plain_string_statuses(self):
        """A completed view built from raw strings still ranks last"""
        done = BookingView(
            id="done",
            order_date=datetime(2024, 1, 5, tzinfo=UTC),
            delivery_date=NOW + timedelta(days=5),
            status="completed",
            payment_status="fully_paid",
        )
        open_past = BookingView(
            id="open",
            order_date=datetime(2023, 12, 1, tzinfo=UTC),
            delivery_date=NOW - timedelta(days=3),
        )

        result = rank([done, open_past])

        assert done.is_fully_completed
        assert done.status is BookingStatus.COMPLETED
        assert [v.id for v in result] == ["open", "done"]

    def test_views_with_naive_datetimes(self):
        view = BookingView(id="naive", order_date=datetime(2024, 1, 1), delivery_date=datetime(2024, 1, 12))

        result = rank([view, booking("aware", datetime(2024, 1, 2, tzinfo=UTC), NOW + timedelta(days=9))])

        assert view.delivery_date.tzinfo == UTC
        assert result[0] is view

    def test_view_rejects_unknown_status(self):
        with pytest.raises(InvalidBookingField):
            BookingView(id="v", order_date=NOW, delivery_date=NOW, status="shipped")

    def test_calendar_dates_promoted_to_midnight(self):
        view = booking_view(booking("d", date(2024, 1, 1), date(2024, 1, 12)))

        assert view.order_date == datetime(2024, 1, 1, tzinfo=UTC)
        assert view.delivery_date == datetime(2024, 1, 12, tzinfo=UTC)


@pytest.mark.unit
class TestMalformedBookings:
    """Malformed records are rejected before sorting"""

    def test_unparseable_date(self):
        bookings = [booking("bad", "not-a-date", NOW)]

        with pytest.raises(InvalidBookingDate) as exc:
            rank(bookings)
        assert exc.value.booking_id == "bad"
        assert exc.value.field_name == "order_date"

    def test_missing_delivery_date(self):
        with pytest.raises(InvalidBookingDate):
            rank([booking("missing", NOW, None)])

    def test_unknown_status(self):
        with pytest.raises(InvalidBookingField):
            rank([booking("odd", NOW, NOW, status="shipped")])

    def test_unsupported_date_type(self):
        with pytest.raises(InvalidBookingDate, match="unsupported"):
            rank([booking("num", 1704067200, NOW)])

    def test_errors_are_value_errors(self):
        assert issubclass(RankingError, ValueError)


@pytest.mark.unit
class TestPagination:
    """Test page slicing after ranking"""

    def test_default_page_size_is_ten(self):
        page = paginate(list(range(25)))

        assert page.items == list(range(10))
        assert page.total_pages == 3
        assert page.total_count == 25
        assert page.limit == 10
        assert page.has_next_page
        assert not page.has_prev_page

    def test_last_page(self):
        page = paginate(list(range(25)), page=3)

        assert page.items == [20, 21, 22, 23, 24]
        assert not page.has_next_page
        assert page.has_prev_page

    def test_page_clamped_to_range(self):
        assert paginate(list(range(25)), page=9).current_page == 3
        assert paginate(list(range(25)), page=0).current_page == 1

    def test_empty(self):
        page = paginate([])

        assert page.items == []
        assert page.total_pages == 0
        assert page.current_page == 1
        assert page.pagination()["has_next_page"] is False

    def test_invalid_page_size(self):
        with pytest.raises(ValueError):
            paginate([1, 2], page_size=-1)
