from catering.models.booking import Booking, BookingItem

__all__ = ["Booking", "BookingItem"]
