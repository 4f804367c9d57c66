from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship
from catering.database import Base


class Booking(Base):
    """Catering booking placed from a menu package or a custom order"""
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_reference = Column(String(20), unique=True, index=True)

    # Order source, copied at booking time
    source_type = Column(String(20), index=True)  # "menu" or "customOrder"
    source_id = Column(String(64))
    source_name = Column(String(255))
    location_id = Column(String(64), index=True)
    location_name = Column(String(255))
    service_id = Column(String(64), nullable=True, index=True)
    service_name = Column(String(255), nullable=True)

    # Customer
    customer_name = Column(String(255))
    customer_email = Column(String(255), index=True)
    customer_phone = Column(String(30), index=True)
    special_instructions = Column(Text, default="")
    dietary_requirements = Column(JSON, default=list)
    spice_level = Column(String(20), default="medium")

    people_count = Column(Integer)
    delivery_type = Column(String(20), default="Pickup")
    delivery_date = Column(DateTime, index=True)

    # Address (Delivery only)
    street = Column(String(255), nullable=True)
    suburb = Column(String(255), nullable=True)
    postcode = Column(String(20), nullable=True)
    state = Column(String(50), nullable=True)
    country = Column(String(100), nullable=True)

    # Pricing
    base_price = Column(Float, default=0)
    modifier_price = Column(Float, default=0)
    items_price = Column(Float, default=0)
    addons_price = Column(Float, default=0)
    pricing_total = Column(Float)
    deposit_amount = Column(Float, default=0)
    venue_selection = Column(String(20), nullable=True)
    venue_charge = Column(Float, default=0)
    is_function = Column(Boolean, default=False)

    status = Column(String(20), default="pending", index=True)
    payment_status = Column(String(20), default="pending")
    order_date = Column(DateTime, default=func.now())

    admin_notes = Column(Text, default="")
    cancellation_reason = Column(Text, default="")
    is_deleted = Column(Boolean, default=False, index=True)
    reminder_sent = Column(Boolean, default=False)  # Track if event reminder SMS sent

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    selected_items = relationship(
        "BookingItem",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingItem.id",
    )

    @property
    def is_custom_order(self) -> bool:
        return self.source_type == "customOrder"


class BookingItem(Base):
    """Selected item with its details copied into the booking"""
    __tablename__ = "booking_items"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), index=True)
    name = Column(String(255))
    description = Column(Text, default="")
    price_per_person = Column(Float, default=0)
    price_per_order = Column(Float, default=0)
    total_price = Column(Float)
    category = Column(String(20))
    type = Column(String(20))
    quantity = Column(Integer, default=1)
    group_name = Column(String(255), default="")
    is_vegetarian = Column(Boolean, default=False)
    is_vegan = Column(Boolean, default=False)
    allergens = Column(JSON, default=list)
    notes = Column(Text, default="")

    # Relationships
    booking = relationship("Booking", back_populates="selected_items")
