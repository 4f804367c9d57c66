from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from catering.services.ranking import BookingStatus, PaymentStatus

SourceType = Literal["menu", "customOrder"]
DeliveryType = Literal["Pickup", "Delivery", "Event"]
DietaryRequirement = Literal["vegetarian", "vegan", "gluten-free", "halal-friendly"]
SpiceLevel = Literal["mild", "medium", "hot", "extra-hot"]
ItemCategory = Literal[
    "entree", "mains", "desserts", "sides", "beverages",
    "addons", "package", "choices", "options",
]
ItemType = Literal["included", "selected", "addon", "package", "choice", "option"]
VenueSelection = Literal["both", "indoor", "outdoor"]


class OrderSource(BaseModel):
    source_type: SourceType
    source_id: str
    source_name: str
    location_id: str
    location_name: str
    service_id: Optional[str] = None
    service_name: Optional[str] = None
    base_price: float = Field(default=0, ge=0)


class CustomerDetails(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str = Field(min_length=1)
    special_instructions: str = ""
    dietary_requirements: List[DietaryRequirement] = []
    spice_level: SpiceLevel = "medium"


class CustomerDetailsUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = None
    special_instructions: Optional[str] = None
    dietary_requirements: Optional[List[DietaryRequirement]] = None
    spice_level: Optional[SpiceLevel] = None


class Address(BaseModel):
    street: str
    suburb: str
    postcode: str
    state: str
    country: str = "Australia"


class SelectedItem(BaseModel):
    name: str
    description: str = ""
    price_per_person: float = Field(default=0, ge=0)
    price_per_order: float = Field(default=0, ge=0)
    total_price: float = Field(ge=0)
    category: ItemCategory
    type: ItemType
    quantity: int = Field(default=1, ge=1)
    group_name: str = ""
    is_vegetarian: bool = False
    is_vegan: bool = False
    allergens: List[str] = []
    notes: str = ""

    model_config = ConfigDict(from_attributes=True)


class Pricing(BaseModel):
    base_price: float = Field(default=0, ge=0)
    modifier_price: float = 0
    items_price: float = Field(default=0, ge=0)
    addons_price: float = Field(default=0, ge=0)
    total: float = Field(ge=0)


class BookingCreate(BaseModel):
    order_source: OrderSource
    customer_details: CustomerDetails
    people_count: int = Field(ge=1, le=1000)
    selected_items: List[SelectedItem] = Field(min_length=1)
    pricing: Pricing
    delivery_type: DeliveryType = "Pickup"
    delivery_date: datetime
    address: Optional[Address] = None
    deposit_amount: float = Field(default=0, ge=0)
    is_function: bool = False
    venue_selection: Optional[VenueSelection] = None
    venue_charge: float = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_conditional_fields(self):
        if self.delivery_type == "Delivery" and self.address is None:
            raise ValueError("Address is required for delivery bookings")
        if (
            self.order_source.source_type == "menu"
            and self.is_function
            and self.venue_selection is None
        ):
            raise ValueError("Venue selection is required for function bookings")
        return self


class BookingUpdate(BaseModel):
    customer_details: Optional[CustomerDetailsUpdate] = None
    people_count: Optional[int] = Field(default=None, ge=1, le=1000)
    delivery_type: Optional[DeliveryType] = None
    delivery_date: Optional[datetime] = None
    address: Optional[Address] = None
    selected_items: Optional[List[SelectedItem]] = None
    pricing: Optional[Pricing] = None
    admin_notes: Optional[str] = None


class StatusUpdate(BaseModel):
    status: BookingStatus
    admin_notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    payment_status: PaymentStatus
    deposit_amount: Optional[float] = Field(default=None, ge=0)


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class BookingCreated(BaseModel):
    booking_id: int
    booking_reference: str
    message: str


class BookingRead(BaseModel):
    id: int
    booking_reference: str
    source_type: str
    source_name: str
    location_id: str
    location_name: str
    service_id: Optional[str] = None
    service_name: Optional[str] = None
    is_custom_order: bool
    customer_name: str
    customer_email: str
    customer_phone: str
    special_instructions: Optional[str] = ""
    dietary_requirements: List[str] = []
    spice_level: Optional[str] = None
    people_count: int
    delivery_type: str
    delivery_date: datetime
    street: Optional[str] = None
    suburb: Optional[str] = None
    postcode: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    pricing_total: float
    deposit_amount: float = 0
    venue_charge: float = 0
    is_function: bool = False
    status: str
    payment_status: str
    order_date: datetime
    admin_notes: Optional[str] = ""
    cancellation_reason: Optional[str] = ""
    selected_items: List[SelectedItem] = []

    model_config = ConfigDict(from_attributes=True)
