"""Property-related Pydantic schemas."""

from decimal import Decimal
from enum import Enum

from pydantic import Field

from servicebook.schemas.base import WireModel


class Department(str, Enum):
    """The four fixed service categories."""

    HOTEL = "Hotel"
    SALON = "Salon"
    HOSPITAL = "Hospital"
    CAB = "Cab"

    @classmethod
    def _missing_(cls, value: object) -> "Department | None":
        # URL paths carry lower-case names ("/bookings/hotel")
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


class PropertyStatus(str, Enum):
    """Property lifecycle status."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PENDING = "Pending"
    CANCELLED = "Cancelled"


class CabCategory(str, Enum):
    """Cab vehicle tiers priced per km."""

    ECONOMY = "economy"
    PREMIUM = "premium"
    XL = "xl"


class CabRateTable(WireModel):
    """Per-km prices by vehicle category."""

    economy: Decimal | None = Field(None, ge=0)
    premium: Decimal | None = Field(None, ge=0)
    xl: Decimal | None = Field(None, ge=0)

    def rate_for(self, category: CabCategory) -> Decimal | None:
        return getattr(self, CabCategory(category).value)


class Property(WireModel):
    """A host-owned bookable asset."""

    id: str
    department: Department
    host_id: str
    name: str = ""
    base_price: Decimal | None = Field(None, ge=0)
    status: PropertyStatus = PropertyStatus.ACTIVE
    cab_rates: CabRateTable | None = None

    @property
    def accepts_bookings(self) -> bool:
        return self.status == PropertyStatus.ACTIVE


class OfferedService(WireModel):
    """Priced add-on service attached to a property."""

    id: str
    property_id: str
    name: str
    price: Decimal = Field(..., ge=0)
    description: str | None = Field(None, max_length=1000)


class Specialist(WireModel):
    """Selectable staff member attached to a property."""

    id: str
    property_id: str
    name: str
    specialty: str | None = Field(None, max_length=100)


class PropertyStatusUpdate(WireModel):
    """Schema for a host status toggle."""

    status: PropertyStatus


class PropertyCreateAuthorization(WireModel):
    """Answer to "may this host add another property?"."""

    allowed: bool
    current_count: int
    max_properties: int | None = None
    plan_name: str | None = None
