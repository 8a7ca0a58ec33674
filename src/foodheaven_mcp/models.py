"""Documents exchanged with the remote store and the local store.

Remote documents use camelCase field names, so every model here accepts both
the alias (``imageUrl``) and the attribute name (``image_url``) and is dumped
with ``by_alias=True`` before it leaves the process.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_IMAGE = "https://via.placeholder.com/600x400/e92c40/ffffff?text=Food+Heaven"


class Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude={"id", "uid"})


class OrderStatus(str, Enum):
    NEW = "New"
    PROCESSING = "Processing"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class ServiceType(str, Enum):
    DELIVERY = "delivery"
    DINEIN = "dinein"


class PaymentMethod(str, Enum):
    CARD = "card"
    UPI = "upi"
    COD = "cod"


class Role(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class MenuItem(Document):
    id: str
    name: str = "Unnamed Dish"
    description: str = ""
    price: float = Field(0.0, ge=0)
    category: str = "biryani"
    image_url: str = ""
    is_new: bool = False
    stock: int = 999


class CartLine(Document):
    id: str
    name: str
    price: float = Field(..., gt=0)
    quantity: int = Field(..., gt=0)
    image_url: str = DEFAULT_IMAGE

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class OrderLine(Document):
    id: str
    name: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)


class DeliveryDetails(Document):
    address: str
    city: str
    zip: str
    instructions: str = ""


class DineInDetails(Document):
    people: int = Field(..., ge=1)
    time: str


class Order(Document):
    id: Optional[str] = None
    user_id: str
    customer_email: str
    customer_name: str
    customer_phone: str
    order_items: list[OrderLine]
    total: float = Field(..., ge=0)
    service: ServiceType
    details: dict[str, Any] = Field(default_factory=dict)
    payment_method: PaymentMethod
    status: OrderStatus = OrderStatus.NEW
    timestamp: datetime
    updated_by: Optional[str] = None
    update_timestamp: Optional[datetime] = None

    def to_document(self) -> dict[str, Any]:
        data = self.model_dump(
            by_alias=True,
            mode="python",
            exclude={"id", "updated_by", "update_timestamp"},
        )
        data["service"] = self.service.value
        data["paymentMethod"] = self.payment_method.value
        data["status"] = self.status.value
        return data


class SavedAddress(Document):
    address_line: str = ""
    city: str = ""
    pincode: str = ""
    is_default: bool = False


class UserProfile(Document):
    uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    role: Role = Role.CUSTOMER
    wishlist: Optional[list[str]] = None
    saved_addresses: list[SavedAddress] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
