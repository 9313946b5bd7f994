from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from models.productModels import SellerRef


class PurchaseStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    PAYPAL = "PayPal"
    OTHER = "Other"


class ShippingAddress(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    street: str
    city: str
    state: str
    zip_code: str = Field(alias="zipCode")
    country: str


class PurchasedProduct(BaseModel):
    """Product as it was when bought; later edits to the listing do not show here."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="_id")
    title: str
    price: Decimal = Field(ge=0)
    images: List[str] = Field(default_factory=list)
    category: str = ""


class Purchase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="_id")
    buyer: str
    seller: SellerRef
    product: PurchasedProduct
    quantity: int = Field(ge=1)
    total_amount: Decimal = Field(alias="totalAmount")
    purchase_date: datetime = Field(alias="purchaseDate")
    status: PurchaseStatus = PurchaseStatus.PENDING
    shipping_address: ShippingAddress = Field(alias="shippingAddress")
    payment_method: PaymentMethod = Field(alias="paymentMethod")
