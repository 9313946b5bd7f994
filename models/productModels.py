from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

CENT = Decimal("0.01")

# sentinel for "no category filter"; never sent to the backend
ALL_CATEGORIES = "All"


class Category(str, Enum):
    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    FURNITURE = "Furniture"
    BOOKS = "Books"
    SPORTS = "Sports"
    HOME_AND_GARDEN = "Home & Garden"
    TOYS = "Toys"
    BEAUTY = "Beauty"
    AUTOMOTIVE = "Automotive"
    OTHER = "Other"


class Condition(str, Enum):
    NEW = "New"
    LIKE_NEW = "Like New"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class SellerRef(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    username: str = ""
    email: Optional[str] = None


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    title: str
    description: str = ""
    category: Category
    price: Decimal = Field(ge=0)
    condition: Condition = Condition.GOOD
    location: str = ""
    quantity: int = Field(1, ge=0)
    images: List[str] = Field(default_factory=list)
    is_available: bool = Field(True, alias="isAvailable")
    seller: SellerRef
    date_created: Optional[datetime] = Field(None, alias="dateCreated")
    date_updated: Optional[datetime] = Field(None, alias="dateUpdated")

    @property
    def cover_image(self):
        return self.images[0] if self.images else None


def format_money(amount):
    """``Decimal("30")`` -> ``"$30.00"``."""
    return f"${Decimal(amount).quantize(CENT)}"
