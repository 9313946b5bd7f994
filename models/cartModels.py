from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import logging

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.productModels import CENT, Product

logger = logging.getLogger(__name__)


class CartItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product: Product
    quantity: int = Field(ge=1)
    added_at: Optional[datetime] = Field(None, alias="addedAt")

    @property
    def subtotal(self):
        return self.product.price * self.quantity


class Cart(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    user: Optional[str] = None
    items: List[CartItem] = Field(default_factory=list, alias="products")
    total_amount: Optional[Decimal] = Field(None, alias="totalAmount")
    last_updated: Optional[datetime] = Field(None, alias="lastUpdated")

    @model_validator(mode="after")
    def _key_items_and_total(self):
        # one entry per product, and the total always derived from the items
        merged = {}
        for item in self.items:
            existing = merged.get(item.product.id)
            if existing is None:
                merged[item.product.id] = item
            else:
                logger.warning("Cart %s lists product %s twice, merging", self.id, item.product.id)
                merged[item.product.id] = existing.model_copy(
                    update={"quantity": existing.quantity + item.quantity}
                )
        self.items = list(merged.values())

        computed = sum((item.subtotal for item in self.items), Decimal("0"))
        if self.total_amount is not None and self.total_amount.quantize(CENT) != computed.quantize(CENT):
            logger.warning(
                "Cart %s total %s does not match its items (%s), using the item sum",
                self.id, self.total_amount, computed,
            )
        self.total_amount = computed
        return self

    def item(self, product_id):
        for item in self.items:
            if item.product.id == product_id:
                return item
        return None

    @property
    def is_empty(self):
        return not self.items
