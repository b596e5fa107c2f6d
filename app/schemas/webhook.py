from pydantic import BaseModel, ConfigDict, field_validator
from typing import List, Optional, Union
from datetime import datetime

from app.schemas.waitlist import normalize_email

ShopifyId = Union[int, str]


class ShopifyCustomer(BaseModel):
    """Subset of the Shopify customer resource that we read; the rest is kept as extra."""
    model_config = ConfigDict(extra="allow")

    id: Optional[ShopifyId] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, value):
        return normalize_email(value) or None


class ShopifyLineItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    product_id: Optional[ShopifyId] = None
    variant_id: Optional[ShopifyId] = None
    sku: Optional[str] = None
    title: Optional[str] = None
    quantity: Optional[int] = None


class ShopifyOrder(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[ShopifyId] = None
    email: Optional[str] = None
    customer: Optional[ShopifyCustomer] = None
    line_items: List[ShopifyLineItem] = []

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, value):
        return normalize_email(value) or None

    @property
    def customer_email(self) -> Optional[str]:
        if self.customer and self.customer.email:
            return self.customer.email
        return self.email

    def purchased_product_ids(self) -> set:
        ids = set()
        for item in self.line_items:
            if item.product_id is not None:
                ids.add(str(item.product_id))
            if item.sku:
                ids.add(item.sku.strip())
        return ids


class WebhookAck(BaseModel):
    success: bool = True
    message: str
    timestamp: Optional[datetime] = None
