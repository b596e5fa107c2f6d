from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel
from typing import Annotated, Any, Dict, List, Optional
from datetime import datetime, timezone
import uuid

PRODUCT_ID_PATTERN = r"^[A-Za-z0-9_-]{1,50}$"

ProductId = Annotated[str, StringConstraints(strip_whitespace=True, pattern=PRODUCT_ID_PATTERN)]
CustomerName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]


def normalize_email(value):
    """Lowercase and trim; the same normalization is used for storage and lookups."""
    if isinstance(value, str):
        return value.strip().lower()
    return value


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class WaitlistEntryCreate(CamelModel):
    email: EmailStr
    name: CustomerName
    product_id: ProductId
    shopify_customer_id: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, value):
        return normalize_email(value)

    @field_validator("shopify_customer_id", mode="before")
    @classmethod
    def blank_customer_id(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None


class WaitlistStatusUpdate(CamelModel):
    # Checked against WaitlistStatus by the state machine, after the entry lookup
    status: Any = None


class WaitlistEntry(CamelModel):
    id: uuid.UUID
    email: str
    name: str
    product_id: str
    status: str
    shopify_customer_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    approved_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def status_value(cls, value):
        return getattr(value, "value", value)

    @field_validator("created_at", "updated_at", "approved_at")
    @classmethod
    def as_utc(cls, value):
        # SQLite returns naive datetimes; everything stored is UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class WaitlistEntryResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: WaitlistEntry


class WaitlistListResponse(BaseModel):
    success: bool = True
    data: List[WaitlistEntry]
    pagination: Pagination


class WaitlistStats(CamelModel):
    total: int
    by_status: Dict[str, int] = Field(default_factory=dict)


class WaitlistStatsResponse(BaseModel):
    success: bool = True
    data: WaitlistStats
