import enum
import uuid

from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Index, UniqueConstraint

from app.core.database import Base
from app.core.types import GUID


class WaitlistStatus(enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class WaitlistEntry(Base):
    __tablename__ = "waitlist_entries"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    email = Column(String(254), nullable=False, index=True)  # lowercased + trimmed
    product_id = Column(String(50), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    status = Column(
        SQLEnum(
            WaitlistStatus,
            name="waitliststatus",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=WaitlistStatus.PENDING,
        index=True,
    )
    # Back-reference only, the Shopify customer is not owned here
    shopify_customer_id = Column(String, nullable=True)

    # Stamped by app.services.waitlist_state, never by the database
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('email', 'product_id', name='uq_waitlist_email_product'),
        Index('ix_waitlist_status_created', 'status', 'created_at'),
    )

    def __repr__(self):
        return f"<WaitlistEntry {self.email} {self.product_id} {self.status.value if self.status else None}>"
