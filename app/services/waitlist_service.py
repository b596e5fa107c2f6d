from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Dict, List, Optional, Tuple
import logging

from app.core.exceptions import ConflictError, NotFoundError, StoreError
from app.core.types import parse_uuid
from app.models.waitlist_entry import WaitlistEntry, WaitlistStatus
from app.schemas.waitlist import WaitlistEntryCreate, normalize_email
from app.services import waitlist_state

logger = logging.getLogger(__name__)

DUPLICATE_ENTRY_MESSAGE = "This customer is already on the waitlist for this product"


class WaitlistService:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to %s: %s", action, str(e))
            raise StoreError(f"Failed to {action}", details=str(e))

    def _filtered(self, status: Optional[str] = None, product_id: Optional[str] = None):
        query = self.db.query(WaitlistEntry)
        if status:
            query = query.filter(WaitlistEntry.status == waitlist_state.parse_status(status))
        if product_id:
            query = query.filter(WaitlistEntry.product_id == product_id.strip())
        return query

    def list_entries(
        self,
        status: Optional[str] = None,
        product_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[WaitlistEntry], int]:
        """Newest first; returns (page of entries, total matching)"""
        total = self.count(status, product_id)
        query = self._filtered(status, product_id)
        try:
            entries = (
                query.order_by(WaitlistEntry.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreError("Failed to fetch waitlist", details=str(e))
        return entries, total

    def count(self, status: Optional[str] = None, product_id: Optional[str] = None) -> int:
        try:
            return self._filtered(status, product_id).count()
        except SQLAlchemyError as e:
            raise StoreError("Failed to count waitlist entries", details=str(e))

    def get_entry(self, entry_id) -> WaitlistEntry:
        entry_uuid = parse_uuid(entry_id)
        entry = None
        if entry_uuid is not None:
            try:
                entry = self.db.get(WaitlistEntry, entry_uuid)
            except SQLAlchemyError as e:
                raise StoreError("Failed to fetch entry", details=str(e))
        if entry is None:
            raise NotFoundError("Waitlist entry not found")
        return entry

    def find_by_email(self, email: str) -> List[WaitlistEntry]:
        """All entries for an email (any product), normalized like stored emails."""
        normalized = normalize_email(email)
        if not normalized:
            return []
        try:
            return (
                self.db.query(WaitlistEntry)
                .filter(WaitlistEntry.email == normalized)
                .order_by(WaitlistEntry.created_at.asc())
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreError("Failed to look up waitlist entries", details=str(e))

    def create_entry(self, data: WaitlistEntryCreate) -> WaitlistEntry:
        """Add a customer to the waitlist; always starts Pending.

        Only (email, product_id) is unique. The pre-check gives a clean error
        for the common case; the unique constraint settles concurrent creates.
        """
        existing = self.db.query(WaitlistEntry).filter(
            WaitlistEntry.email == data.email,
            WaitlistEntry.product_id == data.product_id,
        ).first()
        if existing:
            raise ConflictError(DUPLICATE_ENTRY_MESSAGE)

        entry = WaitlistEntry(
            email=data.email,
            name=data.name,
            product_id=data.product_id,
            shopify_customer_id=data.shopify_customer_id,
        )
        waitlist_state.stamp_new(entry)
        self.db.add(entry)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(DUPLICATE_ENTRY_MESSAGE)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to create waitlist entry: %s", str(e))
            raise StoreError("Failed to create waitlist entry", details=str(e))
        self.db.refresh(entry)

        logger.info("New waitlist entry created for product %s", entry.product_id)
        return entry

    def update_status(self, entry_id, status) -> WaitlistEntry:
        entry = self.get_entry(entry_id)
        previous = entry.status
        waitlist_state.transition(entry, status)
        self._commit("update waitlist entry")
        self.db.refresh(entry)

        logger.info("Waitlist entry %s status changed %s -> %s", entry.id, previous.value, entry.status.value)
        return entry

    def set_shopify_customer_id(self, entry: WaitlistEntry, shopify_customer_id: str) -> WaitlistEntry:
        entry.shopify_customer_id = shopify_customer_id
        waitlist_state.touch(entry)
        self._commit("link Shopify customer")
        self.db.refresh(entry)
        return entry

    def delete_entry(self, entry_id) -> WaitlistEntry:
        entry = self.get_entry(entry_id)
        self.db.delete(entry)
        self._commit("delete waitlist entry")

        logger.info("Waitlist entry deleted: %s", entry.id)
        return entry

    def stats_summary(self) -> Dict:
        try:
            rows = (
                self.db.query(WaitlistEntry.status, func.count(WaitlistEntry.id))
                .group_by(WaitlistEntry.status)
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreError("Failed to fetch statistics", details=str(e))

        by_status = {s.value: 0 for s in WaitlistStatus}
        for status, count in rows:
            by_status[status.value] = count
        return {"total": sum(by_status.values()), "by_status": by_status}
