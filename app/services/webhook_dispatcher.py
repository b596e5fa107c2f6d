"""Webhook event dispatcher: correlates verified Shopify events to waitlist entries.

Each event kind carries an email. The dispatcher looks up every waitlist entry
with that email (zero is a normal outcome, not an error) and hands the event
and entries to the handler registered for the kind. Handlers hold the
business logic and must change entry status only through WaitlistService,
which goes through the state machine.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel

from app.core.config import settings
from app.core.exceptions import BaseAppException, StoreError
from app.models.waitlist_entry import WaitlistEntry, WaitlistStatus
from app.schemas.webhook import ShopifyCustomer, ShopifyOrder
from app.services.waitlist_service import WaitlistService
from app.utils.audit import email_hash

logger = logging.getLogger(__name__)


class WebhookKind(str, enum.Enum):
    ORDER_CREATED = "order-created"
    CUSTOMER_CREATED = "customer-created"


@dataclass
class WebhookEvent:
    """Verified, parsed webhook; lives for one request only."""

    kind: WebhookKind
    payload: BaseModel
    email: Optional[str]
    shopify_customer_id: Optional[str] = None
    resource_id: Optional[str] = None


@dataclass
class DispatchResult:
    kind: WebhookKind
    matched: int
    updated: int = 0


# (event, correlated entries, service) -> number of entries changed
WebhookHandler = Callable[[WebhookEvent, List[WaitlistEntry], WaitlistService], int]


def _id_or_none(value) -> Optional[str]:
    return str(value) if value is not None else None


def order_created_event(order: ShopifyOrder) -> WebhookEvent:
    customer_id = order.customer.id if order.customer else None
    return WebhookEvent(
        kind=WebhookKind.ORDER_CREATED,
        payload=order,
        email=order.customer_email,
        shopify_customer_id=_id_or_none(customer_id),
        resource_id=_id_or_none(order.id),
    )


def customer_created_event(customer: ShopifyCustomer) -> WebhookEvent:
    return WebhookEvent(
        kind=WebhookKind.CUSTOMER_CREATED,
        payload=customer,
        email=customer.email,
        shopify_customer_id=_id_or_none(customer.id),
        resource_id=_id_or_none(customer.id),
    )


def link_shopify_customer(event: WebhookEvent, entries: List[WaitlistEntry], service: WaitlistService) -> int:
    """Back-fill the Shopify customer id on entries that do not have one yet."""
    if not event.shopify_customer_id:
        return 0
    linked = 0
    for entry in entries:
        if not entry.shopify_customer_id:
            service.set_shopify_customer_id(entry, event.shopify_customer_id)
            linked += 1
    return linked


def approve_on_purchase(event: WebhookEvent, entries: List[WaitlistEntry], service: WaitlistService) -> int:
    """Approve Pending entries for products that appear in the order's line items."""
    changed = link_shopify_customer(event, entries, service)
    if not settings.WEBHOOK_AUTO_APPROVE_ON_ORDER:
        return changed

    purchased = event.payload.purchased_product_ids()
    for entry in entries:
        if entry.status is WaitlistStatus.PENDING and entry.product_id in purchased:
            service.update_status(entry.id, WaitlistStatus.APPROVED)
            changed += 1
    return changed


class WebhookDispatcher:
    def __init__(self, handlers: Optional[Dict[WebhookKind, WebhookHandler]] = None):
        self.handlers: Dict[WebhookKind, WebhookHandler] = dict(handlers or {})

    def register(self, kind: WebhookKind, handler: WebhookHandler) -> None:
        self.handlers[kind] = handler

    def dispatch(self, event: WebhookEvent, service: WaitlistService) -> DispatchResult:
        entries = service.find_by_email(event.email) if event.email else []
        logger.info(
            "Found %d waitlist entries for %s event (email_hash=%s, id=%s)",
            len(entries),
            event.kind.value,
            email_hash(event.email),
            event.resource_id,
        )

        handler = self.handlers.get(event.kind)
        if handler is None or not entries:
            return DispatchResult(kind=event.kind, matched=len(entries))

        try:
            updated = handler(event, entries, service)
        except BaseAppException:
            raise
        except Exception as e:
            logger.exception("Webhook handler failed for %s", event.kind.value)
            raise StoreError("Failed to process webhook", details=str(e))

        if updated:
            logger.info("%s webhook updated %d waitlist entries", event.kind.value, updated)
        return DispatchResult(kind=event.kind, matched=len(entries), updated=updated)


def build_default_dispatcher() -> WebhookDispatcher:
    return WebhookDispatcher({
        WebhookKind.ORDER_CREATED: approve_on_purchase,
        WebhookKind.CUSTOMER_CREATED: link_shopify_customer,
    })


default_dispatcher = build_default_dispatcher()


def get_dispatcher() -> WebhookDispatcher:
    return default_dispatcher
