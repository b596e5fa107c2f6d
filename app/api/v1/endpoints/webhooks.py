from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import logging

from app.api.v1.endpoints.waitlist import get_waitlist_service
from app.core.webhook_security import shopify_webhook
from app.schemas.webhook import ShopifyCustomer, ShopifyOrder, WebhookAck
from app.services.waitlist_service import WaitlistService
from app.services.webhook_dispatcher import (
    WebhookDispatcher,
    customer_created_event,
    get_dispatcher,
    order_created_event,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])  # /api/webhooks


@router.post("/shopify/order/created", response_model=WebhookAck, response_model_exclude_none=True)
async def shopify_order_created(
    order: ShopifyOrder = Depends(shopify_webhook(ShopifyOrder)),
    service: WaitlistService = Depends(get_waitlist_service),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
):
    """Shopify orders/create webhook (HMAC verified before this runs)."""
    logger.info("Processing Shopify order webhook: %s", order.id)
    result = dispatcher.dispatch(order_created_event(order), service)
    logger.info("Order %s: %d waitlist entries matched, %d updated", order.id, result.matched, result.updated)
    return WebhookAck(message="Webhook processed successfully")


@router.post("/shopify/customer/created", response_model=WebhookAck, response_model_exclude_none=True)
async def shopify_customer_created(
    customer: ShopifyCustomer = Depends(shopify_webhook(ShopifyCustomer)),
    service: WaitlistService = Depends(get_waitlist_service),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
):
    """Shopify customers/create webhook (HMAC verified before this runs)."""
    logger.info("Processing Shopify customer creation webhook: %s", customer.id)
    result = dispatcher.dispatch(customer_created_event(customer), service)
    logger.info("Customer %s: %d waitlist entries matched, %d linked", customer.id, result.matched, result.updated)
    return WebhookAck(message="Customer webhook processed successfully")


@router.post("/health", response_model=WebhookAck)
async def webhook_health():
    """Reachability check for webhook configuration; deliberately unsigned."""
    return WebhookAck(message="Webhook endpoint is healthy", timestamp=datetime.now(timezone.utc))
