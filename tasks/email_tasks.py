import logging

from core.celery import celery_app
from core.db import db_session
from models.order import Order
from models.order_item import OrderItem
from models.store import StoreNotificationSettings
from services import email as email_service

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def send_order_notification_task(self, order_id: str):
    """
    Email the store owner about a new order.
    Retries up to 3 times on failure.
    """
    try:
        with db_session() as db:
            order = db.query(Order).filter(Order.id == order_id).one_or_none()
            if not order:
                logger.warning("Order %s not found, notification skipped", order_id)
                return {"status": "missing", "order_id": order_id}

            notification = (
                db.query(StoreNotificationSettings)
                .filter(StoreNotificationSettings.store_id == order.store_id)
                .one_or_none()
            )
            if not notification or not notification.email_enabled or not notification.notification_email:
                logger.info("Email notifications are not enabled for store %s", order.store_id)
                return {"status": "disabled", "order_id": order_id}

            items = db.query(OrderItem).filter(OrderItem.order_id == order.id).all()
            body = email_service.render_order_text(order, items)
            to_email = notification.notification_email
            order_number = order.order_number

        email_service.send_email(to_email, f"New order {order_number}", body)
        return {"status": "sent", "to": to_email, "order_number": order_number}

    except Exception as exc:
        logger.error("Failed to send notification for order %s: %s", order_id, exc)
        # Retry with exponential backoff
        countdown = min(2 ** self.request.retries, 60)  # Max 60 seconds
        raise self.retry(exc=exc, countdown=countdown)
