"""
Tests for order notification emails.
"""
import smtplib
from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest

from core.config import settings
from models.store import StoreNotificationSettings
from schemas.order import OrderLineIn, StoreOrderCreate
from services import email as email_service
from services.email import send_email as smtp_send_email
from services import orders as order_service
from tasks import email_tasks
from tasks.email_tasks import send_order_notification_task


@pytest.fixture(autouse=True)
def task_session(db, monkeypatch):
    @contextmanager
    def _session():
        yield db

    monkeypatch.setattr(email_tasks, "db_session", _session)


@pytest.fixture()
def order(db, store):
    data = StoreOrderCreate(
        store_id=store.id,
        customer_name="Ivan",
        customer_phone="+100200300",
        customer_address="1 Main St",
        customer_comment="Call first",
        items=[
            OrderLineIn(product_name="Saw", price=12.5, quantity=2),
            OrderLineIn(product_name="Nails", price=0.5, quantity=10),
        ],
    )
    return order_service.create_retail_order(db, data)


def enable_notifications(db, store, email="owner@example.com"):
    db.add(StoreNotificationSettings(store_id=store.id, email_enabled=True, notification_email=email))
    db.commit()


class TestOrderNotification:
    """Notification task behaviour."""

    def test_sends_when_enabled(self, db, store, order, mock_email_send):
        enable_notifications(db, store)
        result = send_order_notification_task(order.id)
        assert result["status"] == "sent"
        assert mock_email_send[0]["to"] == "owner@example.com"
        assert mock_email_send[0]["subject"] == f"New order {order.order_number}"
        body = mock_email_send[0]["body"]
        assert order.order_number in body
        assert "Saw" in body
        assert "TOTAL: 30.00" in body
        assert "Call first" in body

    def test_skips_when_disabled(self, order, mock_email_send):
        result = send_order_notification_task(order.id)
        assert result["status"] == "disabled"
        assert mock_email_send == []

    def test_missing_order(self, mock_email_send):
        assert send_order_notification_task("missing")["status"] == "missing"
        assert mock_email_send == []

    def test_send_failure_is_retried(self, db, store, order, monkeypatch):
        enable_notifications(db, store)

        def _fail(to_email, subject, body):
            raise smtplib.SMTPException("relay refused")

        monkeypatch.setattr(email_service, "send_email", _fail)
        # Called directly, retry re-raises the original error
        with pytest.raises(smtplib.SMTPException):
            send_order_notification_task(order.id)


class TestRenderOrderText:
    """Plain-text order summary."""

    def test_lists_items_and_delivery(self, db, order):
        text = email_service.render_order_text(order, order.items)
        assert f"ORDER {order.order_number}" in text
        assert "2 x 12.50 = 25.00" in text
        assert "POSITIONS: 2" in text
        assert "Address: 1 Main St" in text
        assert "Status: New" in text

    def test_guest_name_used_as_customer(self, order):
        assert "Customer: Ivan" in email_service.render_order_text(order, order.items)


class TestSendEmail:
    """SMTP delivery."""

    def test_skipped_while_testing(self, monkeypatch):
        smtp = MagicMock()
        monkeypatch.setattr(smtplib, "SMTP", smtp)
        smtp_send_email("owner@example.com", "Subject", "Body")
        smtp.assert_not_called()

    def test_sends_over_smtp(self, monkeypatch):
        smtp = MagicMock()
        monkeypatch.setattr(smtplib, "SMTP", smtp)
        monkeypatch.setattr(settings, "TESTING", False)
        monkeypatch.setattr(settings, "SMTP_USERNAME", "mailer")
        monkeypatch.setattr(settings, "SMTP_PASSWORD", "secret")
        smtp_send_email("owner@example.com", "New order R1", "Body")

        server = smtp.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        message = server.send_message.call_args[0][0]
        assert message["To"] == "owner@example.com"
        assert message["Subject"] == "New order R1"
