import asyncio

import pytest

from appointly.email_templates import appointment_confirmation_template
from appointly.services.notification_service import BookingDetails, NotificationDispatcher
from appointly.shared.validators import slugify, validate_email, validate_phone


def make_details(**overrides) -> BookingDetails:
    values = dict(
        appointment_id=1,
        date_label="March 4, 2025",
        time_label="9:30 AM",
        provider_name="Demo Studio",
        provider_email="demo@example.com",
        service_name="Cut",
        duration=30,
        price="$25.00",
        customer_name="<b>Jamie</b>",
        customer_email="jamie@example.com",
        customer_phone="5551234567",
    )
    values.update(overrides)
    return BookingDetails(**values)


class RecordingSender:
    def __init__(self):
        self.calls = []

    async def __call__(self, **kwargs):
        self.calls.append(kwargs)
        return {"id": "email-1"}


def test_dispatch_sends_both_emails_with_escaped_names():
    customer, provider = RecordingSender(), RecordingSender()
    dispatcher = NotificationDispatcher(customer, provider, enabled=True)

    outcome = asyncio.run(dispatcher.dispatch_booking(make_details()))

    assert outcome == {"customer_sent": True, "provider_sent": True}
    assert customer.calls[0]["to"] == "jamie@example.com"
    assert customer.calls[0]["customer_name"] == "&lt;b&gt;Jamie&lt;/b&gt;"
    assert provider.calls[0]["to"] == "demo@example.com"


def test_provider_without_email_is_skipped():
    customer, provider = RecordingSender(), RecordingSender()
    dispatcher = NotificationDispatcher(customer, provider, enabled=True)

    outcome = asyncio.run(dispatcher.dispatch_booking(make_details(provider_email=None)))

    assert outcome == {"customer_sent": True, "provider_sent": False}
    assert provider.calls == []


def test_disabled_dispatcher_sends_nothing():
    customer = RecordingSender()
    dispatcher = NotificationDispatcher(customer, customer, enabled=False)

    outcome = asyncio.run(dispatcher.dispatch_booking(make_details()))

    assert outcome == {"customer_sent": False, "provider_sent": False}
    assert customer.calls == []


def test_confirmation_template_mentions_the_booking():
    mjml = appointment_confirmation_template(
        customer_name="Jamie",
        provider_name="Demo Studio",
        service_name="Cut",
        date_label="March 4, 2025",
        time_label="9:30 AM",
        duration=30,
        price="$25.00",
    )
    assert "<mjml>" in mjml
    assert "Demo Studio" in mjml
    assert "30 minutes" in mjml


def test_validators():
    assert validate_phone("+1 (555) 123-4567") == "+15551234567"
    assert validate_email(" Jamie@Example.COM ") == "jamie@example.com"
    assert slugify("Fade & Co. Barbers") == "fade-co-barbers"
    assert slugify("!!!") == "provider"
    with pytest.raises(ValueError):
        validate_phone("12345")
    with pytest.raises(ValueError):
        validate_email("jamie@")
