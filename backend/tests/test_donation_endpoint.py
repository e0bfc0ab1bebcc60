#!/usr/bin/env python3
"""
Donation checkout tests
"""

import pytest
import stripe
from unittest.mock import MagicMock, patch

from grassroutes.config.dependency_injection import get_donation_service
from grassroutes.schemas.donation import CheckoutSessionRequest
from grassroutes.services.donation_service import DonationFailedError, DonationService, DonationUnavailableError

CHECKOUT = "grassroutes.services.donation_service.stripe.checkout.Session.create"


@pytest.fixture
def stripe_configured(client):
    from grassroutes.main import app

    service = DonationService(api_key="sk_test_123")
    app.dependency_overrides[get_donation_service] = lambda: service
    return service


class TestDonationService:
    def test_unconfigured(self):
        service = DonationService(api_key=None)
        assert service.configured is False
        with pytest.raises(DonationUnavailableError):
            service.create_checkout_session(CheckoutSessionRequest(amount=500), origin="https://example.org")

    def test_checkout_parameters(self):
        session = MagicMock(id="cs_test_1", url="https://checkout.stripe.com/c/pay/cs_test_1")
        with patch(CHECKOUT, return_value=session) as create:
            result = DonationService(api_key="sk_test_123").create_checkout_session(
                CheckoutSessionRequest(amount=2500, currency="eur"), origin="https://example.org/"
            )

        assert result.id == "cs_test_1"
        kwargs = create.call_args.kwargs
        assert kwargs["api_key"] == "sk_test_123"
        assert kwargs["mode"] == "payment"
        assert kwargs["line_items"][0]["price_data"]["unit_amount"] == 2500
        assert kwargs["line_items"][0]["price_data"]["currency"] == "eur"
        assert kwargs["success_url"] == "https://example.org/pathway?payment=success"
        assert kwargs["cancel_url"] == "https://example.org/pathway?payment=cancelled"

    def test_stripe_error(self):
        with patch(CHECKOUT, side_effect=stripe.StripeError("card declined")):
            with pytest.raises(DonationFailedError):
                DonationService(api_key="sk_test_123").create_checkout_session(
                    CheckoutSessionRequest(amount=500), origin="https://example.org"
                )


class TestCheckoutEndpoint:
    def test_unconfigured_is_unavailable(self, client):
        response = client.post("/create-checkout-session", json={"amount": 500})
        assert response.status_code == 503
        assert "STRIPE_SECRET_KEY" in response.json()["detail"]

    def test_success_uses_request_origin(self, client, stripe_configured):
        session = MagicMock(id="cs_test_2", url="https://checkout.stripe.com/c/pay/cs_test_2")
        with patch(CHECKOUT, return_value=session) as create:
            response = client.post(
                "/create-checkout-session",
                json={"amount": 1000},
                headers={"Origin": "https://www.mygrassroutes.com"},
            )

        assert response.status_code == 200
        assert response.json() == {"id": "cs_test_2", "url": "https://checkout.stripe.com/c/pay/cs_test_2"}
        assert create.call_args.kwargs["success_url"] == "https://www.mygrassroutes.com/pathway?payment=success"

    def test_stripe_failure(self, client, stripe_configured):
        with patch(CHECKOUT, side_effect=stripe.StripeError("boom")):
            response = client.post("/create-checkout-session", json={"amount": 1000})
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to create checkout session"

    @pytest.mark.parametrize("body", [{}, {"amount": 50}, {"amount": 2_000_000}, {"amount": 500, "currency": "jpy"}])
    def test_invalid_amount(self, client, stripe_configured, body):
        assert client.post("/create-checkout-session", json=body).status_code == 422


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
