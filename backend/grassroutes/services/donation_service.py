# backend/grassroutes/services/donation_service.py
import logging
from typing import Optional

import stripe

from grassroutes.core.config import settings
from grassroutes.schemas.donation import CheckoutSessionRequest, CheckoutSessionResponse

logger = logging.getLogger(__name__)

DONATION_PRODUCT = {
    "name": "Donation to mygrassroutes",
    "description": "Support civic education and engagement",
}


class DonationUnavailableError(Exception):
    """Stripe is not configured."""


class DonationFailedError(Exception):
    """Stripe rejected or could not process the checkout request."""


class DonationService:
    """
    Creates Stripe Checkout sessions for one-off donations.

    Attributes:
        api_key: Stripe secret key, None when donations are disabled
    """

    def __init__(self, api_key: Optional[str] = settings.STRIPE_SECRET_KEY):
        self.api_key = api_key

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def create_checkout_session(self, request: CheckoutSessionRequest, origin: str) -> CheckoutSessionResponse:
        """
        Start a Checkout session that returns to the pathway page.

        Raises:
            DonationUnavailableError: no Stripe key configured
            DonationFailedError: Stripe returned an error
        """
        if not self.configured:
            raise DonationUnavailableError("Stripe is not configured. Please set STRIPE_SECRET_KEY environment variable.")

        origin = origin.rstrip("/")
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                payment_method_types=["card"],
                line_items=[{
                    "price_data": {
                        "currency": request.currency,
                        "product_data": DONATION_PRODUCT,
                        "unit_amount": request.amount,
                    },
                    "quantity": 1,
                }],
                mode="payment",
                success_url=f"{origin}/pathway?payment=success",
                cancel_url=f"{origin}/pathway?payment=cancelled",
            )
        except stripe.StripeError as e:
            logger.error(f"Error creating checkout session: {e}")
            raise DonationFailedError("Failed to create checkout session") from e

        logger.info(f"Checkout session {session.id} created for {request.amount} {request.currency}")
        return CheckoutSessionResponse(id=session.id, url=session.url)


donation_service = DonationService()
