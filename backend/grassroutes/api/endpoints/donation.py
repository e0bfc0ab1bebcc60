# backend/grassroutes/api/endpoints/donation.py
from fastapi import APIRouter, Depends, HTTPException, Request

from grassroutes.config.dependency_injection import get_donation_service
from grassroutes.schemas.donation import CheckoutSessionRequest, CheckoutSessionResponse
from grassroutes.services.donation_service import (
    DonationFailedError,
    DonationService,
    DonationUnavailableError,
)

router = APIRouter()


@router.post("/create-checkout-session", response_model=CheckoutSessionResponse)
def create_checkout_session(
    body: CheckoutSessionRequest,
    request: Request,
    service: DonationService = Depends(get_donation_service),
):
    """
    Start a Stripe Checkout session for a donation.

    The learner is sent back to ``<origin>/pathway`` with ``payment=success``
    or ``payment=cancelled``.
    """
    origin = request.headers.get("origin") or str(request.base_url)
    try:
        return service.create_checkout_session(body, origin=origin)
    except DonationUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except DonationFailedError as e:
        raise HTTPException(status_code=500, detail=str(e))
