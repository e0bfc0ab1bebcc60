from pydantic import BaseModel, Field
from typing import Literal, Optional


class CheckoutSessionRequest(BaseModel):
    """Donation checkout request.

    Attributes:
        amount: amount in cents, $1.00 to $10,000.00
        currency: ISO currency code
    """
    amount: int = Field(..., ge=100, le=1_000_000, description="Amount in cents")
    currency: Literal["usd", "eur", "gbp"] = "usd"


class CheckoutSessionResponse(BaseModel):
    id: str
    url: Optional[str] = None
