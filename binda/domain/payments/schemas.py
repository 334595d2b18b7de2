"""Payment domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel


class PaymentInitializeRequest(BaseModel):
    """Fields are checked by the payment service so missing ones yield a single 400"""

    appointmentId: Optional[str] = None
    email: Optional[str] = None
    amount: Optional[float] = None
    callbackUrl: Optional[str] = None


class PaymentInitializeResponse(BaseModel):
    authorization_url: str
    access_code: Optional[str] = None
    reference: str


class PaymentVerifyRequest(BaseModel):
    reference: Optional[str] = None


class PaymentVerifyResponse(BaseModel):
    status: str
    reference: str
    amount: float
