"""
PhonePe payment DTOs.

Gateway-facing models (PaymentRequest, SignedEnvelope, WebhookEnvelope,
AdapterResult) and the request bodies accepted by the payment routes.
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from coursepay.core.constants import PaymentErrorKind

# RFC 3986 unreserved characters
URL_SAFE_PATTERN = r"^[A-Za-z0-9._~-]+$"


class PaymentRequest(BaseModel):
    """A single checkout attempt. amount is in paise."""
    model_config = ConfigDict(frozen=True)

    merchant_transaction_id: str = Field(..., min_length=1, pattern=URL_SAFE_PATTERN, description="Caller-unique transaction id, sent as the gateway idempotency key")
    amount: int = Field(..., ge=1, description="Amount in the smallest currency unit")
    user_id: str = Field(..., min_length=1, description="Payer id sent as merchantUserId")
    user_phone: str = Field(..., description="Payer phone; validated by the gateway")
    return_path: Optional[str] = Field(None, description="Frontend path the user lands on after payment")
    course_id: Optional[str] = None


class SignedEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    base64_payload: str
    signature_header: str


class WebhookEnvelope(BaseModel):
    """Webhook body and X-VERIFY header exactly as received"""
    model_config = ConfigDict(frozen=True)

    base64_payload: str
    received_signature: str


class AdapterResult(BaseModel):
    """Outcome of a gateway operation: success with data, or failure with an error kind"""
    model_config = ConfigDict(frozen=True)

    success: bool
    data: Optional[Any] = None
    payment_url: Optional[str] = None
    error_kind: Optional[PaymentErrorKind] = None
    error: Optional[Any] = None

    @model_validator(mode="after")
    def check_tag(self):
        if self.success and self.error_kind is not None:
            raise ValueError("successful result cannot carry an error kind")
        if not self.success and self.error_kind is None:
            raise ValueError("failed result requires an error kind")
        return self

    @classmethod
    def ok(cls, data: Any, payment_url: Optional[str] = None) -> "AdapterResult":
        return cls(success=True, data=data, payment_url=payment_url)

    @classmethod
    def fail(cls, error_kind: PaymentErrorKind, error: Any) -> "AdapterResult":
        return cls(success=False, error_kind=error_kind, error=error)


class PhonePeInitiateRequest(BaseModel):
    """Request body for starting a PhonePe checkout"""
    course_id: str = Field(..., min_length=1, description="Course being purchased")
    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Amount in rupees")
    user_id: str = Field(..., min_length=1, max_length=64)
    user_phone: str = Field(..., min_length=1, description="Payer mobile number")
    return_path: Optional[str] = Field(None, description="Frontend path to return to after payment")
    transaction_prefix: str = Field("TXN", min_length=1, max_length=10, pattern=r"^[A-Za-z0-9]+$")


class PhonePeWebhookBody(BaseModel):
    """PhonePe server-to-server callback body"""
    response: str = Field(..., min_length=1, description="Base64 encoded payload")
