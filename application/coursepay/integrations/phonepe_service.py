"""
PhonePe PG service for hosted pay page checkouts.

This module builds signed payment requests, signs status checks and verifies
server-to-server webhooks for the PhonePe v1 PG API.

PhonePe Checkout Flow:
1. Backend generates a merchant transaction id and calls /pg/v1/pay
2. User completes payment on the PhonePe hosted pay page
3. PhonePe POSTs the user back to the redirect URL (unsigned)
4. PhonePe calls the webhook with a signed base64 payload
5. Backend can poll /pg/v1/status at any time; PhonePe is the source of truth

Signatures are hex(SHA256(data)) + "###" + salt_index where data is
  pay:     base64_payload + "/pg/v1/pay" + salt_key
  status:  "/pg/v1/status/{merchant_id}/{txn_id}" + salt_key
  webhook: base64_payload + salt_key
"""

import base64
import hashlib
import hmac
import json
import random
import re
import string
import time
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from coursepay.config.phonepe import PhonePeConfig
from coursepay.config.sentry import capture_message
from coursepay.core.constants import PaymentErrorKind, PhonePeAPI
from coursepay.dto.phonepe_payments import AdapterResult, PaymentRequest, SignedEnvelope, WebhookEnvelope

# Logger
from coursepay.logging.utils import get_app_logger
logger = get_app_logger("phonepe_service")
security_logger = get_app_logger("phonepe_security")

TXN_ID_PATTERN = re.compile(r"^[A-Za-z0-9._~-]+$")


def _sha256_checksum(data: str, salt_index: int) -> str:
    digest = hashlib.sha256(data.encode("utf-8")).hexdigest()
    return f"{digest}{PhonePeAPI.CHECKSUM_SEPARATOR}{salt_index}"


def _response_body(response: httpx.Response) -> Any:
    """JSON body when the gateway sent one, raw text otherwise"""
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _extract_redirect_url(body: Any) -> Optional[str]:
    """data.instrumentResponse.redirectInfo.url, tolerating any missing level"""
    node = body
    for key in ("data", "instrumentResponse", "redirectInfo", "url"):
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node if isinstance(node, str) else None


class PhonePeService:
    """Service class for PhonePe PG payment operations. Holds no per-call state."""

    def __init__(self, config: PhonePeConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.merchant_id = config.merchant_id
        self.salt_index = config.salt_index
        self.base_url = config.base_url.rstrip("/")
        self.timeout = config.timeout
        self._salt_key = config.salt_key
        self._transport = transport

        logger.info(f"phonepe_service_initialized | merchant_id={self.merchant_id} base_url={self.base_url} salt_index={self.salt_index}")

    # Checksums

    def generate_checksum(self, base64_payload: str) -> str:
        """X-VERIFY value for a /pg/v1/pay request"""
        return _sha256_checksum(base64_payload + PhonePeAPI.PAY_PATH + self._salt_key, self.salt_index)

    def status_path(self, merchant_transaction_id: str) -> str:
        return PhonePeAPI.STATUS_PATH.format(merchant_id=self.merchant_id, merchant_transaction_id=merchant_transaction_id)

    def generate_status_checksum(self, merchant_transaction_id: str) -> str:
        """X-VERIFY value for a status check; covers only the path"""
        return _sha256_checksum(self.status_path(merchant_transaction_id) + self._salt_key, self.salt_index)

    def generate_webhook_checksum(self, base64_payload: str) -> str:
        return _sha256_checksum(base64_payload + self._salt_key, self.salt_index)

    def verify_webhook_checksum(self, base64_payload: str, received_checksum: str) -> bool:
        expected = self.generate_webhook_checksum(base64_payload)
        return hmac.compare_digest(expected.encode("utf-8"), (received_checksum or "").encode("utf-8"))

    # Request building

    def build_redirect_url(self, merchant_transaction_id: str, return_path: Optional[str] = None) -> str:
        params = {"transactionId": merchant_transaction_id}
        if return_path:
            params["returnPath"] = return_path
        separator = "&" if "?" in self.config.redirect_url else "?"
        return f"{self.config.redirect_url}{separator}{urlencode(params)}"

    def build_payment_payload(self, request: PaymentRequest) -> Dict[str, Any]:
        return {
            "merchantId": self.merchant_id,
            "merchantTransactionId": request.merchant_transaction_id,
            "merchantUserId": request.user_id,
            "amount": request.amount,
            "redirectUrl": self.build_redirect_url(request.merchant_transaction_id, request.return_path),
            "redirectMode": PhonePeAPI.REDIRECT_MODE,
            "callbackUrl": self.config.webhook_url,
            "mobileNumber": request.user_phone,
            "paymentInstrument": {
                "type": PhonePeAPI.PAY_PAGE_INSTRUMENT
            }
        }

    @staticmethod
    def encode_payload(payload: Dict[str, Any]) -> str:
        """Compact JSON, base64 encoded; key order is preserved"""
        payload_json = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        return base64.b64encode(payload_json.encode("utf-8")).decode("ascii")

    def build_payment_envelope(self, request: PaymentRequest) -> SignedEnvelope:
        base64_payload = self.encode_payload(self.build_payment_payload(request))
        return SignedEnvelope(base64_payload=base64_payload, signature_header=self.generate_checksum(base64_payload))

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    # Gateway operations

    async def initiate_payment(self, request: PaymentRequest) -> AdapterResult:
        """
        Create a PhonePe pay page session.
        Calls: POST {base_url}/pg/v1/pay
        Args:
            request: Validated checkout attempt, amount in paise
        Returns:
            AdapterResult with the gateway body as data and the pay page URL as payment_url.
            payment_url is None when the gateway response does not carry one.
        """
        txn_id = request.merchant_transaction_id
        envelope = self.build_payment_envelope(request)
        headers = {
            "Content-Type": "application/json",
            PhonePeAPI.VERIFY_HEADER: envelope.signature_header,
        }

        logger.info(f"phonepe_payment_initiating | txn_id={txn_id} amount_paise={request.amount} user_id={request.user_id} course_id={request.course_id}")

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.base_url}{PhonePeAPI.PAY_PATH}",
                    json={"request": envelope.base64_payload},
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error(f"phonepe_payment_request_error | txn_id={txn_id} error_type={type(e).__name__} error={e}")
            return AdapterResult.fail(PaymentErrorKind.NETWORK_FAILURE, str(e) or type(e).__name__)

        body = _response_body(response)
        if not response.is_success:
            logger.error(f"phonepe_payment_rejected | txn_id={txn_id} status_code={response.status_code} response={body}")
            return AdapterResult.fail(PaymentErrorKind.GATEWAY_REJECTED, body if body is not None else f"HTTP {response.status_code}")

        payment_url = _extract_redirect_url(body)
        if payment_url is None:
            logger.warning(f"phonepe_payment_url_missing | txn_id={txn_id} response={body}")
        else:
            logger.info(f"phonepe_payment_initiated | txn_id={txn_id}")

        return AdapterResult.ok(body, payment_url=payment_url)

    async def check_payment_status(self, merchant_transaction_id: str) -> AdapterResult:
        """
        Fetch the gateway's view of a transaction.
        Calls: GET {base_url}/pg/v1/status/{merchant_id}/{txn_id}
        The full response body is returned; interpreting code/state is up to the caller.
        """
        if not merchant_transaction_id or not TXN_ID_PATTERN.match(merchant_transaction_id):
            logger.warning(f"phonepe_status_invalid_txn_id | txn_id={merchant_transaction_id!r}")
            return AdapterResult.fail(PaymentErrorKind.INVALID_REQUEST, "merchant transaction id must be a non-empty URL-safe string")

        headers = {
            "Content-Type": "application/json",
            PhonePeAPI.VERIFY_HEADER: self.generate_status_checksum(merchant_transaction_id),
            PhonePeAPI.MERCHANT_ID_HEADER: self.merchant_id,
        }

        logger.info(f"phonepe_status_checking | txn_id={merchant_transaction_id}")

        try:
            async with self._client() as client:
                response = await client.get(f"{self.base_url}{self.status_path(merchant_transaction_id)}", headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"phonepe_status_request_error | txn_id={merchant_transaction_id} error_type={type(e).__name__} error={e}")
            return AdapterResult.fail(PaymentErrorKind.NETWORK_FAILURE, str(e) or type(e).__name__)

        body = _response_body(response)
        if not response.is_success:
            logger.error(f"phonepe_status_rejected | txn_id={merchant_transaction_id} status_code={response.status_code} response={body}")
            return AdapterResult.fail(PaymentErrorKind.GATEWAY_REJECTED, body if body is not None else f"HTTP {response.status_code}")

        code = body.get("code") if isinstance(body, dict) else None
        logger.info(f"phonepe_status_retrieved | txn_id={merchant_transaction_id} code={code}")
        return AdapterResult.ok(body)

    def process_webhook(self, envelope: WebhookEnvelope) -> AdapterResult:
        """
        Verify and decode a PhonePe webhook.

        The signature is checked before the payload is touched; a payload whose
        signature does not match is never decoded.
        """
        if not self.verify_webhook_checksum(envelope.base64_payload, envelope.received_signature):
            security_logger.warning(f"phonepe_webhook_invalid_signature | merchant_id={self.merchant_id} payload_length={len(envelope.base64_payload)}")
            capture_message("PhonePe webhook received with invalid signature", level="warning")
            return AdapterResult.fail(PaymentErrorKind.INVALID_SIGNATURE, "Invalid checksum")

        try:
            decoded = base64.b64decode(envelope.base64_payload, validate=True).decode("utf-8")
            payload = json.loads(decoded)
        except ValueError as e:
            logger.error(f"phonepe_webhook_malformed_payload | error={e}")
            return AdapterResult.fail(PaymentErrorKind.MALFORMED_PAYLOAD, str(e))

        if not isinstance(payload, dict):
            logger.error(f"phonepe_webhook_malformed_payload | payload_type={type(payload).__name__}")
            return AdapterResult.fail(PaymentErrorKind.MALFORMED_PAYLOAD, "Webhook payload is not a JSON object")

        logger.info(f"phonepe_webhook_verified | code={payload.get('code')}")
        return AdapterResult.ok(payload)

    @staticmethod
    def generate_transaction_id(prefix: str = "TXN") -> str:
        """
        {prefix}_{epoch millis}_{6 random chars}.
        Not guaranteed unique under load; persist with a unique constraint.
        """
        timestamp = int(time.time() * 1000)
        suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
        return f"{prefix}_{timestamp}_{suffix}"
