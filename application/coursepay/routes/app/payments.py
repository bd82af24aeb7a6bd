"""
PhonePe payment endpoints for the course marketplace.

Initiation returns the hosted pay page URL; the callback and status endpoints
re-check the transaction with PhonePe; the webhook endpoint only trusts
payloads whose X-VERIFY signature matches.
Order and enrollment updates belong to the caller; these routes report the
mapped payment status and never persist anything.
"""

from typing import Optional
from urllib.parse import parse_qs, urlencode

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from coursepay.core.constants import PaymentErrorKind, PaymentStatus
from coursepay.dto.phonepe_payments import PaymentRequest, PhonePeInitiateRequest, PhonePeWebhookBody, WebhookEnvelope
from coursepay.integrations.phonepe_service import PhonePeService
from coursepay.middlewares.request_context import request_context
from coursepay.routes.deps import get_phonepe_service
from coursepay.services.payments.utils import extract_payment_details, map_phonepe_status, rupees_to_paise

from coursepay.logging.utils import get_app_logger
logger = get_app_logger('coursepay.phonepe_payments')

# Settings
from coursepay.config.settings import PaymentConfigs
configs = PaymentConfigs()

payment_router = APIRouter(prefix="/phonepe", tags=["phonepe"])

ERROR_STATUS_CODES = {
    PaymentErrorKind.CONFIGURATION_ERROR: 503,
    PaymentErrorKind.NETWORK_FAILURE: 502,
    PaymentErrorKind.GATEWAY_REJECTED: 400,
    PaymentErrorKind.INVALID_REQUEST: 400,
    PaymentErrorKind.INVALID_SIGNATURE: 400,
    PaymentErrorKind.MALFORMED_PAYLOAD: 400,
}


def _gateway_error_message(error) -> str:
    if isinstance(error, dict):
        return error.get("message") or error.get("code") or "Payment gateway rejected the request"
    return str(error) if error else "Payment gateway request failed"


def _status_data(transaction_id: str, body) -> dict:
    payment_status = map_phonepe_status(body)
    return {
        "transaction_id": transaction_id,
        "payment_status": PaymentStatus.to_name(payment_status),
        "payment_status_code": payment_status,
        "details": extract_payment_details(body),
    }


def _safe_return_path(return_path: Optional[str]) -> Optional[str]:
    """Only same-site absolute paths are allowed as redirect targets"""
    if not return_path or not return_path.startswith("/") or return_path.startswith("//"):
        return None
    return return_path


@payment_router.post("/initiate")
async def initiate_phonepe_payment(request_data: PhonePeInitiateRequest, phonepe: PhonePeService = Depends(get_phonepe_service)):
    """
    Start a PhonePe checkout for a course.

    Response:
    - transaction_id: merchant transaction id to poll status with
    - payment_url: PhonePe pay page (may be null if the gateway omitted it)
    - amount_paise: amount sent to the gateway
    """
    request_context.user_id = request_data.user_id
    request_context.course_id = request_data.course_id

    transaction_id = phonepe.generate_transaction_id(request_data.transaction_prefix)
    request_context.transaction_id = transaction_id
    amount_paise = rupees_to_paise(request_data.amount)

    try:
        payment_request = PaymentRequest(
            merchant_transaction_id=transaction_id,
            amount=amount_paise,
            user_id=request_data.user_id,
            user_phone=request_data.user_phone,
            return_path=request_data.return_path,
            course_id=request_data.course_id,
        )
    except ValidationError as e:
        logger.warning(f"phonepe_initiate_invalid | txn_id={transaction_id} errors={e.errors()}")
        raise HTTPException(status_code=400, detail="Invalid payment request")

    result = await phonepe.initiate_payment(payment_request)
    if not result.success:
        logger.error(f"phonepe_initiate_failed | txn_id={transaction_id} error_kind={result.error_kind.value} error={result.error}")
        raise HTTPException(status_code=ERROR_STATUS_CODES[result.error_kind], detail=_gateway_error_message(result.error))

    if not result.payment_url:
        logger.warning(f"phonepe_initiate_without_url | txn_id={transaction_id}")

    return {
        "success": True,
        "message": "Payment initiated" if result.payment_url else "Payment initiated without a redirect URL",
        "data": {
            "transaction_id": transaction_id,
            "payment_url": result.payment_url,
            "amount_paise": amount_paise,
        }
    }


@payment_router.get("/status/{transaction_id}")
async def check_phonepe_payment_status(transaction_id: str, phonepe: PhonePeService = Depends(get_phonepe_service)):
    """Poll PhonePe for the current state of a transaction"""
    request_context.transaction_id = transaction_id

    result = await phonepe.check_payment_status(transaction_id)
    if not result.success:
        logger.warning(f"phonepe_status_failed | txn_id={transaction_id} error_kind={result.error_kind.value}")
        raise HTTPException(status_code=ERROR_STATUS_CODES[result.error_kind], detail=_gateway_error_message(result.error))

    data = _status_data(transaction_id, result.data)
    logger.info(f"phonepe_status_checked | txn_id={transaction_id} payment_status={data['payment_status']}")
    return {
        "success": True,
        "message": "Payment status retrieved successfully",
        "data": {**data, "gateway_response": result.data},
    }


@payment_router.post("/callback")
async def phonepe_callback(request: Request, phonepe: PhonePeService = Depends(get_phonepe_service)):
    """
    User-facing POST redirect from the PhonePe pay page.

    The redirect is not signed, so the status is always re-checked with PhonePe.
    Redirects to FRONTEND_URL + returnPath when both are available.
    """
    raw_body = await request.body()
    form = parse_qs(raw_body.decode("utf-8", errors="replace")) if raw_body else {}
    transaction_id = request.query_params.get("transactionId") or (form.get("transactionId") or [None])[0]
    if not transaction_id:
        logger.warning("phonepe_callback_missing_transaction_id")
        raise HTTPException(status_code=400, detail="Missing transactionId")

    request_context.transaction_id = transaction_id
    logger.info(f"phonepe_callback_received | txn_id={transaction_id} code={(form.get('code') or [None])[0]}")

    result = await phonepe.check_payment_status(transaction_id)
    if result.success:
        data = _status_data(transaction_id, result.data)
    else:
        logger.warning(f"phonepe_callback_status_failed | txn_id={transaction_id} error_kind={result.error_kind.value}")
        data = {
            "transaction_id": transaction_id,
            "payment_status": PaymentStatus.to_name(PaymentStatus.PENDING),
            "payment_status_code": PaymentStatus.PENDING,
            "details": extract_payment_details(None),
        }

    return_path = _safe_return_path(request.query_params.get("returnPath"))
    if configs.FRONTEND_URL and return_path:
        query = urlencode({"transactionId": transaction_id, "status": data["payment_status"]})
        return RedirectResponse(url=f"{configs.FRONTEND_URL.rstrip('/')}{return_path}?{query}", status_code=303)

    return {"success": result.success, "message": "Payment status after redirect", "data": data}


@payment_router.post("/webhook")
async def phonepe_webhook(
    body: PhonePeWebhookBody,
    x_verify: Optional[str] = Header(None, alias="X-VERIFY"),
    phonepe: PhonePeService = Depends(get_phonepe_service),
):
    """
    Server-to-server PhonePe notification.
    Body: {"response": "<base64 payload>"}, signature in the X-VERIFY header.
    """
    if not x_verify:
        logger.warning("phonepe_webhook_missing_signature")
        raise HTTPException(status_code=400, detail="Missing X-VERIFY header")

    result = phonepe.process_webhook(WebhookEnvelope(base64_payload=body.response, received_signature=x_verify))
    if not result.success:
        detail = "Invalid signature" if result.error_kind == PaymentErrorKind.INVALID_SIGNATURE else "Invalid payload"
        raise HTTPException(status_code=ERROR_STATUS_CODES[result.error_kind], detail=detail)

    details = extract_payment_details(result.data)
    transaction_id = details["merchant_transaction_id"]
    request_context.transaction_id = transaction_id
    payment_status = map_phonepe_status(result.data)

    logger.info(f"phonepe_webhook_processed | txn_id={transaction_id} code={result.data.get('code')} payment_status={PaymentStatus.to_name(payment_status)}")
    return {
        "status": "ok",
        "transaction_id": transaction_id,
        "payment_status": PaymentStatus.to_name(payment_status),
        "payment_status_code": payment_status,
    }
