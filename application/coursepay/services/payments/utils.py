from typing import Any, Dict, Optional

from coursepay.core.constants import PaymentStatus, PhonePeAPI


def map_phonepe_status(body: Any) -> int:
    """Map a PhonePe status or webhook body to an internal PaymentStatus.

    The response code wins over data.state. Anything unrecognised stays PENDING.
    """
    if not isinstance(body, dict):
        return PaymentStatus.PENDING

    code = body.get("code")
    if code in PhonePeAPI.SUCCESS_CODES:
        return PaymentStatus.COMPLETED
    if code in PhonePeAPI.FAILURE_CODES:
        return PaymentStatus.FAILED
    if code in PhonePeAPI.PENDING_CODES:
        return PaymentStatus.PENDING

    data = body.get("data")
    state = data.get("state") if isinstance(data, dict) else None
    if state == PhonePeAPI.STATE_COMPLETED:
        return PaymentStatus.COMPLETED
    if state == PhonePeAPI.STATE_FAILED:
        return PaymentStatus.FAILED
    return PaymentStatus.PENDING


def extract_payment_details(body: Any) -> Dict[str, Optional[Any]]:
    """Pull the fields the order side cares about out of a status or webhook body"""
    data = body.get("data") if isinstance(body, dict) else None
    if not isinstance(data, dict):
        data = {}
    return {
        "merchant_transaction_id": data.get("merchantTransactionId"),
        "gateway_transaction_id": data.get("transactionId"),
        "amount_paise": data.get("amount"),
        "state": data.get("state"),
        "response_code": data.get("responseCode"),
    }


def rupees_to_paise(amount) -> int:
    return int((amount * 100).to_integral_value())
