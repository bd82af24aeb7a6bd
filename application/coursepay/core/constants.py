"""
Core constants for the coursepay service

Payment status codes, adapter error kinds and the PhonePe API contract
(paths, header names, response codes).
"""
from enum import Enum


class PaymentStatus:
    """Internal payment status codes"""

    PENDING = 50
    COMPLETED = 51
    FAILED = 52

    STATUS_TO_DB_MAP = {
        50: "pending",
        51: "completed",
        52: "failed",
    }

    @classmethod
    def to_name(cls, status_code: int) -> str:
        return cls.STATUS_TO_DB_MAP.get(status_code, "unknown")


class PaymentErrorKind(str, Enum):
    """Failure categories carried by AdapterResult"""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    NETWORK_FAILURE = "NETWORK_FAILURE"
    GATEWAY_REJECTED = "GATEWAY_REJECTED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    MALFORMED_PAYLOAD = "MALFORMED_PAYLOAD"
    INVALID_REQUEST = "INVALID_REQUEST"


class PhonePeAPI:
    """PhonePe PG v1 contract"""

    PAY_PATH = "/pg/v1/pay"
    STATUS_PATH = "/pg/v1/status/{merchant_id}/{merchant_transaction_id}"

    VERIFY_HEADER = "X-VERIFY"
    MERCHANT_ID_HEADER = "X-MERCHANT-ID"
    CHECKSUM_SEPARATOR = "###"

    REDIRECT_MODE = "POST"
    PAY_PAGE_INSTRUMENT = "PAY_PAGE"

    SUCCESS_CODES = {"PAYMENT_SUCCESS"}
    PENDING_CODES = {"PAYMENT_PENDING", "PAYMENT_INITIATED", "INTERNAL_SERVER_ERROR"}
    FAILURE_CODES = {
        "PAYMENT_ERROR",
        "PAYMENT_DECLINED",
        "TIMED_OUT",
        "TRANSACTION_NOT_FOUND",
        "AUTHORIZATION_FAILED",
        "BAD_REQUEST",
    }

    STATE_COMPLETED = "COMPLETED"
    STATE_FAILED = "FAILED"
