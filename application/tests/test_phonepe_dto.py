"""
Tests for PhonePe DTOs.
"""
import pytest
from pydantic import ValidationError

from coursepay.core.constants import PaymentErrorKind
from coursepay.dto.phonepe_payments import AdapterResult, PaymentRequest, PhonePeInitiateRequest


class TestPaymentRequest:

    def test_minimal_request(self):
        req = PaymentRequest(merchant_transaction_id="TXN_1", amount=100, user_id="u1", user_phone="9999999999")
        assert req.return_path is None
        assert req.course_id is None

    @pytest.mark.parametrize("amount", [0, -100])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(ValidationError):
            PaymentRequest(merchant_transaction_id="TXN_1", amount=amount, user_id="u1", user_phone="9999999999")

    @pytest.mark.parametrize("txn_id", ["", "TXN 1", "TXN/1", "TXN?x=1"])
    def test_unsafe_transaction_id_rejected(self, txn_id):
        with pytest.raises(ValidationError):
            PaymentRequest(merchant_transaction_id=txn_id, amount=100, user_id="u1", user_phone="9999999999")

    def test_immutable(self):
        req = PaymentRequest(merchant_transaction_id="TXN_1", amount=100, user_id="u1", user_phone="9999999999")
        with pytest.raises(ValidationError):
            req.amount = 1


class TestAdapterResult:

    def test_ok(self):
        result = AdapterResult.ok({"code": "PAYMENT_SUCCESS"}, payment_url="https://pay.test")
        assert result.success is True
        assert result.error_kind is None
        assert result.payment_url == "https://pay.test"

    def test_fail(self):
        result = AdapterResult.fail(PaymentErrorKind.GATEWAY_REJECTED, {"code": "BAD_REQUEST"})
        assert result.success is False
        assert result.data is None
        assert result.error == {"code": "BAD_REQUEST"}

    def test_failure_requires_kind(self):
        with pytest.raises(ValidationError):
            AdapterResult(success=False, error="boom")

    def test_success_cannot_carry_kind(self):
        with pytest.raises(ValidationError):
            AdapterResult(success=True, error_kind=PaymentErrorKind.NETWORK_FAILURE)


class TestPhonePeInitiateRequest:

    def test_defaults(self):
        req = PhonePeInitiateRequest(course_id="c1", amount="499.00", user_id="u1", user_phone="9999999999")
        assert req.transaction_prefix == "TXN"

    def test_more_than_two_decimals_rejected(self):
        with pytest.raises(ValidationError):
            PhonePeInitiateRequest(course_id="c1", amount="1.005", user_id="u1", user_phone="9999999999")

    def test_prefix_must_be_alphanumeric(self):
        with pytest.raises(ValidationError):
            PhonePeInitiateRequest(course_id="c1", amount="1", user_id="u1", user_phone="9", transaction_prefix="TX_N")
