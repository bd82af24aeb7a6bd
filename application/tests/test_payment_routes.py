"""
Tests for the PhonePe payment routes.
"""
import base64
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from coursepay.main import app
from coursepay.routes import deps
from coursepay.routes.app import payments as payment_routes

from conftest import MERCHANT_ID, SALT_KEY, encode_webhook, sign

PAY_PAGE_URL = "https://mercury-uat.phonepe.com/transact/simulator?token=abc"


def status_body(code: str, state: str, txn_id: str = "TXN_1") -> dict:
    return {
        "success": code == "PAYMENT_SUCCESS",
        "code": code,
        "message": "status",
        "data": {
            "merchantId": MERCHANT_ID,
            "merchantTransactionId": txn_id,
            "transactionId": "T2111221437456190170379",
            "amount": 49900,
            "state": state,
            "responseCode": "SUCCESS" if state == "COMPLETED" else "ERROR",
        }
    }


@pytest.fixture
def client_for(gateway):
    """TestClient whose PhonePe dependency talks to the given mock handler"""
    def build(handler=None):
        handler = handler or (lambda request: httpx.Response(500))
        service = gateway.service(handler)
        app.dependency_overrides[deps.get_phonepe_service] = lambda: service
        return TestClient(app)

    yield build
    app.dependency_overrides.clear()


INITIATE_BODY = {
    "course_id": "64f1c2a9e4b0a1b2c3d4e5f6",
    "amount": "499.00",
    "user_id": "user_42",
    "user_phone": "9999999999",
    "return_path": "/courses/64f1c2a9e4b0a1b2c3d4e5f6",
}


class TestInitiateRoute:

    def test_initiate_success(self, client_for, gateway):
        client = client_for(lambda request: httpx.Response(200, json={
            "success": True,
            "code": "PAYMENT_INITIATED",
            "data": {"instrumentResponse": {"redirectInfo": {"url": PAY_PAGE_URL}}},
        }))

        response = client.post("/api/payment/phonepe/initiate", json=INITIATE_BODY)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["payment_url"] == PAY_PAGE_URL
        assert data["amount_paise"] == 49900
        assert data["transaction_id"].startswith("TXN_")

        sent_request = json.loads(gateway.requests[0].content)["request"]
        sent_payload = json.loads(base64.b64decode(sent_request))
        assert sent_payload["merchantTransactionId"] == data["transaction_id"]
        assert sent_payload["amount"] == 49900

    def test_initiate_custom_prefix(self, client_for):
        client = client_for(lambda request: httpx.Response(200, json={"success": True}))

        response = client.post("/api/payment/phonepe/initiate", json={**INITIATE_BODY, "transaction_prefix": "COURSE"})

        assert response.status_code == 200
        assert response.json()["data"]["transaction_id"].startswith("COURSE_")
        assert response.json()["data"]["payment_url"] is None

    def test_email_is_accepted_but_not_sent(self, client_for, gateway):
        client = client_for(lambda request: httpx.Response(200, json={"success": True}))

        response = client.post("/api/payment/phonepe/initiate", json={**INITIATE_BODY, "user_email": "learner@example.com"})

        assert response.status_code == 200
        sent_request = json.loads(gateway.requests[0].content)["request"]
        assert "learner@example.com" not in base64.b64decode(sent_request).decode()

    def test_gateway_rejection_is_400(self, client_for):
        client = client_for(lambda request: httpx.Response(400, json={"code": "BAD_REQUEST", "message": "Invalid mobile number"}))

        response = client.post("/api/payment/phonepe/initiate", json=INITIATE_BODY)

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid mobile number"

    def test_network_failure_is_502(self, client_for):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)
        client = client_for(refuse)

        response = client.post("/api/payment/phonepe/initiate", json=INITIATE_BODY)

        assert response.status_code == 502

    def test_invalid_amount_is_422(self, client_for, gateway):
        client = client_for()

        response = client.post("/api/payment/phonepe/initiate", json={**INITIATE_BODY, "amount": "0"})

        assert response.status_code == 422
        assert gateway.requests == []


class TestStatusRoute:

    def test_completed(self, client_for):
        client = client_for(lambda request: httpx.Response(200, json=status_body("PAYMENT_SUCCESS", "COMPLETED")))

        response = client.get("/api/payment/phonepe/status/TXN_1")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["payment_status"] == "completed"
        assert data["details"]["amount_paise"] == 49900
        assert data["gateway_response"]["code"] == "PAYMENT_SUCCESS"

    def test_not_found_passes_gateway_message(self, client_for):
        client = client_for(lambda request: httpx.Response(404, json={"code": "TRANSACTION_NOT_FOUND", "message": "No Transaction found"}))

        response = client.get("/api/payment/phonepe/status/TXN_404")

        assert response.status_code == 400
        assert response.json()["message"] == "No Transaction found"


class TestCallbackRoute:

    def test_form_post_rechecks_status(self, client_for, gateway):
        client = client_for(lambda request: httpx.Response(200, json=status_body("PAYMENT_ERROR", "FAILED")))

        response = client.post("/api/payment/phonepe/callback", data={"transactionId": "TXN_1", "code": "PAYMENT_SUCCESS"})

        assert response.status_code == 200
        assert response.json()["data"]["payment_status"] == "failed"
        assert gateway.requests[0].url.path.endswith(f"/pg/v1/status/{MERCHANT_ID}/TXN_1")

    def test_query_parameter_transaction_id(self, client_for):
        client = client_for(lambda request: httpx.Response(200, json=status_body("PAYMENT_SUCCESS", "COMPLETED")))

        response = client.post("/api/payment/phonepe/callback?transactionId=TXN_1")

        assert response.json()["data"]["payment_status"] == "completed"

    def test_gateway_failure_reports_pending(self, client_for):
        client = client_for(lambda request: httpx.Response(500))

        response = client.post("/api/payment/phonepe/callback?transactionId=TXN_1")

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["data"]["payment_status"] == "pending"

    def test_missing_transaction_id(self, client_for):
        client = client_for()

        response = client.post("/api/payment/phonepe/callback")

        assert response.status_code == 400

    def test_redirects_to_frontend(self, client_for, monkeypatch):
        monkeypatch.setattr(payment_routes.configs, "FRONTEND_URL", "https://courses.test")
        client = client_for(lambda request: httpx.Response(200, json=status_body("PAYMENT_SUCCESS", "COMPLETED")))

        response = client.post(
            "/api/payment/phonepe/callback?transactionId=TXN_1&returnPath=%2Fmy-courses",
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "https://courses.test/my-courses?transactionId=TXN_1&status=completed"

    def test_external_return_path_is_ignored(self, client_for, monkeypatch):
        monkeypatch.setattr(payment_routes.configs, "FRONTEND_URL", "https://courses.test")
        client = client_for(lambda request: httpx.Response(200, json=status_body("PAYMENT_SUCCESS", "COMPLETED")))

        response = client.post(
            "/api/payment/phonepe/callback?transactionId=TXN_1&returnPath=%2F%2Fevil.test",
            follow_redirects=False,
        )

        assert response.status_code == 200


class TestWebhookRoute:

    def test_valid_webhook(self, client_for, gateway):
        client = client_for()
        payload = encode_webhook(status_body("PAYMENT_SUCCESS", "COMPLETED", txn_id="TXN_9"))

        response = client.post(
            "/api/payment/phonepe/webhook",
            json={"response": payload},
            headers={"X-VERIFY": sign(payload + SALT_KEY)},
        )

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "transaction_id": "TXN_9",
            "payment_status": "completed",
            "payment_status_code": 51,
        }
        assert gateway.requests == []

    def test_invalid_signature(self, client_for):
        client = client_for()
        payload = encode_webhook(status_body("PAYMENT_SUCCESS", "COMPLETED"))

        response = client.post(
            "/api/payment/phonepe/webhook",
            json={"response": payload},
            headers={"X-VERIFY": sign(payload + "WRONG")},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid signature"

    def test_missing_signature_header(self, client_for):
        client = client_for()

        response = client.post("/api/payment/phonepe/webhook", json={"response": encode_webhook({"code": "x"})})

        assert response.status_code == 400
        assert response.json()["message"] == "Missing X-VERIFY header"

    def test_malformed_payload(self, client_for):
        client = client_for()
        payload = "bm90IGpzb24="  # "not json"

        response = client.post(
            "/api/payment/phonepe/webhook",
            json={"response": payload},
            headers={"X-VERIFY": sign(payload + SALT_KEY)},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid payload"

    def test_missing_body_field(self, client_for):
        client = client_for()

        response = client.post("/api/payment/phonepe/webhook", json={}, headers={"X-VERIFY": "abc###1"})

        assert response.status_code == 422


class TestServiceWiring:

    def test_unconfigured_gateway_is_503(self, monkeypatch):
        monkeypatch.setenv("PHONEPE_MERCHANT_ID", "")
        monkeypatch.setenv("PHONEPE_SALT_KEY", "")
        deps._build_phonepe_service.cache_clear()
        try:
            response = TestClient(app).get("/api/payment/phonepe/status/TXN_1")
        finally:
            deps._build_phonepe_service.cache_clear()

        assert response.status_code == 503

    def test_health(self):
        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.headers["X-Request-ID"]
