"""
Pytest configuration and fixtures.
"""

import base64
import hashlib
import json
import os
import tempfile

# Keep test runs from writing logs into the repo or posting to Slack
os.environ.setdefault("LOG_DIRECTORY", tempfile.mkdtemp(prefix="coursepay-logs-"))
os.environ["SLACK_WEBHOOK_URL"] = ""
os.environ["SENTRY_ENABLED"] = "false"
os.environ["AUDIT_LOGGING_ENABLED"] = "false"
os.environ["FIREHOSE_ENABLED"] = "false"
# Route tests assert on detailed error messages
os.environ["DEBUG"] = "true"

import httpx
import pytest

from coursepay.config.phonepe import PhonePeConfig
from coursepay.integrations.phonepe_service import PhonePeService

MERCHANT_ID = "M123"
SALT_KEY = "SECRET"
SALT_INDEX = 1
BASE_URL = "https://gateway.test/apis/pg-sandbox"
REDIRECT_URL = "https://courses.test/api/payment/phonepe/callback"
WEBHOOK_URL = "https://courses.test/api/payment/phonepe/webhook"


def sign(data: str, salt_index: int = SALT_INDEX) -> str:
    return hashlib.sha256(data.encode()).hexdigest() + "###" + str(salt_index)


def encode_webhook(payload: dict) -> str:
    return base64.b64encode(json.dumps(payload).encode()).decode()


@pytest.fixture
def phonepe_config() -> PhonePeConfig:
    return PhonePeConfig(
        merchant_id=MERCHANT_ID,
        salt_key=SALT_KEY,
        salt_index=SALT_INDEX,
        base_url=BASE_URL,
        redirect_url=REDIRECT_URL,
        webhook_url=WEBHOOK_URL,
        timeout=5,
    )


@pytest.fixture
def phonepe_service(phonepe_config) -> PhonePeService:
    """Service without a gateway; for signing and webhook tests"""
    return PhonePeService(phonepe_config)


@pytest.fixture
def gateway(phonepe_config):
    """
    Build a PhonePeService whose HTTP calls go to `handler`.
    Every request the handler sees is recorded on `gateway.requests`.
    """
    class Gateway:
        requests: list[httpx.Request] = []

        def service(self, handler) -> PhonePeService:
            def recording_handler(request: httpx.Request) -> httpx.Response:
                self.requests.append(request)
                return handler(request)
            return PhonePeService(phonepe_config, transport=httpx.MockTransport(recording_handler))

    gw = Gateway()
    gw.requests = []
    return gw
