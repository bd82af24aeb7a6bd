"""
PhonePe adapter configuration.

PhonePeConfig is built once at startup from PaymentConfigs and handed to
PhonePeService; nothing reads PhonePe credentials from the environment
after that.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from coursepay.config.settings import PaymentConfigs, PHONEPE_SANDBOX_URL
from coursepay.core.exceptions import ConfigurationError

PHONEPE_ENV_VARS = [
    "PHONEPE_MERCHANT_ID",
    "PHONEPE_SALT_KEY",
    "PHONEPE_SALT_INDEX",
    "PHONEPE_BASE_URL",
    "PHONEPE_REDIRECT_URL",
    "PHONEPE_WEBHOOK_URL",
]
REQUIRED_ENV_VARS = ["PHONEPE_MERCHANT_ID", "PHONEPE_SALT_KEY"]


class PhonePeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    merchant_id: str = Field(..., min_length=1)
    salt_key: str = Field(..., min_length=1, repr=False)
    salt_index: int = Field(1, ge=1)
    base_url: str = PHONEPE_SANDBOX_URL
    redirect_url: str = ""
    webhook_url: str = ""
    timeout: float = Field(30, gt=0)

    @classmethod
    def from_settings(cls, configs: Optional[PaymentConfigs] = None) -> "PhonePeConfig":
        """Build the adapter configuration, raising ConfigurationError when credentials are unusable"""
        configs = configs or PaymentConfigs()

        missing = [name for name in REQUIRED_ENV_VARS if not getattr(configs, name)]
        if missing:
            raise ConfigurationError(f"PhonePe credentials not configured: {', '.join(missing)}", missing=missing)

        try:
            salt_index = int(configs.PHONEPE_SALT_INDEX)
        except (TypeError, ValueError):
            raise ConfigurationError(f"PHONEPE_SALT_INDEX must be an integer, got {configs.PHONEPE_SALT_INDEX!r}")
        if salt_index < 1:
            raise ConfigurationError("PHONEPE_SALT_INDEX must be positive")

        try:
            timeout = float(configs.PHONEPE_TIMEOUT)
        except (TypeError, ValueError):
            raise ConfigurationError(f"PHONEPE_TIMEOUT must be a number of seconds, got {configs.PHONEPE_TIMEOUT!r}")
        if not timeout > 0:
            raise ConfigurationError("PHONEPE_TIMEOUT must be positive")

        return cls(
            merchant_id=configs.PHONEPE_MERCHANT_ID,
            salt_key=configs.PHONEPE_SALT_KEY,
            salt_index=salt_index,
            base_url=configs.PHONEPE_BASE_URL.rstrip("/"),
            redirect_url=configs.PHONEPE_REDIRECT_URL,
            webhook_url=configs.PHONEPE_WEBHOOK_URL,
            timeout=timeout,
        )


def describe_phonepe_configuration(configs: Optional[PaymentConfigs] = None) -> tuple[bool, list[str]]:
    """
    Human readable report of the PhonePe settings, with salt values hidden.

    Returns:
        (configured, lines) where configured is False when merchant id or salt key is missing
    """
    configs = configs or PaymentConfigs()
    configured = True
    lines = ["PhonePe payment configuration", ""]

    for name in PHONEPE_ENV_VARS:
        value = getattr(configs, name)
        if value:
            shown = "***HIDDEN***" if "SALT" in name else value
            lines.append(f"[ok]   {name}: {shown}")
        else:
            lines.append(f"[warn] {name}: NOT SET")
            if name in REQUIRED_ENV_VARS:
                configured = False

    lines.append("")
    lines.append(f"Base URL: {configs.PHONEPE_BASE_URL}")
    lines.append(f"Redirect: {configs.PHONEPE_REDIRECT_URL}")
    lines.append(f"Webhook:  {configs.PHONEPE_WEBHOOK_URL}")
    lines.append("")
    if configured:
        lines.append("PhonePe configuration looks good")
    else:
        lines.append("PhonePe requires PHONEPE_MERCHANT_ID and PHONEPE_SALT_KEY")
    return configured, lines
