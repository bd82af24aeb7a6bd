from functools import lru_cache

from fastapi import HTTPException

from coursepay.config.phonepe import PhonePeConfig
from coursepay.core.exceptions import ConfigurationError
from coursepay.integrations.phonepe_service import PhonePeService

# Logger
from coursepay.logging.utils import get_app_logger
logger = get_app_logger("coursepay.deps")


@lru_cache(maxsize=1)
def _build_phonepe_service() -> PhonePeService:
    return PhonePeService(PhonePeConfig.from_settings())


def get_phonepe_service() -> PhonePeService:
    """FastAPI dependency; tests replace it through app.dependency_overrides"""
    try:
        return _build_phonepe_service()
    except ConfigurationError as e:
        logger.error(f"phonepe_not_configured | missing={e.missing} error={e}")
        raise HTTPException(status_code=503, detail="Payment gateway is not configured")
