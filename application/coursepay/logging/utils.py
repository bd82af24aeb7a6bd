"""
Logging entry points for coursepay
"""
import logging
import atexit

from coursepay.logging.config import LoggingConfig
from coursepay.logging.handlers import get_app_handler, get_audit_handler, get_local_file_handler, flush_handlers
from coursepay.logging.filters import RequestContextFilter, PaymentContextFilter
from coursepay.logging.slack_handler import slack_handler, start_slack_listener, stop_slack_listener


def get_app_logger(name: str = 'coursepay'):
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    # one file per module locally, a shared buffered stream on Firehose
    handler = get_app_handler() if LoggingConfig.FIREHOSE_ENABLED else get_local_file_handler(name.replace('.', '_'))
    handler.addFilter(RequestContextFilter())
    handler.addFilter(PaymentContextFilter())
    logger.addHandler(handler)
    if slack_handler.enabled:
        logger.addHandler(start_slack_listener())
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def get_audit_logger():
    logger = logging.getLogger('coursepay.audit')
    if logger.handlers:
        return logger

    handler = get_audit_handler()
    handler.addFilter(RequestContextFilter())
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def initialize_logging():
    is_valid, message = LoggingConfig.is_valid_config()
    if not is_valid:
        print(f"Warning: {message}")
    atexit.register(flush_handlers)
    atexit.register(stop_slack_listener)
    print("Logging system initialized (coursepay)")
