"""
Logging filters that copy request and payment context onto log records
"""
import logging
from coursepay.middlewares.request_context import request_context


class RequestContextFilter(logging.Filter):
    def filter(self, record):
        record.request_id = getattr(request_context, 'request_id', None) or ''
        record.request_method = getattr(request_context, 'request_method', None) or ''
        record.request_path = getattr(request_context, 'request_path', None) or ''
        record.user_id = getattr(request_context, 'user_id', None) or ''
        return True


class PaymentContextFilter(logging.Filter):
    def filter(self, record):
        record.transaction_id = getattr(request_context, 'transaction_id', None) or ''
        record.course_id = getattr(request_context, 'course_id', None) or ''
        return True
