"""
Log handlers for coursepay.
Buffered Kinesis Firehose delivery when enabled, local JSON files otherwise.
"""
import logging
import os
import time
from logging.handlers import MemoryHandler

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from coursepay.logging.config import LoggingConfig
from coursepay.logging.formatters import AppLogsJSONFormatter, AuditLogsJSONFormatter


class FireHoseHandler(logging.Handler):
    """Ships formatted records to a Firehose delivery stream in batches"""

    def __init__(self, stream_name: str):
        super().__init__()
        self.stream_name = stream_name
        self.retry_count = LoggingConfig.FIREHOSE_RETRY_COUNT
        self.retry_delay = LoggingConfig.FIREHOSE_RETRY_DELAY
        self.client = boto3.client(
            "firehose",
            region_name=LoggingConfig.FIREHOSE_REGION_NAME,
            aws_access_key_id=LoggingConfig.FIREHOSE_ACCESS_KEY_ID,
            aws_secret_access_key=LoggingConfig.FIREHOSE_SECRET_ACCESS_KEY,
            config=Config(connect_timeout=10, read_timeout=30, retries={"max_attempts": 2}),
        )

    def emit(self, record):
        self.put_records([{"Data": self.format(record)}])

    def put_records(self, records) -> bool:
        """Send a batch, retrying only the entries Firehose reports as failed"""
        pending = list(records)

        for attempt in range(self.retry_count):
            if not pending:
                return True
            try:
                response = self.client.put_record_batch(DeliveryStreamName=self.stream_name, Records=pending)
            except (BotoCoreError, ClientError):
                pass
            else:
                if response.get("FailedPutCount", 0) == 0:
                    return True
                # RequestResponses is positional; failed entries carry an ErrorCode
                pending = [
                    record for record, result in zip(pending, response.get("RequestResponses", []))
                    if result.get("ErrorCode")
                ]
            if attempt < self.retry_count - 1:
                time.sleep(self.retry_delay * (2 ** attempt))
        return not pending


class BufferedFirehoseHandler(MemoryHandler):
    """Flushes on capacity or once LOG_BUFFER_TIMEOUT seconds have passed since the last flush"""

    def __init__(self, stream_name: str, capacity: int, formatter: logging.Formatter):
        target = FireHoseHandler(stream_name)
        target.setFormatter(formatter)
        super().__init__(capacity=capacity, target=target)
        self.setFormatter(formatter)
        self.buffer_timeout = LoggingConfig.LOG_BUFFER_TIMEOUT
        self.last_flush = time.time()

    def shouldFlush(self, record):
        return super().shouldFlush(record) or (time.time() - self.last_flush) >= self.buffer_timeout

    def flush(self):
        self.acquire()
        try:
            if self.target and self.buffer:
                self.target.put_records([{"Data": self.format(record)} for record in self.buffer])
                self.buffer.clear()
            self.last_flush = time.time()
        finally:
            self.release()


_handlers = {}


def get_local_file_handler(name: str = 'app'):
    os.makedirs(LoggingConfig.LOG_DIRECTORY, exist_ok=True)
    handler = logging.FileHandler(os.path.join(LoggingConfig.LOG_DIRECTORY, f'{name}.log'))
    handler.setFormatter(AuditLogsJSONFormatter() if name.startswith('audit') else AppLogsJSONFormatter())
    return handler


def get_app_handler():
    if not LoggingConfig.FIREHOSE_ENABLED:
        return get_local_file_handler('app')
    if 'app' not in _handlers:
        stream = LoggingConfig.APP_LOGS_STREAM_NAME or 'coursepay-app-logs'
        _handlers['app'] = BufferedFirehoseHandler(stream, LoggingConfig.APP_LOGS_CAPACITY, AppLogsJSONFormatter())
    return _handlers['app']


def get_audit_handler():
    if not LoggingConfig.FIREHOSE_ENABLED:
        return get_local_file_handler('audit_logs_backup')
    if 'audit' not in _handlers:
        stream = LoggingConfig.AUDIT_LOGS_STREAM_NAME or 'coursepay-audit-logs'
        _handlers['audit'] = BufferedFirehoseHandler(stream, LoggingConfig.AUDIT_LOGS_CAPACITY, AuditLogsJSONFormatter())
    return _handlers['audit']


def flush_handlers():
    for handler in _handlers.values():
        handler.flush()
