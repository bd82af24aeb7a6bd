import logging
import queue
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener

import requests

# Settings
from coursepay.config.settings import PaymentConfigs
configs = PaymentConfigs()


class SlackErrorHandler(logging.Handler):
    """Posts ERROR and CRITICAL records to a Slack incoming webhook"""

    def __init__(self, webhook_url: str | None = None):
        super().__init__(level=logging.ERROR)
        self.webhook = webhook_url if webhook_url is not None else configs.SLACK_WEBHOOK_URL
        self.environment = configs.APPLICATION_ENVIRONMENT.upper()
        self.service = configs.APP_NAME

    @property
    def enabled(self) -> bool:
        return bool(self.webhook)

    def build_text(self, record) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        lines = [
            f":rotating_light: {self.service} {self.environment} alert",
            f"- Timestamp: {ts}",
            f"- Level: *{record.levelname}*",
            f"- Logger: {record.name}",
            f"- Location: {record.module}.{record.funcName}:{record.lineno}",
            "```" + record.getMessage() + "```",
        ]
        return "\n".join(lines)

    def emit(self, record):
        if not self.enabled:
            return
        try:
            requests.post(self.webhook, json={"text": self.build_text(record)}, timeout=2)
        except requests.RequestException:
            self.handleError(record)


slack_handler = SlackErrorHandler()

# Loggers only enqueue; the webhook post runs on the listener thread, never on the event loop
_slack_queue = queue.SimpleQueue()
slack_queue_handler = QueueHandler(_slack_queue)
slack_queue_handler.setLevel(logging.ERROR)
_slack_listener: QueueListener | None = None


def start_slack_listener() -> QueueHandler:
    """Start the background Slack poster once and return the handler loggers attach"""
    global _slack_listener
    if _slack_listener is None:
        _slack_listener = QueueListener(_slack_queue, slack_handler, respect_handler_level=True)
        _slack_listener.start()
    return slack_queue_handler


def stop_slack_listener():
    """Drain queued alerts and stop the listener thread"""
    global _slack_listener
    if _slack_listener is not None:
        _slack_listener.stop()
        _slack_listener = None
