"""
Audit and request logging middleware for coursepay
"""
import json
import socket
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from coursepay.logging.utils import get_app_logger, get_audit_logger
from coursepay.logging.config import LoggingConfig
from coursepay.middlewares.request_context import create_request_id, request_context, clear_request_context

# settings
from coursepay.config.settings import PaymentConfigs
configs = PaymentConfigs()

MASKED_HEADERS = {'authorization', 'x-verify', 'cookie'}


class AuditMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, exclude_paths: list[str] | None = None):
        super().__init__(app)
        self.logger = get_app_logger('coursepay.requests')
        self.exclude_audit_paths = exclude_paths or ['/health', '/docs', '/redoc', '/openapi.json']
        self.hostname = socket.gethostname()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        clear_request_context()
        request_id = create_request_id()
        request_context.request_method = request.method
        request_context.request_path = request.url.path
        start_time = time.time()

        should_audit = LoggingConfig.AUDIT_LOGGING_ENABLED and not any(
            request.url.path.startswith(p) for p in self.exclude_audit_paths
        )
        body_bytes = await request.body() if should_audit else b''

        try:
            response = await call_next(request)
        except Exception as exc:
            duration = (time.time() - start_time) * 1000
            self.logger.error(
                f"request_exception | method={request.method} path={request.url.path} exception={exc.__class__.__name__} duration_ms={duration:.0f}",
                exc_info=True,
            )
            if should_audit:
                audit_data = self._build_audit_data(request, Response(status_code=500), body_bytes, duration, request_id)
                get_audit_logger().info("Audit log (exception)", extra=audit_data)
            clear_request_context()
            raise

        duration = (time.time() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        if should_audit:
            audit_data = self._build_audit_data(request, response, body_bytes, duration, request_id)
            get_audit_logger().info("Audit log", extra=audit_data)
        clear_request_context()
        return response

    def _mask_headers(self, headers) -> dict:
        return {k: ('****' if k.lower() in MASKED_HEADERS else v) for k, v in headers.items()}

    def _parse_body(self, request: Request, body_bytes: bytes):
        if not body_bytes:
            return {}
        text = body_bytes.decode('utf-8', errors='replace')
        if 'application/json' in request.headers.get('content-type', ''):
            try:
                return json.loads(text)
            except ValueError:
                pass
        return text[:1000]

    def _build_audit_data(self, request: Request, response: Response, body_bytes: bytes, duration: float, request_id: str) -> dict:
        status = getattr(response, 'status_code', 0)
        response_data = ''
        # streamed responses cannot be read here
        body = getattr(response, 'body', None)
        if LoggingConfig.CAPTURE_RESPONSE_BODY and not 200 <= status < 300 and body is not None:
            response_data = body.decode('utf-8', errors='replace')[:1000]

        return {
            'duration': round(duration, 2),
            'hostname': self.hostname,
            'app_name': configs.APP_NAME,
            'request': {
                "GET": dict(request.query_params),
                "BODY": self._parse_body(request, body_bytes),
                "HEADERS": self._mask_headers(dict(request.headers)),
            },
            'request_id': request_id,
            'request_method': request.method,
            'request_path': request.url.path,
            'response': response_data,
            'status_code': status,
            'version': configs.APP_VERSION,
        }
