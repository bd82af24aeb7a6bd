from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
from coursepay.config.sentry import capture_exception, add_breadcrumb
from coursepay.logging.utils import get_app_logger

# Settings
from coursepay.config.settings import PaymentConfigs
configs = PaymentConfigs()

logger = get_app_logger('coursepay.handlers')

GENERIC_MESSAGES = {
    400: "Invalid request",
    401: "Authentication required",
    403: "Access denied",
    404: "Resource not found",
}


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    """Validation errors: field-level detail in debug mode, a generic message otherwise."""
    logger.warning(f"validation_error | method={request.method} path={request.url.path} errors={exc.errors()}")

    if not configs.DEBUG:
        payload = {"message": "Invalid request data"}
    else:
        error_messages = []
        for err in exc.errors():
            field_path = " -> ".join(str(loc) for loc in err.get("loc", []))
            error_messages.append(f"{field_path}: {err.get('msg', 'Invalid input')}")

        if len(error_messages) == 1:
            payload = {"message": error_messages[0]}
        else:
            payload = {"message": "Validation errors", "errors": error_messages}

    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=payload)


async def _http_exception_handler(request: Request, exc: HTTPException):
    status_code = exc.status_code
    if status_code >= 500:
        logger.error(f"http_exception | method={request.method} path={request.url.path} status_code={status_code} detail={exc.detail}")
        add_breadcrumb(
            message=f"HTTP {status_code} error on {request.method} {request.url.path}",
            category="http",
            level="error",
            data={"status_code": status_code, "detail": exc.detail}
        )
        capture_exception(exc)
    else:
        logger.warning(f"http_exception | method={request.method} path={request.url.path} status_code={status_code} detail={exc.detail}")

    if configs.DEBUG:
        payload = {"message": exc.detail}
    elif 400 <= status_code < 500:
        payload = {"message": GENERIC_MESSAGES.get(status_code, "Invalid request")}
    else:
        payload = {"message": "Something went wrong"}

    return JSONResponse(status_code=status_code, content=payload, headers=getattr(exc, "headers", None))


async def _general_exception_handler(request: Request, exc: Exception):
    """Anything unhandled becomes a 500."""
    logger.error(
        f"unhandled_exception | method={request.method} path={request.url.path} exception_type={type(exc).__name__} exception_message={exc}",
        exc_info=True,
    )
    add_breadcrumb(
        message=f"Unhandled exception on {request.method} {request.url.path}",
        category="exception",
        level="error",
        data={"exception_type": type(exc).__name__}
    )
    capture_exception(exc)

    if configs.DEBUG:
        payload = {"message": f"Internal server error: {exc}"}
    else:
        payload = {"message": "Something went wrong"}
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the given FastAPI instance."""
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _general_exception_handler)
