from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from coursepay.logging.utils import initialize_logging, get_app_logger
from coursepay.middlewares.logging_middleware import AuditMiddleware

load_dotenv()

# Initialize Sentry (must be done early, before other imports)
from coursepay.config.sentry import init_sentry
init_sentry()

initialize_logging()
logger = get_app_logger('coursepay.main')

# Settings
from coursepay.config.settings import PaymentConfigs
configs = PaymentConfigs()

logger.info(f"Running in {'debug' if configs.DEBUG else 'production'} mode")


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info("Starting coursepay")
    # Missing merchant credentials abort startup
    from coursepay.routes.deps import _build_phonepe_service
    _build_phonepe_service()
    yield
    logger.info("Shutting down coursepay")


# Disable docs in production (when DEBUG=false)
docs_url = "/docs" if configs.DEBUG else None
redoc_url = "/redoc" if configs.DEBUG else None

app = FastAPI(
    title="Course Marketplace Payments",
    version=configs.APP_VERSION,
    lifespan=lifespan,
    docs_url=docs_url,
    redoc_url=redoc_url
)

if configs.ALLOWED_ORIGINS:
    origins = [origin.strip() for origin in configs.ALLOWED_ORIGINS.split(",")]
else:
    origins = ["*"]

app.add_middleware(AuditMiddleware)

logger.info(f"Configuring CORS with allowed origins: {origins}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register custom exception handlers
from coursepay.middlewares.handlers import register_exception_handlers
register_exception_handlers(app)

# Routes
from coursepay.routes.app import app_router
from coursepay.routes.health import router as health_router

app.include_router(app_router, prefix="/api/payment")
app.include_router(health_router, tags=["health"])
