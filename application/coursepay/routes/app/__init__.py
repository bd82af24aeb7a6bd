from fastapi import APIRouter
from coursepay.routes.app.payments import payment_router

app_router = APIRouter(tags=["app"])
app_router.include_router(payment_router)
