"""API v1 router registration."""

from fastapi import APIRouter

from sms_ledger.api.routes import scheduler, transactions

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(transactions.router)
v1_router.include_router(scheduler.router)
