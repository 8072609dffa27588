"""Background scheduler control routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from sms_ledger.api.dependencies import get_scheduler
from sms_ledger.api.schemas import SchedulerStatusResponse
from sms_ledger.application.services.background_scheduler import (
    BackgroundScheduler,
)

router = APIRouter(prefix="/scheduler", tags=["Scheduler"])

SchedulerDependency = Annotated[BackgroundScheduler, Depends(get_scheduler)]


def _status(scheduler: BackgroundScheduler) -> SchedulerStatusResponse:
    return SchedulerStatusResponse(
        state=scheduler.state.value,
        interval_seconds=scheduler.interval_seconds,
        iterations=scheduler.iterations,
        failures=scheduler.failures,
    )


@router.get("", response_model=SchedulerStatusResponse)
def get_scheduler_status(scheduler: SchedulerDependency) -> SchedulerStatusResponse:
    return _status(scheduler)


@router.post("/start", response_model=SchedulerStatusResponse)
def start_scheduler(scheduler: SchedulerDependency) -> SchedulerStatusResponse:
    """Start background polling; a no-op when already running."""

    scheduler.start()
    return _status(scheduler)


@router.post("/stop", response_model=SchedulerStatusResponse)
def stop_scheduler(scheduler: SchedulerDependency) -> SchedulerStatusResponse:
    """Stop background polling after the current iteration."""

    scheduler.stop()
    return _status(scheduler)
