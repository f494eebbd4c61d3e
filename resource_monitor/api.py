"""
FastAPI application exposing resource usage samples.

Endpoints
---------
- GET  /health                        -> Simple liveness check
- GET  /status                        -> API status and version
- POST /resource-usage/check          -> Trigger a check (background by default)
- POST /resource-usage/check-sync     -> Trigger a check and wait for the sample
- GET  /resource-usage/latest         -> Latest sample for BASE_PATH
- GET  /resource-usage/history        -> Samples from the last N days
- GET  /resource-usage/stats          -> current/max/min/avg over the last N days

Everything except /health requires the X-API-Key header.
"""

import logging
import secrets
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, Header, HTTPException, Query
from fastapi.responses import JSONResponse

from resource_monitor.config import Settings, get_settings
from resource_monitor.database import make_engine, make_session_factory
from resource_monitor.jobs import run_check
from resource_monitor.sampler import Sampler
from resource_monitor.schemas import (
    CheckQueuedOut,
    HistoryMeta,
    HistoryOut,
    Sample,
    StatsPeriod,
    StatusOut,
    UsageStatsOut,
)
from resource_monitor.store import SampleStore, utcnow

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Resource Usage Monitor API",
    version=VERSION,
)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


@lru_cache
def _store_for(database_url: str) -> SampleStore:
    return SampleStore(make_session_factory(make_engine(database_url)))


def get_store(settings: Settings = Depends(get_settings)) -> SampleStore:
    """One store (and engine) per database URL for the life of the process."""
    return _store_for(settings.database_url)


def get_sampler(
    settings: Settings = Depends(get_settings),
    store: SampleStore = Depends(get_store),
) -> Sampler:
    return Sampler(settings, store)


def require_api_key(
    x_api_key: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject requests whose X-API-Key does not match API_KEY."""
    valid = settings.api_key
    if not x_api_key or not valid or not secrets.compare_digest(x_api_key, valid):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


def configured_path(settings: Settings = Depends(get_settings)) -> str:
    if not settings.base_path:
        raise HTTPException(
            status_code=500,
            detail="Base path not configured. Please set BASE_PATH in your environment variables.",
        )
    return settings.base_path


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health")
def health() -> dict:
    """Simple liveness endpoint used for health checks."""
    return {"status": "ok"}


@app.get("/status", response_model=StatusOut, dependencies=[Depends(require_api_key)])
def status():
    return StatusOut(message="API is working", timestamp=utcnow(), version=VERSION)


router = APIRouter(prefix="/resource-usage", dependencies=[Depends(require_api_key)])


def _check_now(sampler: Sampler, settings: Settings) -> Sample:
    result = run_check(sampler, settings.check_attempts)
    if not result.ok:
        raise HTTPException(
            status_code=500,
            detail={
                "message": "Resource usage check failed",
                "kind": result.error.kind,
                "step": result.error.step,
                "error": result.error.message,
            },
        )
    return result.sample


@router.post("/check", response_model=Sample, responses={202: {"model": CheckQueuedOut}})
def check(
    background_tasks: BackgroundTasks,
    sync: bool = False,
    settings: Settings = Depends(get_settings),
    sampler: Sampler = Depends(get_sampler),
):
    """
    Trigger a resource usage check.

    With `sync=true` the request waits for the sample and returns it.
    Otherwise the check runs after the response is sent and the outcome
    only shows up in the logs.
    """
    if sync:
        return _check_now(sampler, settings)

    background_tasks.add_task(run_check, sampler, settings.check_attempts)
    logger.info("Resource usage check queued for %s", settings.base_path)

    queued = CheckQueuedOut(base_path=settings.base_path, queued_at=utcnow())
    return JSONResponse(
        status_code=202,
        content=queued.model_dump(mode="json"),
        background=background_tasks,
    )


@router.post("/check-sync", response_model=Sample)
def check_sync(
    settings: Settings = Depends(get_settings),
    sampler: Sampler = Depends(get_sampler),
):
    """Trigger a resource usage check and wait for it."""
    return _check_now(sampler, settings)


@router.get("/latest", response_model=Sample)
def latest(
    path: str = Depends(configured_path),
    store: SampleStore = Depends(get_store),
):
    """Return the most recent sample for BASE_PATH."""
    sample = store.latest(path)
    if sample is None:
        raise HTTPException(status_code=404, detail="No resource usage data found")
    return sample


@router.get("/history", response_model=HistoryOut)
def history(
    days: int = Query(default=30, ge=1, le=365),
    path: str = Depends(configured_path),
    store: SampleStore = Depends(get_store),
):
    """Return all samples from the last `days` days, oldest first."""
    end_date = utcnow()
    start_date = end_date - timedelta(days=days)
    samples = store.range(path, start_date, end_date)

    return HistoryOut(
        data=samples,
        meta=HistoryMeta(
            base_path=path,
            days=days,
            start_date=start_date,
            end_date=end_date,
            total_records=len(samples),
        ),
    )


@router.get("/stats", response_model=UsageStatsOut)
def stats(
    days: int = Query(default=7, ge=1, le=365),
    path: str = Depends(configured_path),
    store: SampleStore = Depends(get_store),
):
    """
    Return per-metric KPIs over the last `days` days.

    For each metric we compute:

    - `current`: value from the newest sample in the window
    - `max` / `min`: extremes over the window
    - `avg`: mean, rounded to 2 decimals
    """
    end_date = utcnow()
    start_date = end_date - timedelta(days=days)

    usage = store.stats(path, start_date, end_date)
    if usage is None:
        raise HTTPException(status_code=404, detail="No data available for the specified period")

    return UsageStatsOut(
        period=StatsPeriod(days=days, start_date=start_date, end_date=end_date),
        **usage.model_dump(),
    )


app.include_router(router)
