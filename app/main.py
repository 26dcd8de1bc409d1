import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from app.api.routes.expenses import router as expenses_router
from app.api.routes.inventory import router as inventory_router
from app.api.routes.maintenance import router as maintenance_router
from app.api.routes.stock import router as stock_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.db.database import session_scope
from app.services.maintenance import run_scheduled_maintenance

configure_logging()
logger = logging.getLogger(__name__)


def _maintenance_pass() -> int:
    with session_scope() as db:
        reports = run_scheduled_maintenance(db)
    return sum(report.updated for report in reports)


async def _maintenance_worker() -> None:
    while True:
        try:
            updated = await run_in_threadpool(_maintenance_pass)
            if updated:
                logger.info("Scheduled maintenance rewrote %s running balances", updated)
        except Exception:
            logger.exception("Scheduled maintenance failed")
        await asyncio.sleep(settings.maintenance_interval_minutes * 60)


@asynccontextmanager
async def lifespan(_: FastAPI):
    task: asyncio.Task | None = None
    if settings.maintenance_enabled:
        task = asyncio.create_task(_maintenance_worker())
    try:
        yield
    finally:
        if task:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(inventory_router)
app.include_router(stock_router)
app.include_router(expenses_router)
app.include_router(maintenance_router)


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}
