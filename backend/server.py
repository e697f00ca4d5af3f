import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, APIRouter

import database
from config import Settings, get_settings
from middleware import register_exception_handlers
from routers import auth, dashboard, donors, hospitals, requests
from services.request_lifecycle import purge_expired_requests

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


async def expiry_sweeper(db, interval: int) -> None:
    """Delete expired requests on an interval, alongside the TTL index."""
    while True:
        await asyncio.sleep(interval)
        try:
            await purge_expired_requests(db)
        except Exception:
            logger.exception("Expired request sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    db = database.connect(settings)
    await database.init_indexes(db)

    sweeper = None
    if settings.expiry_sweep_seconds > 0:
        sweeper = asyncio.create_task(expiry_sweeper(db, settings.expiry_sweep_seconds))
    logger.info("Blood Connect API ready (%s)", settings.environment)
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()
        database.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title="Blood Connect API", version=dashboard.SERVICE_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings
    register_exception_handlers(app)

    api_router = APIRouter(prefix="/api")
    api_router.include_router(auth.router)
    api_router.include_router(donors.router)
    api_router.include_router(requests.router)
    api_router.include_router(hospitals.router)
    api_router.include_router(dashboard.router)
    app.include_router(api_router)
    app.add_api_route("/", dashboard.root, methods=["GET"], include_in_schema=False)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=8001)
