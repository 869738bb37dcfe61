import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

from dal.route_dal import RouteDAL
from routes.admin_route import router as admin_router
from routes.chat_route import router as chat_router
from routes.realtime_ws import router as realtime_router
from routes.session_route import router as session_router
from services.realtime.connection_hub import ConnectionHub
from services.realtime.scheduler import SessionScheduler
from services.realtime.session_store import SessionStore
from utils.database_init import AsyncDatabaseInitializer
from utils.settings import ChatSettings

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the SQLite database of routes and schedules (fresh on every startup)
      - the in-memory session store and the websocket connection hub
      - the scheduler that opens and closes chats, ticking once immediately
    and attach them to `app.state`.
    """
    settings: ChatSettings = app.state.settings

    db_initializer = AsyncDatabaseInitializer(app.state.database_dir)
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer
    app.state.route_dal = RouteDAL(db_initializer)

    app.state.session_store = SessionStore(settings.tzinfo)
    app.state.connection_hub = ConnectionHub()
    scheduler = SessionScheduler(
        app.state.session_store,
        app.state.connection_hub,
        app.state.route_dal,
        settings.tzinfo,
        interval_seconds=settings.scheduler_interval_seconds,
    )
    app.state.scheduler = scheduler
    if app.state.run_scheduler:
        scheduler.start()
        logger.info("Session scheduler started (every %ss, %s)", settings.scheduler_interval_seconds, settings.timezone)

    try:
        yield
    finally:
        await scheduler.stop()
        # Sessions are volatile; wipe anything still live on shutdown.
        for session in app.state.session_store.all():
            await scheduler.close_session(session.route_id, "The chat service is shutting down")


def create_app(
    settings: Optional[ChatSettings] = None,
    database_dir: Optional[str] = None,
    run_scheduler: bool = True,
) -> FastAPI:
    """Build the chat service.

    Tests pass explicit settings, a temporary database directory and
    `run_scheduler=False` so that sessions are opened by hand.
    """
    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings or ChatSettings.from_env()
    app.state.database_dir = database_dir
    app.state.run_scheduler = run_scheduler

    @app.get("/", include_in_schema=False)
    async def service_info(request: Request):
        """Name the service and list the routes it currently carries chats for."""
        chat_settings: ChatSettings = request.app.state.settings
        return {
            "service": "bus-chat",
            "timezone": chat_settings.timezone,
            "active_routes": sorted(s.route_id for s in request.app.state.session_store.all()),
        }

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports DB and scheduler state.
        """
        db_initializer = getattr(request.app.state, "db_initializer", None)
        scheduler = getattr(request.app.state, "scheduler", None)
        return {
            "ok": True,
            "db_initialized": bool(db_initializer and db_initializer.initialized),
            "scheduler_running": bool(scheduler and scheduler.running),
        }

    # Register application routers
    app.include_router(chat_router)
    app.include_router(admin_router)
    app.include_router(session_router)
    app.include_router(realtime_router)

    return app


app = create_app()
