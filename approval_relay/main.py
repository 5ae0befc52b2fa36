import asyncio
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from approval_relay import __version__
from approval_relay.config import Settings, get_settings
from approval_relay.logging_config import get_logger, setup_logging
from approval_relay.routers.relay import build_router
from approval_relay.services.correlation_store import CorrelationStore
from approval_relay.services.telegram_service import TelegramService
from approval_relay.services.update_poller import UpdatePoller

logger = get_logger("main")


def _is_poller_enabled(settings: Settings) -> bool:
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return False
    return settings.telegram_polling_enabled


async def _stop_update_poller(app: FastAPI) -> None:
    task: Optional[asyncio.Task] = app.state.poller_task
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    app.state.poller_task = None


def create_app(
    settings: Optional[Settings] = None,
    telegram: Optional[TelegramService] = None,
    store: Optional[CorrelationStore] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if _is_poller_enabled(settings):
            poller = UpdatePoller(
                app.state.telegram,
                app.state.store,
                timeout=settings.telegram_poll_timeout,
                retry_seconds=settings.telegram_poll_retry_seconds,
            )
            app.state.poller_task = asyncio.create_task(poller.run())
        try:
            yield
        finally:
            await _stop_update_poller(app)
            await app.state.telegram.close()

    app = FastAPI(
        title="Approval Relay",
        description="Relays approval requests to a Telegram operator and returns their answer",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.state.settings = settings
    app.state.store = store if store is not None else CorrelationStore()
    app.state.telegram = telegram or TelegramService(settings.telegram_token, api_url=settings.telegram_api_url)
    app.state.poller_task = None

    app.include_router(build_router(settings.send_path))

    return app


def main() -> None:
    try:
        settings = get_settings()
    except RuntimeError as e:
        setup_logging()
        logger.error(str(e))
        sys.exit(1)

    setup_logging(settings.log_level, secrets=[settings.telegram_token])
    app = create_app(settings)

    logger.info(f"Server listening on port {settings.port}")
    logger.info(f"Send endpoint: {settings.send_path}")

    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
