import asyncio
from typing import Optional

from pydantic import ValidationError

from approval_relay.logging_config import get_logger
from approval_relay.schemas.telegram import TelegramUpdate
from approval_relay.services.callback_service import handle_callback_query
from approval_relay.services.correlation_store import CorrelationStore
from approval_relay.services.telegram_service import TelegramService

logger = get_logger("update_poller")

ALLOWED_UPDATES = ["callback_query"]


class PollingError(Exception):
    pass


class UpdatePoller:
    """Pull button presses from Telegram with getUpdates long polling."""

    def __init__(
        self,
        telegram: TelegramService,
        store: CorrelationStore,
        timeout: int = 30,
        retry_seconds: float = 3.0,
    ):
        self.telegram = telegram
        self.store = store
        self.timeout = timeout
        self.retry_seconds = retry_seconds
        self.offset: Optional[int] = None

    async def poll_once(self) -> int:
        """Fetch one batch of updates and dispatch callback queries.

        Returns the number of updates received. Raises PollingError when
        Telegram rejects the request.
        """
        response = await self.telegram.get_updates(
            offset=self.offset,
            timeout=self.timeout,
            allowed_updates=ALLOWED_UPDATES,
        )
        if not response.get("ok"):
            raise PollingError(response.get("description") or "getUpdates failed")

        updates = response.get("result") or []
        for raw in updates:
            update_id = raw.get("update_id")
            if isinstance(update_id, int):
                # Confirm the update on the next request even if handling fails
                self.offset = max(self.offset or 0, update_id + 1)
            await self._dispatch(raw)

        return len(updates)

    async def _dispatch(self, raw: dict) -> None:
        try:
            update = TelegramUpdate(**raw)
        except ValidationError as e:
            logger.warning(f"Skipping malformed update: {e}", extra={"context": {"update": raw}})
            return

        if update.callback_query is None:
            return

        try:
            await handle_callback_query(update.callback_query, self.store, self.telegram)
        except Exception as e:
            logger.error(
                f"Error processing callback_query: {e}",
                extra={"context": {"update_id": update.update_id}},
                exc_info=True,
            )

    async def run(self) -> None:
        logger.info("Polling active, waiting for callbacks")
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("polling_error", extra={"context": {"error": str(e)}})
                await asyncio.sleep(self.retry_seconds)
