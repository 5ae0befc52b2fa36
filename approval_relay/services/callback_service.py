import re
from typing import Optional

from approval_relay.logging_config import get_logger
from approval_relay.schemas.telegram import TelegramCallbackQuery
from approval_relay.services.correlation_store import CorrelationStore
from approval_relay.services.telegram_service import TelegramService

logger = get_logger("callback_service")

# callback_data looks like "<action>:...:<transaction_id>"
TRANSACTION_ID_PATTERN = re.compile(r":([^:]+)$")


def extract_transaction_id(callback_data: Optional[str]) -> Optional[str]:
    """Return the trailing colon-delimited segment of callback_data, if any."""
    if not callback_data:
        return None
    match = TRANSACTION_ID_PATTERN.search(callback_data)
    return match.group(1) if match else None


async def handle_callback_query(
    callback: TelegramCallbackQuery,
    store: CorrelationStore,
    telegram: TelegramService,
) -> bool:
    """Record an operator's button press for the waiting client.

    Returns False when the payload carries no transaction id; such presses are
    dropped without acknowledging them.
    """
    transaction_id = extract_transaction_id(callback.data)
    if transaction_id is None:
        return False

    store.put(transaction_id, callback.data)
    logger.info(
        f"Callback received for {transaction_id}",
        extra={
            "context": {
                "transaction_id": transaction_id,
                "callback_data": callback.data,
                "from_user_id": callback.from_user.id,
            }
        },
    )

    ack = await telegram.answer_callback_query(callback.id)
    if not ack.get("ok"):
        logger.warning(
            f"Failed to answer callback query {callback.id}: {ack.get('description')}",
            extra={"context": {"transaction_id": transaction_id}},
        )

    if callback.message is not None:
        # Fails harmlessly when the buttons are already gone
        cleared = await telegram.edit_message_reply_markup(
            chat_id=callback.message.chat.id,
            message_id=callback.message.message_id,
            reply_markup={"inline_keyboard": []},
        )
        if not cleared.get("ok"):
            logger.debug(f"Keyboard not removed: {cleared.get('description')}")

    return True
