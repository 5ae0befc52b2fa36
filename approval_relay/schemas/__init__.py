from approval_relay.schemas.relay import CheckResponse, HealthResponse, SendMessageRequest, SendMessageResponse
from approval_relay.schemas.telegram import TelegramCallbackQuery, TelegramUpdate

__all__ = [
    "SendMessageRequest",
    "SendMessageResponse",
    "CheckResponse",
    "HealthResponse",
    "TelegramCallbackQuery",
    "TelegramUpdate",
]
