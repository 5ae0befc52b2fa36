import json
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from approval_relay.config import Settings
from approval_relay.logging_config import get_logger
from approval_relay.schemas.relay import CheckResponse, HealthResponse, SendMessageRequest, SendMessageResponse
from approval_relay.services.correlation_store import CorrelationStore
from approval_relay.services.telegram_service import TelegramService

logger = get_logger("relay")


def get_store(request: Request) -> CorrelationStore:
    return request.app.state.store


def get_telegram(request: Request) -> TelegramService:
    return request.app.state.telegram


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


def parse_reply_markup(raw: str | dict | None) -> dict | None:
    """Decode reply_markup sent either as a JSON string or as an object."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, dict):
        return raw
    value = json.loads(raw)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError("reply_markup must be a JSON object")
    return value


async def send_message(
    payload: SendMessageRequest,
    telegram: TelegramService = Depends(get_telegram),
    settings: Settings = Depends(get_app_settings),
):
    """Send the approval message, with its buttons, to the operator chat."""
    if not payload.text:
        return _error(400, "Message text is required")

    try:
        reply_markup = parse_reply_markup(payload.reply_markup)
    except ValueError as e:
        return _error(400, f"Invalid reply_markup: {e}")

    result = await telegram.send_message(
        chat_id=settings.telegram_chat_id,
        text=payload.text,
        reply_markup=reply_markup,
        parse_mode=payload.parse_mode or "HTML",
    )

    if not result.get("ok"):
        description = result.get("description") or "Telegram request failed"
        logger.error(f"Error sending message: {description}")
        return _error(500, description)

    return SendMessageResponse(ok=True, result=result.get("result"))


async def check_transaction(transaction_id: str, store: CorrelationStore = Depends(get_store)):
    """Hand the operator's answer to the client exactly once."""
    callback_data = store.take_if_present(transaction_id)
    if callback_data is None:
        return CheckResponse(ok=False)
    return CheckResponse(ok=True, callback_data=callback_data)


async def health():
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc).isoformat())


def build_router(send_path: str) -> APIRouter:
    """Routes of the relay; the send endpoint lives at the configured secret path."""
    router = APIRouter()
    router.add_api_route(
        send_path,
        send_message,
        methods=["POST"],
        response_model=SendMessageResponse,
        response_model_exclude_none=True,
    )
    router.add_api_route(
        "/check/{transaction_id}",
        check_transaction,
        methods=["GET"],
        response_model=CheckResponse,
        response_model_exclude_none=True,
    )
    router.add_api_route("/health", health, methods=["GET"], response_model=HealthResponse)
    return router
