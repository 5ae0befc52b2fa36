from typing import Optional

import httpx

from approval_relay.logging_config import get_logger

logger = get_logger("telegram_service")

DEFAULT_API_URL = "https://api.telegram.org"
REQUEST_TIMEOUT_SECONDS = 30.0


class TelegramService:
    """Async client for the Telegram Bot API."""

    def __init__(
        self,
        bot_token: str,
        api_url: str = DEFAULT_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.bot_token = bot_token
        self.base_url = f"{api_url.rstrip('/')}/bot{bot_token}"
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS, transport=self._transport)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _make_request(self, method: str, data: Optional[dict] = None, timeout: Optional[float] = None) -> dict:
        """Make request to Telegram API.

        Returns the API envelope as-is. Transport and decoding failures are
        reported the same way the API reports its own errors, as
        ``{"ok": False, "description": ...}``.
        """
        url = f"{self.base_url}/{method}"
        try:
            client = self._get_client()
            if timeout is not None:
                response = await client.post(url, json=data or {}, timeout=timeout)
            else:
                response = await client.post(url, json=data or {})
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Telegram API error in {method}: {e}")
            return {"ok": False, "description": str(e) or e.__class__.__name__}

        if not isinstance(payload, dict):
            logger.error(f"Unexpected Telegram response to {method}: {payload!r}")
            return {"ok": False, "description": f"Unexpected response from Telegram (HTTP {response.status_code})"}
        return payload

    async def send_message(
        self,
        chat_id: str,
        text: str,
        reply_markup: Optional[dict] = None,
        parse_mode: Optional[str] = "HTML",
    ) -> dict:
        """Send message to Telegram chat."""
        data = {
            "chat_id": chat_id,
            "text": text,
        }
        if parse_mode:
            data["parse_mode"] = parse_mode
        if reply_markup:
            data["reply_markup"] = reply_markup

        return await self._make_request("sendMessage", data)

    async def answer_callback_query(self, callback_query_id: str, text: Optional[str] = None) -> dict:
        """Stop the loading indicator on the pressed button."""
        data = {"callback_query_id": callback_query_id}
        if text:
            data["text"] = text
        return await self._make_request("answerCallbackQuery", data)

    async def edit_message_reply_markup(
        self,
        chat_id: int | str,
        message_id: int,
        reply_markup: Optional[dict] = None,
    ) -> dict:
        """Replace the inline keyboard of a message; an empty keyboard removes the buttons."""
        data = {
            "chat_id": chat_id,
            "message_id": message_id,
            "reply_markup": reply_markup or {"inline_keyboard": []},
        }
        return await self._make_request("editMessageReplyMarkup", data)

    async def get_updates(
        self,
        offset: Optional[int] = None,
        timeout: int = 30,
        allowed_updates: Optional[list[str]] = None,
    ) -> dict:
        """Long-poll for pending updates."""
        data: dict = {"timeout": timeout}
        if offset is not None:
            data["offset"] = offset
        if allowed_updates is not None:
            data["allowed_updates"] = allowed_updates

        # The HTTP timeout has to outlast the server-side long poll
        return await self._make_request("getUpdates", data, timeout=timeout + REQUEST_TIMEOUT_SECONDS)
