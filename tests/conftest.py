from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from approval_relay.config import Settings
from approval_relay.main import create_app
from approval_relay.services.correlation_store import CorrelationStore
from approval_relay.services.telegram_service import TelegramService

TEST_CHAT_ID = "-1001234567890"
TEST_SECRET_PATH = "test-send-path"


@pytest.fixture
def settings():
    return Settings(
        TELEGRAM_TOKEN="123456:test-token",
        TELEGRAM_CHAT_ID=TEST_CHAT_ID,
        SECRET_PATH=TEST_SECRET_PATH,
        TELEGRAM_POLLING_ENABLED=False,
    )


@pytest.fixture
def send_url(settings):
    return settings.send_path


@pytest.fixture
def store():
    return CorrelationStore()


@pytest.fixture
def telegram():
    """Telegram client double; every Bot API call succeeds unless overridden."""
    service = Mock(spec=TelegramService)
    service.send_message = AsyncMock(return_value={"ok": True, "result": {"message_id": 1}})
    service.answer_callback_query = AsyncMock(return_value={"ok": True, "result": True})
    service.edit_message_reply_markup = AsyncMock(return_value={"ok": True, "result": True})
    service.get_updates = AsyncMock(return_value={"ok": True, "result": []})
    service.close = AsyncMock()
    return service


@pytest.fixture
def app(settings, telegram, store):
    return create_app(settings, telegram=telegram, store=store)


@pytest.fixture
def client(app):
    return TestClient(app)
