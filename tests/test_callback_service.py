import asyncio
import logging

import pytest

from approval_relay.schemas.telegram import TelegramCallbackQuery
from approval_relay.services.callback_service import extract_transaction_id, handle_callback_query


def make_callback(data, with_message=True):
    raw = {
        "id": "query_123",
        "from": {"id": 111222333, "is_bot": False, "first_name": "Operator"},
        "data": data,
    }
    if with_message:
        raw["message"] = {
            "message_id": 77,
            "date": 1702000000,
            "chat": {"id": -1001234567890, "type": "supergroup"},
            "text": "Approve payment?",
        }
    return TelegramCallbackQuery(**raw)


class TestExtractTransactionId:
    @pytest.mark.parametrize(
        "data, expected",
        [
            ("approve:tx-42", "tx-42"),
            ("reject:order:9f1c2e", "9f1c2e"),
            (":only-id", "only-id"),
        ],
    )
    def test_trailing_segment(self, data, expected):
        assert extract_transaction_id(data) == expected

    @pytest.mark.parametrize("data", [None, "", "approve", "approve:", "a:b:"])
    def test_no_transaction_id(self, data):
        assert extract_transaction_id(data) is None


class TestHandleCallbackQuery:
    def test_stores_payload_and_acknowledges(self, store, telegram):
        callback = make_callback("approve:tx-42")

        handled = asyncio.run(handle_callback_query(callback, store, telegram))

        assert handled is True
        assert store.take_if_present("tx-42") == "approve:tx-42"
        telegram.answer_callback_query.assert_awaited_once_with("query_123")
        telegram.edit_message_reply_markup.assert_awaited_once_with(
            chat_id=-1001234567890,
            message_id=77,
            reply_markup={"inline_keyboard": []},
        )

    def test_payload_without_id_is_ignored(self, store, telegram):
        callback = make_callback("approve")

        handled = asyncio.run(handle_callback_query(callback, store, telegram))

        assert handled is False
        assert len(store) == 0
        telegram.answer_callback_query.assert_not_awaited()
        telegram.edit_message_reply_markup.assert_not_awaited()

    def test_missing_data_is_ignored(self, store, telegram):
        callback = make_callback(None)

        assert asyncio.run(handle_callback_query(callback, store, telegram)) is False
        assert len(store) == 0

    def test_ack_failure_is_logged_not_raised(self, store, telegram, caplog):
        telegram.answer_callback_query.return_value = {"ok": False, "description": "query is too old"}
        callback = make_callback("approve:tx-42")

        with caplog.at_level(logging.WARNING, logger="approval_relay.callback_service"):
            handled = asyncio.run(handle_callback_query(callback, store, telegram))

        assert handled is True
        assert "tx-42" in store
        assert any("query is too old" in record.getMessage() for record in caplog.records)
        telegram.edit_message_reply_markup.assert_awaited_once()

    def test_keyboard_removal_failure_is_ignored(self, store, telegram):
        telegram.edit_message_reply_markup.return_value = {
            "ok": False,
            "description": "Bad Request: message is not modified",
        }
        callback = make_callback("reject:tx-7")

        assert asyncio.run(handle_callback_query(callback, store, telegram)) is True
        assert store.take_if_present("tx-7") == "reject:tx-7"

    def test_inline_callback_skips_keyboard_removal(self, store, telegram):
        callback = make_callback("approve:tx-9", with_message=False)

        assert asyncio.run(handle_callback_query(callback, store, telegram)) is True
        telegram.answer_callback_query.assert_awaited_once()
        telegram.edit_message_reply_markup.assert_not_awaited()

    def test_repeated_press_overwrites(self, store, telegram):
        asyncio.run(handle_callback_query(make_callback("approve:tx-1"), store, telegram))
        asyncio.run(handle_callback_query(make_callback("reject:tx-1"), store, telegram))

        assert store.take_if_present("tx-1") == "reject:tx-1"
