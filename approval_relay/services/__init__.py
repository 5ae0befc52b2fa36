from approval_relay.services.callback_service import extract_transaction_id, handle_callback_query
from approval_relay.services.correlation_store import CorrelationStore
from approval_relay.services.telegram_service import TelegramService
from approval_relay.services.update_poller import PollingError, UpdatePoller
