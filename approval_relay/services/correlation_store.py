from typing import Optional


class CorrelationStore:
    """In-memory map of transaction id -> last received callback data.

    Entries are consumed by the first successful ``take_if_present``. Ids that
    are never polled stay until the process restarts.

    Not thread-safe. Every operation runs as one step on the event loop, so
    the poller task and the request handlers never interleave inside it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def put(self, transaction_id: str, callback_data: str) -> None:
        self._entries[transaction_id] = callback_data

    def take_if_present(self, transaction_id: str) -> Optional[str]:
        return self._entries.pop(transaction_id, None)

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
