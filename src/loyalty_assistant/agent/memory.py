"""Per-conversation bounded message history."""

from __future__ import annotations

import threading
from collections import deque

from langchain_core.messages import BaseMessage


class ConversationMemory:
    """Keeps the ``max_messages`` most recent messages of each conversation.

    Each conversation id owns its own deque and lock, so concurrent requests
    for different ids never share mutable state. When a conversation exceeds
    the window the oldest messages are dropped first.
    """

    def __init__(self, max_messages: int = 20) -> None:
        if max_messages < 1:
            raise ValueError("max_messages must be positive")
        self.max_messages = max_messages
        self._conversations: dict[str, deque[BaseMessage]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def history(self, conversation_id: str) -> list[BaseMessage]:
        """Return a copy of the stored messages, oldest first."""
        with self._registry_lock:
            lock = self._locks.get(conversation_id)
        if lock is None:
            return []
        with lock:
            return list(self._conversations.get(conversation_id, ()))

    def append(self, conversation_id: str, *messages: BaseMessage) -> None:
        with self._lock_for(conversation_id):
            window = self._conversations.get(conversation_id)
            if window is None:
                window = deque(maxlen=self.max_messages)
                self._conversations[conversation_id] = window
            window.extend(messages)

    def clear(self, conversation_id: str) -> None:
        with self._registry_lock:
            lock = self._locks.get(conversation_id)
        if lock is None:
            return
        with lock, self._registry_lock:
            self._conversations.pop(conversation_id, None)
            self._locks.pop(conversation_id, None)

    def __len__(self) -> int:
        return len(self._conversations)

    def _lock_for(self, conversation_id: str) -> threading.Lock:
        # only writers create entries; readers of unknown ids leave no trace
        with self._registry_lock:
            lock = self._locks.get(conversation_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[conversation_id] = lock
            return lock
