from collections import deque
from typing import Deque, Iterator, Tuple

class MessageLog:
    """Bounded list of recent narration, newest first.

    Adding to a full log drops the oldest message. Empty and whitespace-only
    messages are ignored.
    """
    def __init__(self, capacity: int = 5):
        self.capacity = capacity
        self._messages: Deque[str] = deque(maxlen=capacity)

    def add(self, message: str) -> None:
        if not message or not message.strip():
            return
        self._messages.appendleft(message)

    def snapshot(self) -> Tuple[str, ...]:
        return tuple(self._messages)

    def clear(self) -> None:
        self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())
