from typing import Iterable, Iterator, List, Optional
from langchain_core.messages import BaseMessage


class ConversationStore:
    """Append-only message history owned by one agent instance

    Messages are only ever appended; nothing removes or reorders them. There
    is no locking: callers must not run two turns of the same agent at once.
    """

    def __init__(self, messages: Optional[Iterable[BaseMessage]] = None):
        self._messages: List[BaseMessage] = list(messages or [])

    def append(self, message: BaseMessage) -> None:
        self._messages.append(message)

    def extend(self, messages: Iterable[BaseMessage]) -> None:
        self._messages.extend(messages)

    def snapshot(self) -> List[BaseMessage]:
        """Copy of the history, safe to hand to a model call"""
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[BaseMessage]:
        return iter(self.snapshot())
