"""Chat sessions and the exchange boundary around the orchestrator."""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Set

from .conversation import BinaryPart, CallResult, ConversationTurn, build_user_parts
from .exceptions import BalanceExhaustedError
from .orchestrator import ResponseOrchestrator
from .tracking.ledger import BalanceLedger
from .utils.tasks import fire_and_forget

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"
TITLE_LENGTH = 30


@dataclass
class ChatSession:
    """One conversation with a single selected model.

    Messages only ever grow by whole exchanges: the user turn and the
    model reply are appended together once the reply and its cost are
    final.
    """

    model_id: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    title: str = DEFAULT_TITLE
    messages: List[ConversationTurn] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    spent: float = 0.0

    def record_exchange(self, user_turn: ConversationTurn, reply: ConversationTurn, cost: float) -> None:
        if not self.messages:
            first_text = user_turn.first_text
            if first_text:
                self.title = first_text[:TITLE_LENGTH] + ("..." if len(first_text) > TITLE_LENGTH else "")
        self.messages.append(user_turn)
        self.messages.append(reply)
        self.spent += cost


class ChatStore:
    """A user's chats, newest first, with one optionally active."""

    def __init__(self, default_model: str) -> None:
        self._default_model = default_model
        self._chats: List[ChatSession] = []
        self._active_id: Optional[str] = None

    @property
    def chats(self) -> List[ChatSession]:
        return list(self._chats)

    @property
    def active_chat(self) -> Optional[ChatSession]:
        return self.get(self._active_id) if self._active_id else None

    def get(self, chat_id: str) -> Optional[ChatSession]:
        for chat in self._chats:
            if chat.id == chat_id:
                return chat
        return None

    def create_chat(self, model_id: Optional[str] = None) -> ChatSession:
        chat = ChatSession(model_id=model_id or self._default_model)
        self._chats.insert(0, chat)
        self._active_id = chat.id
        return chat

    def delete_chat(self, chat_id: str) -> None:
        self._chats = [c for c in self._chats if c.id != chat_id]
        if self._active_id == chat_id:
            self._active_id = self._chats[0].id if self._chats else None

    def set_active(self, chat_id: str) -> None:
        if self.get(chat_id) is None:
            raise KeyError(f"Chat '{chat_id}' not found")
        self._active_id = chat_id

    def update_chat_model(self, chat_id: str, model_id: str) -> None:
        chat = self.get(chat_id)
        if chat is None:
            raise KeyError(f"Chat '{chat_id}' not found")
        chat.model_id = model_id


class ChatService:
    """Runs exchanges for users and keeps balances and history consistent.

    On success the ledger is charged first, then both turns are appended
    to the chat. On any error nothing is appended and the balance is left
    as it was.

    Example:
        >>> ledger = InMemoryBalanceLedger()
        >>> ledger.open_account("alice")
        >>> service = ChatService(orchestrator, ledger)
        >>> chat = ChatStore(orchestrator.registry.default_model_id).create_chat()
        >>> result = await service.send("alice", chat, "Hello!", credential="sk-or-...")
    """

    def __init__(self, orchestrator: ResponseOrchestrator, ledger: BalanceLedger) -> None:
        self._orchestrator = orchestrator
        self._ledger = ledger
        self._background: Set["asyncio.Task[Any]"] = set()

    async def login(self, user_id: str) -> float:
        """Return the user's balance and record the login in the background."""
        balance = await self._ledger.get_balance(user_id)
        task = fire_and_forget(self._ledger.touch_login(user_id), name=f"touch-login:{user_id}")
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return balance

    async def send(
        self,
        user_id: str,
        chat: ChatSession,
        text: str,
        attachments: Iterable[BinaryPart] = (),
        credential: Optional[str] = None,
    ) -> Optional[CallResult]:
        """Run one exchange in a chat.

        Returns:
            The CallResult, or None when there was nothing to send

        Raises:
            BalanceExhaustedError: If the user's balance is zero
            ConfigError, ProviderError: Propagated from the orchestrator
        """
        balance = await self._ledger.get_balance(user_id)
        if balance <= 0:
            raise BalanceExhaustedError(
                "Balance exhausted. Please refill.", user_id=user_id, balance=balance
            )

        parts = build_user_parts(text, attachments)
        if not parts:
            return None

        user_turn = ConversationTurn.user(parts)
        result = await self._orchestrator.respond(
            chat.model_id, list(chat.messages), parts, credential
        )

        new_balance = await self._ledger.apply_cost(user_id, result.cost)
        chat.record_exchange(user_turn, ConversationTurn.model(result.text), result.cost)

        logger.info(
            "Exchange in chat %s with %s cost $%.6f, balance now $%.6f",
            chat.id, chat.model_id, result.cost, new_balance,
        )
        return result
