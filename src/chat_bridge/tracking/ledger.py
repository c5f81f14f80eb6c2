"""Per-user balance ledger."""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict, Optional

from ..exceptions import AccountNotFoundError
from ..settings import BridgeConfig


@dataclass(frozen=True)
class Account:
    """Snapshot of one user's metered account."""

    user_id: str
    balance: float
    last_login: float = 0.0


class BalanceLedger(ABC):
    """Boundary contract for the store that owns user balances.

    apply_cost() must be a single atomic read-then-write per user: the
    orchestration core never locks, so concurrent exchanges for the same
    user rely on the ledger to avoid lost updates.
    """

    @abstractmethod
    async def get_balance(self, user_id: str) -> float:
        """Return the user's current balance.

        Raises:
            AccountNotFoundError: If the user is unknown
        """
        ...

    @abstractmethod
    async def apply_cost(self, user_id: str, cost: float) -> float:
        """Deduct a cost and return the new balance, floored at zero.

        Call exactly once per successful exchange, after the cost is known.

        Raises:
            AccountNotFoundError: If the user is unknown
            ValueError: If cost is negative
        """
        ...

    @abstractmethod
    async def touch_login(self, user_id: str) -> None:
        """Record that the user just logged in."""
        ...


class InMemoryBalanceLedger(BalanceLedger):
    """Thread-safe in-process ledger.

    All reads and writes go through a single lock, so apply_cost() is
    atomic even when exchanges for one user run concurrently from
    several threads or tasks.

    Attributes:
        _accounts: user_id -> Account
        _starting_balance: Balance given to accounts opened without one
        _lock: Threading lock for atomic operations
    """

    def __init__(self, starting_balance: float = 0.05) -> None:
        """Initialize InMemoryBalanceLedger.

        Args:
            starting_balance: Default balance for open_account() in USD

        Raises:
            ValueError: If starting_balance is negative
        """
        if starting_balance < 0:
            raise ValueError("Starting balance cannot be negative")

        self._starting_balance = float(starting_balance)
        self._accounts: Dict[str, Account] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: BridgeConfig) -> "InMemoryBalanceLedger":
        """Build a ledger granting config.starting_balance to new accounts."""
        return cls(starting_balance=config.starting_balance)

    def open_account(self, user_id: str, balance: Optional[float] = None) -> Account:
        """Create an account, or return the existing one unchanged."""
        if balance is not None and balance < 0:
            raise ValueError("Balance cannot be negative")

        with self._lock:
            if user_id not in self._accounts:
                amount = self._starting_balance if balance is None else float(balance)
                self._accounts[user_id] = Account(user_id=user_id, balance=amount)
            return self._accounts[user_id]

    def get_account(self, user_id: str) -> Account:
        with self._lock:
            return self._require(user_id)

    def _require(self, user_id: str) -> Account:
        # Caller must hold self._lock
        account = self._accounts.get(user_id)
        if account is None:
            raise AccountNotFoundError(f"Account '{user_id}' not found")
        return account

    async def get_balance(self, user_id: str) -> float:
        return self.get_account(user_id).balance

    async def apply_cost(self, user_id: str, cost: float) -> float:
        if cost < 0:
            raise ValueError("Cost cannot be negative")

        with self._lock:  # ATOMIC read-then-write
            account = self._require(user_id)
            new_balance = max(0.0, account.balance - cost)
            self._accounts[user_id] = replace(account, balance=new_balance)
            return new_balance

    async def touch_login(self, user_id: str) -> None:
        with self._lock:
            account = self._require(user_id)
            self._accounts[user_id] = replace(account, last_login=time.time())
