"""Test balance ledger functionality."""

import asyncio
import threading

import pytest

from chat_bridge.exceptions import AccountNotFoundError
from chat_bridge.settings import BridgeConfig
from chat_bridge.tracking.ledger import InMemoryBalanceLedger


def test_open_account_uses_starting_balance():
    """New accounts start with the configured balance."""
    ledger = InMemoryBalanceLedger(starting_balance=0.05)
    account = ledger.open_account("alice")
    assert account.balance == 0.05
    assert account.last_login == 0.0


def test_open_account_is_idempotent():
    ledger = InMemoryBalanceLedger()
    ledger.open_account("alice", balance=1.0)
    assert ledger.open_account("alice", balance=9.0).balance == 1.0


def test_negative_starting_balance_raises():
    with pytest.raises(ValueError):
        InMemoryBalanceLedger(starting_balance=-1.0)


def test_from_config_uses_configured_starting_balance():
    ledger = InMemoryBalanceLedger.from_config(BridgeConfig(starting_balance=2.5))
    assert ledger.open_account("alice").balance == 2.5


def test_from_config_default_starting_balance():
    ledger = InMemoryBalanceLedger.from_config(BridgeConfig())
    assert ledger.open_account("alice").balance == 0.05


async def test_apply_cost_deducts():
    ledger = InMemoryBalanceLedger()
    ledger.open_account("alice", balance=1.0)

    new_balance = await ledger.apply_cost("alice", 0.25)

    assert new_balance == 0.75
    assert await ledger.get_balance("alice") == 0.75


async def test_apply_cost_floors_at_zero():
    """0.0003 - 0.0005 leaves a zero balance, not a negative one."""
    ledger = InMemoryBalanceLedger()
    ledger.open_account("alice", balance=0.0003)

    assert await ledger.apply_cost("alice", 0.0005) == 0.0
    assert await ledger.apply_cost("alice", 0.0005) == 0.0
    assert await ledger.get_balance("alice") == 0.0


async def test_zero_cost_keeps_balance():
    ledger = InMemoryBalanceLedger()
    ledger.open_account("alice", balance=0.5)
    assert await ledger.apply_cost("alice", 0.0) == 0.5


async def test_negative_cost_rejected():
    ledger = InMemoryBalanceLedger()
    ledger.open_account("alice")
    with pytest.raises(ValueError):
        await ledger.apply_cost("alice", -0.1)


async def test_unknown_user_raises():
    ledger = InMemoryBalanceLedger()
    with pytest.raises(AccountNotFoundError):
        await ledger.get_balance("ghost")
    with pytest.raises(AccountNotFoundError):
        await ledger.apply_cost("ghost", 0.1)
    with pytest.raises(AccountNotFoundError):
        await ledger.touch_login("ghost")


async def test_touch_login_records_time():
    ledger = InMemoryBalanceLedger()
    ledger.open_account("alice")

    await ledger.touch_login("alice")

    assert ledger.get_account("alice").last_login > 0


async def test_users_are_isolated():
    ledger = InMemoryBalanceLedger()
    ledger.open_account("alice", balance=1.0)
    ledger.open_account("bob", balance=1.0)

    await ledger.apply_cost("alice", 0.4)

    assert await ledger.get_balance("bob") == 1.0


def test_concurrent_deductions_are_not_lost():
    """Many threads charging one user must all be applied."""
    ledger = InMemoryBalanceLedger()
    ledger.open_account("alice", balance=10.0)

    def worker():
        asyncio.run(ledger.apply_cost("alice", 0.01))

    threads = [threading.Thread(target=worker) for _ in range(100)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert ledger.get_account("alice").balance == pytest.approx(9.0)
