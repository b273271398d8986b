"""
Funds custody: the vault's native-currency balance and outbound transfers
"""

import logging
from typing import Callable, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class Custody(Protocol):
    def balance(self) -> int:
        ...

    def transfer(self, to: str, amount: int) -> bool:
        ...


class InMemoryCustody:
    """Single-asset custody held in process memory"""

    def __init__(self, initial_balance: int = 0, on_transfer: Optional[Callable[[str, int], None]] = None):
        if initial_balance < 0:
            raise ValueError("Initial balance cannot be negative")
        self._balance = initial_balance
        self._accounts: Dict[str, int] = {}
        self._transfers: List[dict] = []
        # Called after funds leave the vault, the way a beneficiary contract's
        # receive hook would run. It may call back into the vault.
        self.on_transfer = on_transfer

    def balance(self) -> int:
        return self._balance

    def deposit(self, amount: int) -> int:
        """Credit the vault. Returns the new balance."""
        if amount <= 0:
            raise ValueError("Deposit must be positive")
        self._balance += amount
        logger.info("Deposited %d, vault balance now %d", amount, self._balance)
        return self._balance

    def transfer(self, to: str, amount: int) -> bool:
        """Move amount to account `to`. All-or-nothing; False when underfunded or the receiver rejects it."""
        if amount <= 0 or amount > self._balance:
            return False

        self._balance -= amount
        self._accounts[to] = self._accounts.get(to, 0) + amount
        self._transfers.append({'to': to, 'amount': amount})

        if self.on_transfer is not None:
            try:
                self.on_transfer(to, amount)
            except Exception:
                # A failing receiver bounces the payment back
                logger.warning("Receiver %s rejected transfer of %d", to, amount, exc_info=True)
                self._balance += amount
                self._accounts[to] -= amount
                self._transfers.pop()
                return False
        return True

    def balance_of(self, account: str) -> int:
        """Funds received by an outside account"""
        return self._accounts.get(account, 0)

    def get_transfer_history(self) -> List[dict]:
        return self._transfers.copy()
