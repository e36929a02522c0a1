"""Backing funds custody and transfers."""
import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple
from filelock import FileLock
from loguru import logger

from .errors import InsufficientFundsError, InvalidAmountError


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidAmountError(f"Transfer amount must be a non-negative integer, got {amount!r}")


class FundsTransfer(ABC):
    """Moves backing value between accounts."""

    @abstractmethod
    def transfer(self, source: str, target: str, amount: int) -> None:
        """Move ``amount`` from ``source`` to ``target``.

        Raises:
            InsufficientFundsError: If ``source`` cannot cover the amount
        """

    @abstractmethod
    def balance_of(self, account: str) -> int:
        """Get the balance held by ``account``."""


class InMemoryFunds(FundsTransfer):
    """Account balances kept in process memory."""

    def __init__(self, balances: Optional[Dict[str, int]] = None):
        self._balances: Dict[str, int] = dict(balances or {})
        self._lock = threading.Lock()

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold exclusive access to the balances."""
        with self._lock:
            yield

    def balance_of(self, account: str) -> int:
        with self._locked():
            return self._balances.get(account, 0)

    def credit(self, account: str, amount: int) -> int:
        """Add externally sourced value to an account.

        Returns:
            The new balance
        """
        _check_amount(amount)
        with self._locked():
            self._balances[account] = self._balances.get(account, 0) + amount
            self._persist()
            return self._balances[account]

    def transfer(self, source: str, target: str, amount: int) -> None:
        _check_amount(amount)
        with self._locked():
            available = self._balances.get(source, 0)
            if amount > available:
                raise InsufficientFundsError(source, amount, available)
            self._balances[source] = available - amount
            self._balances[target] = self._balances.get(target, 0) + amount
            self._persist()
        logger.debug(f"Transferred {amount} from {source} to {target}")

    def snapshot(self) -> Dict[str, int]:
        with self._locked():
            return dict(self._balances)

    def _persist(self) -> None:
        """Hook called with the lock held after every balance change."""


class JsonFileFunds(InMemoryFunds):
    """Account balances persisted to a JSON file.

    Every access takes an exclusive lock on ``<path>.lock`` and re-reads the
    file, so separate processes sharing the file never overwrite each
    other's changes.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file_lock = FileLock(f"{self.path}.lock")
        super().__init__()

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._lock, self._file_lock:
            self._balances = self._load()
            yield

    def _load(self) -> Dict[str, int]:
        if not self.path.exists():
            return {}
        with open(self.path) as f:
            data = json.load(f)
        return {str(account): int(balance) for account, balance in data.items()}

    def _persist(self) -> None:
        with tempfile.NamedTemporaryFile('w', dir=self.path.parent, suffix=".tmp",
                                         delete=False) as f:
            json.dump(self._balances, f, indent=2, sort_keys=True)
        os.replace(f.name, self.path)


class TransferJournal(FundsTransfer):
    """Records transfers made through it so they can be reverted.

    Used to undo the fund movements of an operation whose record update
    could not be committed.
    """

    def __init__(self, funds: FundsTransfer):
        self.funds = funds
        self.entries: List[Tuple[str, str, int]] = []

    def balance_of(self, account: str) -> int:
        return self.funds.balance_of(account)

    def transfer(self, source: str, target: str, amount: int) -> None:
        self.funds.transfer(source, target, amount)
        self.entries.append((source, target, amount))

    def revert(self) -> None:
        """Reverse every recorded transfer, newest first.

        An entry is dropped only once its reversal succeeded, so a failure
        leaves the unreverted transfers in ``entries``.
        """
        while self.entries:
            source, target, amount = self.entries[-1]
            logger.warning(f"Reverting transfer of {amount} from {source} to {target}")
            self.funds.transfer(target, source, amount)
            self.entries.pop()
