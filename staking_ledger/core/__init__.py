"""Staking ledger core: records, accrual engine and collaborators."""
from .config import LedgerConfig, RewardConfig, load_config
from .engine import ClaimOutcome, StakingEngine, check_invariants, compute_accrual
from .errors import (
    InsufficientFundsError,
    InsufficientStakedAmountError,
    InvalidAmountError,
    InvalidOwnerError,
    InvalidTimestampError,
    InvariantViolationError,
    RecordExistsError,
    RecordNotFoundError,
    StakingError,
    StakingOverflowError,
    StorageConflictError,
    UnauthorizedError,
)
from .funds import FundsTransfer, InMemoryFunds, JsonFileFunds, TransferJournal
from .ledger import OperationResult, StakingLedger, system_clock
from .record import RECORD_SIZE, U64_MAX, StakingRecord
from .store import JsonRecordStore, MemoryRecordStore, RecordStore

__all__ = [
    "LedgerConfig",
    "RewardConfig",
    "load_config",
    "ClaimOutcome",
    "StakingEngine",
    "check_invariants",
    "compute_accrual",
    "InsufficientFundsError",
    "InsufficientStakedAmountError",
    "InvalidAmountError",
    "InvalidOwnerError",
    "InvalidTimestampError",
    "InvariantViolationError",
    "RecordExistsError",
    "RecordNotFoundError",
    "StakingError",
    "StakingOverflowError",
    "StorageConflictError",
    "UnauthorizedError",
    "FundsTransfer",
    "InMemoryFunds",
    "JsonFileFunds",
    "TransferJournal",
    "OperationResult",
    "StakingLedger",
    "system_clock",
    "RECORD_SIZE",
    "U64_MAX",
    "StakingRecord",
    "JsonRecordStore",
    "MemoryRecordStore",
    "RecordStore",
]
