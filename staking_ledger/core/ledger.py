"""Staking operations against stored records."""
import time
from typing import Callable, Optional
from loguru import logger
from pydantic import BaseModel, ValidationError

from .config import LedgerConfig
from .engine import ClaimOutcome, StakingEngine
from .errors import InvalidOwnerError
from .funds import FundsTransfer, JsonFileFunds, TransferJournal
from .record import StakingRecord
from .store import JsonRecordStore, RecordStore

Clock = Callable[[], int]


def system_clock() -> int:
    """Current unix time in whole seconds."""
    return int(time.time())


class OperationResult(BaseModel):
    """Outcome of a committed operation."""
    action: str
    record: StakingRecord
    version: int
    payout: int = 0
    forfeited: int = 0


class StakingLedger:
    """Loads a record, runs one operation on it and commits the result.

    Nothing is committed when an operation fails, and any funds it already
    moved are moved back. Errors are raised unchanged; retrying after a
    ``StorageConflictError`` is left to the caller.
    """

    def __init__(self, store: RecordStore, funds: FundsTransfer,
                 config: Optional[LedgerConfig] = None, clock: Optional[Clock] = None):
        self.store = store
        self.funds = funds
        self.config = config or LedgerConfig()
        self.clock = clock or system_clock

    @classmethod
    def from_config(cls, config: LedgerConfig, clock: Optional[Clock] = None) -> "StakingLedger":
        """Create a ledger backed by files under ``config.data_dir``."""
        return cls(
            store=JsonRecordStore(config.records_dir),
            funds=JsonFileFunds(config.balances_file),
            config=config,
            clock=clock,
        )

    def _engine(self, funds: FundsTransfer) -> StakingEngine:
        return StakingEngine(funds, self.config.custodian_id, self.config.reward)

    def open_account(self, caller: str) -> StakingRecord:
        """Allocate an empty record owned by ``caller``."""
        try:
            record = StakingRecord.new(caller, self.clock())
        except ValidationError as e:
            raise InvalidOwnerError(caller, e.errors()[0]["msg"]) from e
        self.store.create(record)
        logger.info(f"Opened staking record for {caller}")
        return record

    def get_record(self, owner: str) -> StakingRecord:
        record, _ = self.store.load(owner)
        return record

    def preview_reward(self, owner: str) -> int:
        """Reward the owner could claim right now, before any penalty."""
        record, _ = self.store.load(owner)
        return self._engine(self.funds).preview(record, self.clock())

    def stake(self, caller: str, amount: int, owner: Optional[str] = None) -> OperationResult:
        return self._run(
            "stake", owner or caller,
            lambda engine, record, now: engine.stake(record, caller, amount, now),
        )

    def unstake(self, caller: str, amount: int, owner: Optional[str] = None) -> OperationResult:
        return self._run(
            "unstake", owner or caller,
            lambda engine, record, now: engine.unstake(record, caller, amount, now),
        )

    def claim_reward(self, caller: str, apply_penalty: bool = False,
                     owner: Optional[str] = None) -> OperationResult:
        return self._run(
            "claim_reward", owner or caller,
            lambda engine, record, now: engine.claim_reward(record, caller, apply_penalty, now),
        )

    def compound(self, caller: str, owner: Optional[str] = None) -> OperationResult:
        return self._run(
            "compound", owner or caller,
            lambda engine, record, now: engine.compound(record, caller, now),
        )

    def _run(self, action: str, owner: str,
             operation: Callable[[StakingEngine, StakingRecord, int], Optional[ClaimOutcome]]
             ) -> OperationResult:
        record, version = self.store.load(owner)
        journal = TransferJournal(self.funds)
        try:
            outcome = operation(self._engine(journal), record, self.clock())
            new_version = self.store.commit(record, version)
        except Exception as e:
            logger.warning(f"{action} for {owner} failed: {e}")
            try:
                journal.revert()
            except Exception as revert_error:
                logger.error(
                    f"Could not revert transfers of {action} for {owner}, "
                    f"still outstanding: {journal.entries}"
                )
                raise e from revert_error
            raise

        if outcome is None:
            return OperationResult(action=action, record=record, version=new_version)
        return OperationResult(
            action=action, record=record, version=new_version,
            payout=outcome.payout, forfeited=outcome.forfeited,
        )
