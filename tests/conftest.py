"""Test configuration and fixtures for the staking ledger."""
import pytest
from staking_ledger.core.config import LedgerConfig, RewardConfig
from staking_ledger.core.engine import StakingEngine
from staking_ledger.core.funds import InMemoryFunds
from staking_ledger.core.ledger import StakingLedger
from staking_ledger.core.record import StakingRecord
from staking_ledger.core.store import MemoryRecordStore

T0 = 1_700_000_000
YEAR = 365 * 24 * 60 * 60
CUSTODIAN = "custodian"


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def funds():
    """Funds with a well-backed custodian and a funded user."""
    return InMemoryFunds({CUSTODIAN: 10**12, "alice": 10_000})


@pytest.fixture
def engine(funds):
    return StakingEngine(funds, CUSTODIAN, RewardConfig())


@pytest.fixture
def record():
    """Alice's record with 1000 staked and nothing accrued."""
    return StakingRecord(owner="alice", staked_amount=1000, last_accrual_time=T0)


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def ledger(store, funds, clock, tmp_path):
    config = LedgerConfig(data_dir=tmp_path, custodian_id=CUSTODIAN)
    return StakingLedger(store, funds, config=config, clock=clock)


@pytest.fixture
def env_setup(monkeypatch, tmp_path):
    """Point the ledger at a temporary data directory."""
    monkeypatch.setenv("STAKING_LEDGER_DIR", str(tmp_path))
    monkeypatch.setenv("STAKING_LEDGER_LOG_LEVEL", "DEBUG")
    yield tmp_path
