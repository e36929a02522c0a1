"""Unit tests for reward accrual."""
import pytest
from staking_ledger.core.config import RewardConfig
from staking_ledger.core.engine import compute_accrual
from staking_ledger.core.errors import StakingOverflowError
from staking_ledger.core.record import U64_MAX, StakingRecord

T0 = 1_700_000_000
YEAR = 365 * 24 * 60 * 60


def test_one_year_at_five_percent(engine, record):
    """Test a full year on 1000 staked accrues exactly 50."""
    newly = engine.accrue(record, T0 + YEAR)
    assert newly == 50
    assert record.reward_amount == 50
    assert record.staked_amount == 1000
    assert record.last_accrual_time == T0 + YEAR


def test_fractional_reward_is_dropped(engine, record):
    """Test reward below one unit is floored away, not carried forward."""
    # 1000 staked earns one unit roughly every 7.3 days
    engine.accrue(record, T0 + 86_400)
    assert record.reward_amount == 0
    assert record.last_accrual_time == T0 + 86_400

    engine.accrue(record, T0 + 2 * 86_400)
    assert record.reward_amount == 0


def test_accrual_split_matches_single_call():
    """Test splitting an interval loses at most one unit to truncation."""
    reward = RewardConfig()
    total = 3 * YEAR + 12_345
    for staked in (1, 999, 1000, 123_456_789, 10**15, U64_MAX // 2):
        single = compute_accrual(staked, total, reward)
        for first in (1, 86_400, YEAR // 3, YEAR, total - 1):
            split = compute_accrual(staked, first, reward) + compute_accrual(staked, total - first, reward)
            assert 0 <= single - split <= 1


def test_split_accrual_on_record(engine):
    """Test two accrue calls on a record against one call over the same time."""
    once = StakingRecord(owner="alice", staked_amount=777_777, last_accrual_time=T0)
    twice = once.model_copy()

    engine.accrue(once, T0 + 2 * YEAR)
    engine.accrue(twice, T0 + YEAR // 7)
    engine.accrue(twice, T0 + 2 * YEAR)

    assert 0 <= once.reward_amount - twice.reward_amount <= 1
    assert once.last_accrual_time == twice.last_accrual_time


def test_wide_intermediate_product(engine):
    """Test the largest stake over a decade accrues without overflow."""
    record = StakingRecord(owner="whale", staked_amount=U64_MAX, last_accrual_time=T0)
    engine.accrue(record, T0 + 10 * YEAR)
    assert record.reward_amount == (U64_MAX * 5 * 10 * YEAR) // (100 * YEAR)
    assert record.reward_amount <= U64_MAX


def test_clock_going_backwards_accrues_nothing(engine, record):
    """Test an earlier clock reading is treated as zero elapsed time."""
    engine.accrue(record, T0 - 3600)
    assert record.reward_amount == 0
    assert record.last_accrual_time == T0


def test_zero_stake_accrues_nothing(engine):
    record = StakingRecord(owner="alice", last_accrual_time=T0)
    engine.accrue(record, T0 + 5 * YEAR)
    assert record.reward_amount == 0
    assert record.last_accrual_time == T0 + 5 * YEAR


def test_reward_overflow_fails_closed(engine):
    """Test a reward that would leave the 64-bit range is rejected."""
    record = StakingRecord(
        owner="alice", staked_amount=10**12, reward_amount=U64_MAX - 1, last_accrual_time=T0
    )
    before = record.model_copy()
    with pytest.raises(StakingOverflowError):
        engine.accrue(record, T0 + YEAR)
    assert record == before


def test_pending_reward_does_not_mutate(engine, record):
    assert engine.pending_reward(record, T0 + YEAR) == 50
    assert engine.preview(record, T0 + YEAR) == 50
    assert record.reward_amount == 0
    assert record.last_accrual_time == T0


def test_custom_rate():
    """Test a configured rate is used in place of 5%."""
    reward = RewardConfig(annual_rate_numerator=12, annual_rate_denominator=100)
    assert compute_accrual(1000, YEAR, reward) == 120
    assert compute_accrual(1000, YEAR // 2, reward) == 60
