"""Reward accrual and the staking operations.

Every operation checks the caller against the record owner before touching
anything, then brings the reward up to date at the pre-operation stake level,
and only then changes balances. All arithmetic is on Python integers, so the
intermediate product of the accrual formula cannot overflow; the stored
fields are bounded to 64 bits and any step that would leave that range fails
with ``StakingOverflowError`` instead of wrapping.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
from loguru import logger

from .config import RewardConfig
from .errors import (
    InsufficientStakedAmountError,
    InvalidAmountError,
    InvalidTimestampError,
    InvariantViolationError,
    StakingOverflowError,
    UnauthorizedError,
)
from .funds import FundsTransfer
from .record import I64_MAX, I64_MIN, U64_MAX, StakingRecord


@dataclass(frozen=True)
class ClaimOutcome:
    """Value paid out by a claim and the penalty kept by the custodian."""
    payout: int
    forfeited: int


def compute_accrual(staked_amount: int, elapsed: int, reward: RewardConfig) -> int:
    """Reward earned by ``staked_amount`` over ``elapsed`` seconds, floored."""
    if elapsed <= 0 or staked_amount == 0:
        return 0
    return (staked_amount * reward.annual_rate_numerator * elapsed) // (
        reward.annual_rate_denominator * reward.seconds_per_year
    )


def penalized_payout(reward_amount: int, reward: RewardConfig) -> int:
    return reward_amount * reward.penalty_payout_numerator // reward.penalty_payout_denominator


_INVARIANTS: List[Tuple[str, Callable[[StakingRecord], bool]]] = [
    ("staked_amount_in_range", lambda r: 0 <= r.staked_amount <= U64_MAX),
    ("reward_amount_in_range", lambda r: 0 <= r.reward_amount <= U64_MAX),
    ("compound_streak_in_range", lambda r: 0 <= r.compound_streak <= U64_MAX),
    ("last_accrual_time_in_range", lambda r: I64_MIN <= r.last_accrual_time <= I64_MAX),
]


def check_invariants(record: StakingRecord) -> List[str]:
    """Return the names of violated invariants (empty when all hold)."""
    return [name for name, holds in _INVARIANTS if not holds(record)]


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(f"Amount must be an integer, got {amount!r}")
    if not 0 <= amount <= U64_MAX:
        raise InvalidAmountError(f"Amount {amount} is outside [0, {U64_MAX}]")


def _check_time(now: int) -> None:
    if isinstance(now, bool) or not isinstance(now, int):
        raise InvalidTimestampError(f"Timestamp must be an integer, got {now!r}")
    if not I64_MIN <= now <= I64_MAX:
        raise StakingOverflowError(f"Timestamp {now} is outside the 64-bit range")


class StakingEngine:
    """Applies staking operations to a single record."""

    def __init__(self, funds: FundsTransfer, custodian: str,
                 reward: Optional[RewardConfig] = None):
        """Initialize the engine.

        Args:
            funds: Collaborator that moves backing value
            custodian: Account holding staked and reward backing value
            reward: Reward rate and claim penalty
        """
        self.funds = funds
        self.custodian = custodian
        self.reward = reward or RewardConfig()

    def pending_reward(self, record: StakingRecord, now: int) -> int:
        """Reward earned since the last accrual, without mutating the record.

        A clock reading earlier than the stored timestamp counts as zero
        elapsed time.
        """
        _check_time(now)
        return compute_accrual(record.staked_amount, now - record.last_accrual_time, self.reward)

    def preview(self, record: StakingRecord, now: int) -> int:
        """Reward balance a claim at ``now`` would see before any penalty."""
        return record.reward_amount + self.pending_reward(record, now)

    def accrue(self, record: StakingRecord, now: int) -> int:
        """Fold reward earned up to ``now`` into the record.

        Returns:
            The newly accrued amount
        """
        newly_accrued = self.pending_reward(record, now)
        new_reward = record.reward_amount + newly_accrued
        if new_reward > U64_MAX:
            raise StakingOverflowError(
                f"Reward for {record.owner} would overflow: {record.reward_amount} + {newly_accrued}"
            )
        record.reward_amount = new_reward
        record.last_accrual_time = max(now, record.last_accrual_time)
        if newly_accrued:
            logger.debug(f"Accrued {newly_accrued} reward for {record.owner}")
        return newly_accrued

    def stake(self, record: StakingRecord, caller: str, amount: int, now: int) -> None:
        """Move ``amount`` from the caller into the stake."""
        self._authorize(record, caller)
        _check_amount(amount)
        if record.reward_amount + self.pending_reward(record, now) > U64_MAX:
            raise StakingOverflowError(f"Reward for {record.owner} would overflow")
        if record.staked_amount + amount > U64_MAX:
            raise StakingOverflowError(
                f"Stake for {record.owner} would overflow: {record.staked_amount} + {amount}"
            )

        # Nothing on the record changes until the deposit has cleared.
        self.funds.transfer(caller, self.custodian, amount)
        self.accrue(record, now)
        record.staked_amount += amount
        self._ensure_invariants(record)
        logger.info(f"{caller} staked {amount}, total staked {record.staked_amount}")

    def unstake(self, record: StakingRecord, caller: str, amount: int, now: int) -> None:
        """Return ``amount`` of the stake to the caller.

        Accrual done here is kept on the record even if the amount is rejected.
        """
        self._authorize(record, caller)
        _check_amount(amount)
        self.accrue(record, now)
        if amount > record.staked_amount:
            logger.warning(
                f"{caller} tried to unstake {amount} with only {record.staked_amount} staked"
            )
            raise InsufficientStakedAmountError(amount, record.staked_amount)

        self.funds.transfer(self.custodian, caller, amount)
        record.staked_amount -= amount
        self._ensure_invariants(record)
        logger.info(f"{caller} unstaked {amount}, total staked {record.staked_amount}")

    def claim_reward(self, record: StakingRecord, caller: str, apply_penalty: bool,
                     now: int) -> ClaimOutcome:
        """Pay out the accrued reward and reset the compound streak.

        With ``apply_penalty`` only the configured fraction (9/10 by default,
        floored) is paid. The reward balance is zeroed either way and the
        forfeited part stays with the custodian.
        """
        self._authorize(record, caller)
        self.accrue(record, now)
        reward_amount = record.reward_amount
        payout = penalized_payout(reward_amount, self.reward) if apply_penalty else reward_amount

        self.funds.transfer(self.custodian, caller, payout)
        record.reward_amount = 0
        record.compound_streak = 0
        self._ensure_invariants(record)

        outcome = ClaimOutcome(payout=payout, forfeited=reward_amount - payout)
        logger.info(f"{caller} claimed {outcome.payout} reward (forfeited {outcome.forfeited})")
        return outcome

    def compound(self, record: StakingRecord, caller: str, now: int) -> None:
        """Move the accrued reward into the stake. No funds move."""
        self._authorize(record, caller)
        self.accrue(record, now)
        new_staked = record.staked_amount + record.reward_amount
        if new_staked > U64_MAX:
            raise StakingOverflowError(f"Compounding would overflow the stake of {record.owner}")
        if record.compound_streak >= U64_MAX:
            raise StakingOverflowError(f"Compound streak of {record.owner} would overflow")

        compounded = record.reward_amount
        record.staked_amount = new_staked
        record.reward_amount = 0
        record.compound_streak += 1
        self._ensure_invariants(record)
        logger.info(
            f"{caller} compounded {compounded}, total staked {record.staked_amount}, "
            f"streak {record.compound_streak}"
        )

    def _authorize(self, record: StakingRecord, caller: str) -> None:
        if caller != record.owner:
            logger.warning(f"Rejected {caller}: record belongs to {record.owner}")
            raise UnauthorizedError(caller, record.owner)

    @staticmethod
    def _ensure_invariants(record: StakingRecord) -> None:
        violations = check_invariants(record)
        if violations:
            raise InvariantViolationError(violations)
