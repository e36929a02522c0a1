"""Error kinds raised by the staking ledger."""
from typing import List


class StakingError(Exception):
    """Base class for every ledger error."""
    kind = "StakingError"


class UnauthorizedError(StakingError):
    """Caller is not the owner of the record."""
    kind = "Unauthorized"

    def __init__(self, caller: str, owner: str):
        self.caller = caller
        self.owner = owner
        super().__init__(f"{caller} is not the owner of the record for {owner}")


class InsufficientStakedAmountError(StakingError):
    """Unstake request exceeds the staked balance."""
    kind = "InsufficientStakedAmount"

    def __init__(self, requested: int, staked: int):
        self.requested = requested
        self.staked = staked
        super().__init__(f"Cannot unstake {requested}, only {staked} staked")


class InsufficientFundsError(StakingError):
    """Funds collaborator cannot cover a transfer."""
    kind = "InsufficientFunds"

    def __init__(self, account: str, requested: int, available: int):
        self.account = account
        self.requested = requested
        self.available = available
        super().__init__(
            f"Account {account} cannot transfer {requested}, balance is {available}"
        )


class RecordNotFoundError(StakingError):
    """No ledger record exists for the owner."""
    kind = "RecordNotFound"

    def __init__(self, owner: str):
        self.owner = owner
        super().__init__(f"No staking record for {owner}")


class RecordExistsError(StakingError):
    """A record for the owner was already allocated."""
    kind = "RecordExists"

    def __init__(self, owner: str):
        self.owner = owner
        super().__init__(f"Staking record for {owner} already exists")


class StorageConflictError(StakingError):
    """Another mutation of the same record committed first."""
    kind = "StorageConflict"

    def __init__(self, owner: str, expected: int, actual: int):
        self.owner = owner
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Record for {owner} changed: expected version {expected}, found {actual}"
        )


class StakingOverflowError(StakingError):
    """An arithmetic step would leave the representable range."""
    kind = "Overflow"


class InvalidAmountError(StakingError):
    """Amount is not a non-negative 64-bit integer."""
    kind = "InvalidAmount"


class InvariantViolationError(StakingError):
    """A post-state violates one or more record invariants."""
    kind = "InvariantViolation"

    def __init__(self, violations: List[str]):
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


class InvalidTimestampError(StakingError):
    """Clock reading is not an integer number of seconds."""
    kind = "InvalidTimestamp"


class InvalidOwnerError(StakingError):
    """Owner id cannot be stored in a record."""
    kind = "InvalidOwner"

    def __init__(self, owner: str, reason: str):
        self.owner = owner
        self.reason = reason
        super().__init__(f"Invalid owner {owner!r}: {reason}")
