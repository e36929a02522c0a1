"""Per-owner staking record."""
import struct
from pydantic import BaseModel, ConfigDict, Field, field_validator

U64_MAX = 2**64 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1
OWNER_SIZE = 32

# owner, staked_amount, reward_amount, last_accrual_time, compound_streak
RECORD_LAYOUT = struct.Struct("<32sQQqQ")
RECORD_SIZE = RECORD_LAYOUT.size


class StakingRecord(BaseModel):
    """Staked and reward balances of a single owner.

    Assignments are validated, so a field can never be set outside its
    64-bit range even if an arithmetic check upstream is missed.
    """
    model_config = ConfigDict(validate_assignment=True)

    owner: str = Field(frozen=True)
    staked_amount: int = Field(default=0, ge=0, le=U64_MAX, strict=True)
    reward_amount: int = Field(default=0, ge=0, le=U64_MAX, strict=True)
    last_accrual_time: int = Field(default=0, ge=I64_MIN, le=I64_MAX, strict=True)
    compound_streak: int = Field(default=0, ge=0, le=U64_MAX, strict=True)

    @field_validator("owner")
    @classmethod
    def _owner_fits_layout(cls, value: str) -> str:
        encoded = value.encode("utf-8")
        if not encoded:
            raise ValueError("owner must not be empty")
        if len(encoded) > OWNER_SIZE or b"\0" in encoded:
            raise ValueError(f"owner must be at most {OWNER_SIZE} bytes without NUL")
        return value

    @classmethod
    def new(cls, owner: str, now: int) -> "StakingRecord":
        """Create an empty record whose accrual clock starts at ``now``."""
        return cls(owner=owner, last_accrual_time=now)

    @property
    def total_value(self) -> int:
        return self.staked_amount + self.reward_amount

    def to_bytes(self) -> bytes:
        """Pack into the fixed 64-byte little-endian layout."""
        return RECORD_LAYOUT.pack(
            self.owner.encode("utf-8"),
            self.staked_amount,
            self.reward_amount,
            self.last_accrual_time,
            self.compound_streak,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "StakingRecord":
        if len(data) != RECORD_SIZE:
            raise ValueError(f"record must be {RECORD_SIZE} bytes, got {len(data)}")
        owner, staked, reward, last_accrual, streak = RECORD_LAYOUT.unpack(data)
        return cls(
            owner=owner.rstrip(b"\0").decode("utf-8"),
            staked_amount=staked,
            reward_amount=reward,
            last_accrual_time=last_accrual,
            compound_streak=streak,
        )
