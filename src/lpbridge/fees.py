"""Fee engine.

All arithmetic is integer base units with floor division, so a quote is
replayable bit-for-bit. The same function backs previews and execution.
"""

from dataclasses import dataclass

from lpbridge.errors import InvalidAmount

BPS_DENOMINATOR = 10_000


@dataclass(frozen=True)
class FeeSchedule:
    """Fixed fee schedule of a domain."""

    lp_rate_bps: int = 5
    protocol_rate_bps: int = 25
    fee_cap: int = 5_000_000

    def __post_init__(self):
        if self.lp_rate_bps < 0 or self.protocol_rate_bps < 0:
            raise ValueError("Fee rates cannot be negative")
        if self.lp_rate_bps + self.protocol_rate_bps > BPS_DENOMINATOR:
            raise ValueError("Combined fee rate cannot exceed 100%")
        if self.fee_cap < 0:
            raise ValueError("Fee cap cannot be negative")

    @property
    def total_rate_bps(self) -> int:
        return self.lp_rate_bps + self.protocol_rate_bps


@dataclass(frozen=True)
class FeeQuote:
    """Fee split for one transfer amount."""

    amount: int
    lp_fee: int
    protocol_fee: int
    total_fee: int
    amount_after_fee: int
    capped: bool = False


def compute_fees(amount: int, schedule: FeeSchedule) -> FeeQuote:
    """Split the fee for ``amount`` according to ``schedule``.

    When the uncapped total exceeds the cap, the total becomes the cap and
    is re-split in the schedule's LP:protocol ratio, the LP side floored
    and the protocol side taking the remainder.

    Raises:
        InvalidAmount: amount is not a positive integer
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(amount)

    lp_fee = amount * schedule.lp_rate_bps // BPS_DENOMINATOR
    protocol_fee = amount * schedule.protocol_rate_bps // BPS_DENOMINATOR
    total_fee = lp_fee + protocol_fee
    capped = False

    if total_fee > schedule.fee_cap:
        capped = True
        total_fee = schedule.fee_cap
        lp_fee = schedule.fee_cap * schedule.lp_rate_bps // schedule.total_rate_bps
        protocol_fee = schedule.fee_cap - lp_fee

    return FeeQuote(
        amount=amount,
        lp_fee=lp_fee,
        protocol_fee=protocol_fee,
        total_fee=total_fee,
        amount_after_fee=amount - total_fee,
        capped=capped,
    )
