"""Linear Dutch-auction price decay."""

from fusionswap.errors import AuctionNotStartedError


def decayed_amount(
    starting_amount: int,
    ending_amount: int,
    start_time: int,
    decay_duration: int,
    now: int,
) -> int:
    """Amount offered at ``now``.

    Equals ``starting_amount`` at ``start_time``, falls linearly to
    ``ending_amount`` over ``decay_duration`` seconds, then stays there.
    Integer division rounds the decay down, so the price never drops below
    the exact linear value.
    """
    if now < start_time:
        raise AuctionNotStartedError(f"Auction starts at {start_time}, now is {now}")

    elapsed = now - start_time
    if elapsed >= decay_duration:
        return ending_amount

    decay = (starting_amount - ending_amount) * elapsed // decay_duration
    return starting_amount - decay
