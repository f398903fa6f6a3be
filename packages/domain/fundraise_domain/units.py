"""Conversion between ledgers with different decimal precision."""


def rescale(amount: int, from_decimals: int, to_decimals: int) -> int:
    """Re-express an amount from one decimal precision in another.

    Up-scaling is exact. Down-scaling truncates the digits that do not fit,
    e.g. 1_999_999 at 6 decimals is 1 at 0 decimals.

    Args:
        amount: Non-negative amount in smallest units of the source precision
        from_decimals: Decimal places of the source ledger
        to_decimals: Decimal places of the target ledger

    Returns:
        Amount in smallest units of the target precision

    Raises:
        ValueError: If amount or either precision is negative

    Example:
        rescale(1_000_000, 6, 18) -> 1_000_000_000_000_000_000
    """
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")
    if from_decimals < 0 or to_decimals < 0:
        raise ValueError(
            f"decimals must be non-negative, got {from_decimals} -> {to_decimals}"
        )

    if to_decimals >= from_decimals:
        return amount * 10 ** (to_decimals - from_decimals)
    return amount // 10 ** (from_decimals - to_decimals)
