"""Raise lifecycle state.

A raise starts ACTIVE and moves to CLOSED exactly once. Deposits are only
accepted while ACTIVE; cap edits and fund withdrawals work in both states.
"""

from enum import Enum
from pydantic import Field

from .base import DomainModel, TokenAmount, TokenDecimals


class RaiseStatus(str, Enum):
    """Two-state raise lifecycle: ACTIVE -> CLOSED (terminal)."""

    ACTIVE = "active"
    CLOSED = "closed"


class RaiseState(DomainModel):
    """Process-wide settings and status of one raise.

    Owned exclusively by RaiseLedger. Everything except ``status`` is fixed at
    construction.
    """

    deposit_token_decimals: TokenDecimals = Field(
        description="Decimal places of the base asset, read from its ledger at construction"
    )

    min_investment_amount: TokenAmount = Field(
        description="Smallest admissible deposit, in base-asset units, enforced as-is"
    )

    operator_allocation_unit: TokenAmount = Field(
        description="Claim tokens minted to the operator at construction and again at close"
    )

    status: RaiseStatus = Field(
        default=RaiseStatus.ACTIVE,
        description="Lifecycle status"
    )

    @property
    def is_active(self) -> bool:
        return self.status == RaiseStatus.ACTIVE

    def close(self) -> None:
        """Move the raise to CLOSED.

        Raises:
            ValueError: If the raise is already closed
        """
        if not self.is_active:
            raise ValueError("Raise is already closed")
        self.status = RaiseStatus.CLOSED
