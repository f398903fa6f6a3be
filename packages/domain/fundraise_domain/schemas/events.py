"""Raise ledger events.

Every state change the ledger commits is recorded as an immutable event.
Failed operations record nothing. Replaying the events of a raise in order
onto an empty snapshot reproduces the ledger's investor table, claim
balances and status, which makes the event log a complete audit trail.

Event timeline of a typical raise:
    1. AllocationMintEvent: operator allocation minted at construction
    2. CapSetEvent: operator whitelists alice with a 10,000 unit cap
    3. DepositEvent: alice deposits 1,000 units, 1,000e18 claims minted
    4. RaiseClosingEvent: operator closes the raise
    5. AllocationMintEvent: second operator allocation minted at close
    6. FundsWithdrawalEvent: custody swept to the treasury
"""

from abc import ABC, abstractmethod
from typing import Annotated, Literal, Union, TYPE_CHECKING
from pydantic import Field, model_validator

from .base import DomainModel, AccountId, TokenAmount

# Avoid circular import for type hints
if TYPE_CHECKING:
    from .snapshot import RaiseSnapshot


# =============================================================================
# Event Base Class
# =============================================================================

class RaiseLedgerEvent(DomainModel, ABC):
    """Base class for all raise ledger events.

    Each event carries a sequence number assigned by the ledger (strictly
    increasing, starting at 1) and knows how to apply itself to a
    RaiseSnapshot.
    """

    sequence: int = Field(
        ge=1,
        description="Position of the event in the ledger's log"
    )

    @abstractmethod
    def apply(self, snapshot: 'RaiseSnapshot') -> None:
        """Apply this event to a snapshot to update its state.

        Args:
            snapshot: The RaiseSnapshot to mutate
        """
        pass


# =============================================================================
# Whitelist Events
# =============================================================================

class CapSetEvent(RaiseLedgerEvent):
    """The operator whitelisted a participant or edited their cap."""

    event_type: Literal["cap_set"] = "cap_set"

    participant: AccountId
    old_cap: TokenAmount
    new_cap: TokenAmount

    @model_validator(mode='after')
    def validate_cap_changed(self):
        if self.old_cap == self.new_cap:
            raise ValueError("CapSetEvent must change the cap")
        return self

    def apply(self, snapshot: 'RaiseSnapshot') -> None:
        snapshot.investor(self.participant).cap = self.new_cap


# =============================================================================
# Deposit Events
# =============================================================================

class DepositEvent(RaiseLedgerEvent):
    """A deposit was accepted, possibly truncated to the participant's room.

    ``requested - accepted`` is the excess that was neither transferred nor
    minted.
    """

    event_type: Literal["deposit"] = "deposit"

    participant: AccountId
    requested: TokenAmount = Field(
        description="Amount the participant asked to deposit"
    )
    accepted: TokenAmount = Field(
        description="Amount actually transferred into custody"
    )
    minted: TokenAmount = Field(
        description="Claim tokens minted for the accepted amount (18 decimals)"
    )

    @model_validator(mode='after')
    def validate_accepted(self):
        if self.accepted > self.requested:
            raise ValueError(
                f"accepted ({self.accepted}) cannot exceed requested ({self.requested})"
            )
        return self

    @property
    def truncated(self) -> bool:
        return self.accepted < self.requested

    def apply(self, snapshot: 'RaiseSnapshot') -> None:
        snapshot.investor(self.participant).deposited += self.accepted
        snapshot.custody_balance += self.accepted
        snapshot.credit_claims(self.participant, self.minted)


# =============================================================================
# Operator Events
# =============================================================================

class AllocationMintEvent(RaiseLedgerEvent):
    """The operator allocation unit was minted."""

    event_type: Literal["allocation_mint"] = "allocation_mint"

    recipient: AccountId
    amount: TokenAmount
    reason: Literal["construction", "close"]

    def apply(self, snapshot: 'RaiseSnapshot') -> None:
        snapshot.credit_claims(self.recipient, self.amount)


class RaiseClosingEvent(RaiseLedgerEvent):
    """The operator closed the raise. Terminal."""

    event_type: Literal["raise_closing"] = "raise_closing"

    closed_by: AccountId

    def apply(self, snapshot: 'RaiseSnapshot') -> None:
        from .raise_state import RaiseStatus

        snapshot.status = RaiseStatus.CLOSED


class FundsWithdrawalEvent(RaiseLedgerEvent):
    """The operator swept the custody balance to a recipient."""

    event_type: Literal["funds_withdrawal"] = "funds_withdrawal"

    recipient: AccountId
    amount: TokenAmount

    def apply(self, snapshot: 'RaiseSnapshot') -> None:
        # A sweep always empties custody
        snapshot.custody_balance = 0


# Discriminated union for (de)serialising event logs
RaiseEvent = Annotated[
    Union[
        CapSetEvent,
        DepositEvent,
        AllocationMintEvent,
        RaiseClosingEvent,
        FundsWithdrawalEvent,
    ],
    Field(discriminator="event_type"),
]
