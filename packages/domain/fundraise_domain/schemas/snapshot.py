"""Point-in-time read model of a raise.

RaiseLedger.snapshot() copies the live ledger into a RaiseSnapshot so that
reporting blocks and renderers never touch ledger internals. A snapshot can
also be rebuilt from an event log with RaiseSnapshot.replay().
"""

from typing import Dict, List, Optional
from pydantic import Field

from .base import (
    DomainModel,
    AccountId,
    TokenId,
    TokenAmount,
    TokenDecimals,
    CLAIM_TOKEN_DECIMALS,
)
from .investors import InvestorRecord
from .raise_state import RaiseStatus
from .events import RaiseEvent


class RaiseSnapshot(DomainModel):
    """Raise state at a point in time.

    Key properties:
        - Detached: mutating a snapshot never affects the ledger
        - Reproducible: replaying the ledger's events yields the same
          investor table, claim balances and status

    Usage:
        snapshot = ledger.snapshot()
        snapshot.total_deposited
        snapshot.investors["alice"].room
    """

    name: str = Field(description="Claim token name")
    symbol: str = Field(description="Claim token symbol")

    operator: AccountId
    custody_account: AccountId
    deposit_token: TokenId

    deposit_token_decimals: TokenDecimals
    claim_token_decimals: TokenDecimals = CLAIM_TOKEN_DECIMALS

    min_investment_amount: TokenAmount = 0
    operator_allocation_unit: TokenAmount = 0

    status: RaiseStatus = RaiseStatus.ACTIVE

    investors: Dict[str, InvestorRecord] = Field(
        default_factory=dict,
        description="Investor records keyed by participant"
    )

    claim_balances: Dict[str, int] = Field(
        default_factory=dict,
        description="Claim token balance per account (18 decimals)"
    )

    claim_total_supply: TokenAmount = 0

    custody_balance: TokenAmount = Field(
        default=0,
        description="Base-asset balance held by the custody account"
    )

    events: List[RaiseEvent] = Field(default_factory=list)

    # ------------------------------------------------------------------ #
    # Aggregates
    # ------------------------------------------------------------------ #

    @property
    def is_active(self) -> bool:
        return self.status == RaiseStatus.ACTIVE

    @property
    def total_cap(self) -> int:
        return sum(record.cap for record in self.investors.values())

    @property
    def total_deposited(self) -> int:
        return sum(record.deposited for record in self.investors.values())

    @property
    def whitelisted_count(self) -> int:
        return sum(1 for record in self.investors.values() if record.is_whitelisted)

    @property
    def operator_claims(self) -> int:
        return self.claim_balances.get(self.operator, 0)

    def claim_balance(self, account: str) -> int:
        return self.claim_balances.get(account, 0)

    # ------------------------------------------------------------------ #
    # Mutation helpers used by event replay
    # ------------------------------------------------------------------ #

    def investor(self, participant: str) -> InvestorRecord:
        """Return the record for a participant, creating an empty one if needed."""
        record = self.investors.get(participant)
        if record is None:
            record = InvestorRecord(participant=participant)
            self.investors[participant] = record
        return record

    def credit_claims(self, account: str, amount: int) -> None:
        """Add minted claims; zero mints leave no balance entry."""
        if amount == 0:
            return
        self.claim_balances[account] = self.claim_balances.get(account, 0) + amount
        self.claim_total_supply += amount

    @classmethod
    def replay(
        cls,
        events: List[RaiseEvent],
        *,
        name: str,
        symbol: str,
        operator: str,
        custody_account: str,
        deposit_token: str,
        deposit_token_decimals: int,
        min_investment_amount: int = 0,
        operator_allocation_unit: int = 0,
        claim_token_decimals: Optional[int] = None,
    ) -> "RaiseSnapshot":
        """Rebuild a snapshot by applying events in sequence order.

        Raises:
            ValueError: If sequence numbers are duplicated
        """
        snapshot = cls(
            name=name,
            symbol=symbol,
            operator=operator,
            custody_account=custody_account,
            deposit_token=deposit_token,
            deposit_token_decimals=deposit_token_decimals,
            claim_token_decimals=(
                CLAIM_TOKEN_DECIMALS if claim_token_decimals is None else claim_token_decimals
            ),
            min_investment_amount=min_investment_amount,
            operator_allocation_unit=operator_allocation_unit,
        )

        ordered = sorted(events, key=lambda event: event.sequence)
        sequences = [event.sequence for event in ordered]
        if len(set(sequences)) != len(sequences):
            raise ValueError("Duplicate event sequence numbers in replay")

        for event in ordered:
            event.apply(snapshot)
            snapshot.events.append(event)

        return snapshot
