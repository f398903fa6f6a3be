"""Investor records tracked by the raise ledger.

An InvestorRecord is the whitelist entry for one participant: the most the
participant may deposit over the life of the raise (cap) and what has been
accepted so far (deposited).
"""

from pydantic import Field, model_validator

from .base import DomainModel, AccountId, TokenAmount


class InvestorRecord(DomainModel):
    """Whitelist entry and deposit tally for a single participant.

    Records are created and mutated only by RaiseLedger. A cap of zero means
    the participant is not whitelisted; records are never deleted, a
    participant is de-listed by editing the cap back down to what they have
    already deposited.

    Examples:
        Freshly whitelisted participant:
            participant="alice"
            cap=10_000_000_000  (10,000 units of a 6-decimal asset)
            deposited=0

        Participant that has filled their allocation:
            participant="bob"
            cap=5_000_000_000
            deposited=5_000_000_000  (room == 0)
    """

    participant: AccountId = Field(
        description="Account the cap applies to"
    )

    cap: TokenAmount = Field(
        default=0,
        description="Maximum cumulative deposit in base-asset units (0 = not whitelisted)"
    )

    deposited: TokenAmount = Field(
        default=0,
        description="Cumulative accepted deposits in base-asset units"
    )

    @model_validator(mode='after')
    def validate_deposited_within_cap(self):
        """Deposited may never exceed the cap."""
        if self.deposited > self.cap:
            raise ValueError(
                f"deposited ({self.deposited}) exceeds cap ({self.cap}) "
                f"for participant '{self.participant}'"
            )
        return self

    @property
    def is_whitelisted(self) -> bool:
        return self.cap > 0

    @property
    def room(self) -> int:
        """Remaining amount the participant may still deposit."""
        return self.cap - self.deposited
