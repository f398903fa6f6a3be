"""Tests for the raise ledger core.

Tests cover:
- Construction and the first operator allocation
- Whitelisting and cap edits
- Deposit preconditions, partial fills and claim issuance
- Closing the raise and pulling funds
- Atomicity when the external ledgers fail
- Reentrant deposits from inside a transfer
"""

import random

import pytest

from fundraise_domain import (
    AllocationMintEvent,
    AlreadyClosedError,
    BelowMinimumInvestmentError,
    CapBelowDepositedError,
    CapReachedError,
    CapSetEvent,
    CapUnchangedError,
    ConfigurationError,
    DepositEvent,
    FundsWithdrawalEvent,
    InMemoryAssetLedger,
    InMemoryClaimToken,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    NotWhitelistedError,
    RaiseCFG,
    RaiseClosedError,
    RaiseClosingEvent,
    RaiseLedger,
    RaiseLedgerError,
    RaiseStatus,
    RefundFailedError,
    TransferFailedError,
    UnauthorizedError,
)

OPERATOR = "operator"
TREASURY = "treasury"
UNIT = 10**6  # one whole unit of a 6-decimal base asset
CLAIM = 10**18  # one whole claim token
ALLOCATION = 1_000 * CLAIM


# =============================================================================
# Test Data Builders
# =============================================================================

def build_raise(min_investment=1000, allocation=ALLOCATION, decimals=6, claim_ledger=None, asset_ledger=None):
    """Raise on a fresh in-memory 'usdc' ledger."""
    usdc = asset_ledger or InMemoryAssetLedger("usdc", decimals=decimals)
    cfg = RaiseCFG(
        name="Acme Raise Claim",
        symbol="ACME-C",
        deposit_token="usdc",
        min_investment_amount=min_investment,
        operator_allocation_unit=allocation,
    )
    ledger = RaiseLedger(cfg, operator=OPERATOR, asset_ledger=usdc, claim_ledger=claim_ledger)
    return ledger, usdc


def fund(ledger, usdc, participant, amount):
    """Give a participant base asset and approve custody to pull it."""
    usdc.credit(participant, amount)
    custody = ledger.custody_account
    usdc.approve(participant, custody, usdc.allowance(participant, custody) + amount)


class RefusingAssetLedger(InMemoryAssetLedger):
    """Ledger whose transfers report failure instead of raising."""

    def transfer_from(self, spender, owner, recipient, amount):
        return False

    def transfer(self, sender, recipient, amount):
        return False


class NonRefundingAssetLedger(InMemoryAssetLedger):
    """Ledger that pulls deposits but reports failure when asked to refund."""

    def refund(self, spender, owner, amount):
        return False


class FlakyClaimToken(InMemoryClaimToken):
    """Claim token that refuses to mint to accounts listed in fail_for."""

    def __init__(self, name, symbol):
        super().__init__(name, symbol)
        self.fail_for = set()

    def mint(self, to, amount):
        if to in self.fail_for:
            raise RuntimeError(f"mint to {to} refused")
        super().mint(to, amount)


# =============================================================================
# Construction
# =============================================================================

class TestConstruction:
    def test_operator_receives_first_allocation(self):
        ledger, _ = build_raise()

        assert ledger.claim_ledger.balance_of(OPERATOR) == ALLOCATION
        assert ledger.claim_ledger.total_supply() == ALLOCATION
        assert ledger.status == RaiseStatus.ACTIVE
        assert ledger.is_active

    def test_construction_records_allocation_event(self):
        ledger, _ = build_raise()

        assert len(ledger.events) == 1
        event = ledger.events[0]
        assert isinstance(event, AllocationMintEvent)
        assert event.sequence == 1
        assert event.recipient == OPERATOR
        assert event.reason == "construction"

    def test_decimals_read_from_asset_ledger(self):
        ledger, _ = build_raise(decimals=8)
        assert ledger.state.deposit_token_decimals == 8

    def test_claim_token_named_after_config(self):
        ledger, _ = build_raise()
        assert ledger.claim_ledger.name == "Acme Raise Claim"
        assert ledger.claim_ledger.symbol == "ACME-C"
        assert ledger.claim_ledger.decimals() == 18

    def test_mismatched_deposit_token_rejected(self):
        dai = InMemoryAssetLedger("dai", decimals=18)
        with pytest.raises(ConfigurationError, match="does not match"):
            build_raise(asset_ledger=dai)

    def test_operator_cannot_be_custody(self):
        usdc = InMemoryAssetLedger("usdc", decimals=6)
        cfg = RaiseCFG(name="Acme", symbol="ACME", deposit_token="usdc", custody_account=OPERATOR)
        with pytest.raises(ConfigurationError):
            RaiseLedger(cfg, operator=OPERATOR, asset_ledger=usdc)

    def test_claim_token_must_have_18_decimals(self):
        class SixDecimalClaim(InMemoryClaimToken):
            def decimals(self):
                return 6

        with pytest.raises(ConfigurationError, match="18 decimals"):
            build_raise(claim_ledger=SixDecimalClaim("Acme", "ACME"))

    def test_base_asset_finer_than_claims_rejected(self):
        with pytest.raises(ConfigurationError, match="at most 18 are supported"):
            build_raise(decimals=24)

    def test_base_asset_with_18_decimals_accepted(self):
        ledger, _ = build_raise(decimals=18)
        assert ledger.state.deposit_token_decimals == 18


# =============================================================================
# Whitelist / cap edits
# =============================================================================

class TestSetCap:
    def test_whitelist_participant(self):
        ledger, _ = build_raise()

        record = ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)

        assert record.cap == 10_000 * UNIT
        assert record.deposited == 0
        assert ledger.cap_of("alice") == 10_000 * UNIT
        assert ledger.room_of("alice") == 10_000 * UNIT

    def test_whitelist_is_alias(self):
        ledger, _ = build_raise()
        ledger.whitelist(OPERATOR, "alice", 5 * UNIT)
        assert ledger.cap_of("alice") == 5 * UNIT

    def test_non_operator_rejected(self):
        ledger, _ = build_raise()

        with pytest.raises(UnauthorizedError):
            ledger.set_cap("alice", "alice", 10_000 * UNIT)

        assert ledger.cap_of("alice") == 0
        assert len(ledger.events) == 1

    def test_same_cap_twice_rejected(self):
        ledger, _ = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)

        with pytest.raises(CapUnchangedError):
            ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)

    def test_zeroing_unset_cap_rejected(self):
        ledger, _ = build_raise()
        with pytest.raises(CapUnchangedError):
            ledger.set_cap(OPERATOR, "nobody", 0)

    def test_different_cap_overwrites(self):
        ledger, _ = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)

        ledger.set_cap(OPERATOR, "alice", 25_000 * UNIT)

        assert ledger.cap_of("alice") == 25_000 * UNIT
        event = ledger.events[-1]
        assert isinstance(event, CapSetEvent)
        assert event.old_cap == 10_000 * UNIT
        assert event.new_cap == 25_000 * UNIT

    def test_cap_below_deposited_rejected(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 4_000 * UNIT)
        ledger.deposit("alice", 4_000 * UNIT)

        with pytest.raises(CapBelowDepositedError) as exc_info:
            ledger.set_cap(OPERATOR, "alice", 4_000 * UNIT - 1)

        assert exc_info.value.deposited == 4_000 * UNIT
        assert ledger.cap_of("alice") == 10_000 * UNIT

    def test_cap_lowered_to_exactly_deposited(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 4_000 * UNIT)
        ledger.deposit("alice", 4_000 * UNIT)

        ledger.set_cap(OPERATOR, "alice", 4_000 * UNIT)

        assert ledger.cap_of("alice") == 4_000 * UNIT
        assert ledger.deposited_of("alice") == 4_000 * UNIT
        assert ledger.room_of("alice") == 0

    def test_delist_participant_without_deposits(self):
        ledger, _ = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)

        ledger.set_cap(OPERATOR, "alice", 0)

        assert not ledger.investor("alice").is_whitelisted
        with pytest.raises(NotWhitelistedError):
            ledger.deposit("alice", 1_000 * UNIT)

    def test_negative_cap_rejected(self):
        ledger, _ = build_raise()
        with pytest.raises(ValueError):
            ledger.set_cap(OPERATOR, "alice", -1)

    def test_cap_edit_allowed_after_close(self):
        ledger, _ = build_raise()
        ledger.close_raise(OPERATOR)

        ledger.set_cap(OPERATOR, "alice", 10 * UNIT)

        assert ledger.cap_of("alice") == 10 * UNIT


# =============================================================================
# Deposits
# =============================================================================

class TestDeposit:
    def test_deposit_moves_funds_and_mints_claims(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 1_000 * UNIT)

        event = ledger.deposit("alice", 1_000 * UNIT)

        assert event.accepted == 1_000 * UNIT
        assert event.minted == 1_000 * CLAIM
        assert not event.truncated
        assert usdc.balance_of("alice") == 0
        assert ledger.custody_balance() == 1_000 * UNIT
        assert ledger.deposited_of("alice") == 1_000 * UNIT
        assert ledger.claim_ledger.balance_of("alice") == 1_000 * CLAIM

    def test_deposit_over_room_is_truncated(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 2_000 * UNIT)
        ledger.deposit("alice", 2_000 * UNIT)
        fund(ledger, usdc, "alice", 1_000_000 * UNIT)

        event = ledger.deposit("alice", 1_000_000 * UNIT)

        assert event.requested == 1_000_000 * UNIT
        assert event.accepted == 8_000 * UNIT
        assert event.minted == 8_000 * CLAIM
        assert event.truncated
        # Only the room left alice's balance; the excess never moved
        assert usdc.balance_of("alice") == (1_000_000 - 8_000) * UNIT
        assert usdc.allowance("alice", ledger.custody_account) == (1_000_000 - 8_000) * UNIT
        assert ledger.custody_balance() == 10_000 * UNIT
        assert ledger.deposited_of("alice") == ledger.cap_of("alice")

    def test_deposit_at_cap_fails_regardless_of_amount(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 1_000 * UNIT)
        fund(ledger, usdc, "alice", 5_000 * UNIT)
        ledger.deposit("alice", 1_000 * UNIT)

        for amount in (1000, 1_000 * UNIT, 10**30):
            with pytest.raises(CapReachedError):
                ledger.deposit("alice", amount)

        assert usdc.balance_of("alice") == 4_000 * UNIT

    def test_deposit_after_close_fails(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 1_000 * UNIT)
        fund(ledger, usdc, "alice", 1_000 * UNIT)
        ledger.close_raise(OPERATOR)

        with pytest.raises(RaiseClosedError):
            ledger.deposit("alice", 1_000 * UNIT)

    def test_closed_checked_before_whitelist(self):
        ledger, _ = build_raise()
        ledger.close_raise(OPERATOR)
        with pytest.raises(RaiseClosedError):
            ledger.deposit("stranger", 1)

    def test_not_whitelisted(self):
        ledger, usdc = build_raise()
        fund(ledger, usdc, "mallory", 1_000 * UNIT)

        with pytest.raises(NotWhitelistedError) as exc_info:
            ledger.deposit("mallory", 1_000 * UNIT)

        assert exc_info.value.participant == "mallory"
        assert usdc.balance_of("mallory") == 1_000 * UNIT

    def test_whitelist_checked_before_minimum(self):
        ledger, _ = build_raise(min_investment=1000)
        with pytest.raises(NotWhitelistedError):
            ledger.deposit("mallory", 1)

    def test_below_minimum_investment(self):
        ledger, usdc = build_raise(min_investment=1000)
        ledger.set_cap(OPERATOR, "alice", 1_000 * UNIT)
        fund(ledger, usdc, "alice", 1_000 * UNIT)

        with pytest.raises(BelowMinimumInvestmentError) as exc_info:
            ledger.deposit("alice", 999)

        assert exc_info.value.minimum == 1000
        ledger.deposit("alice", 1000)
        assert ledger.deposited_of("alice") == 1000

    def test_minimum_checked_before_cap_reached(self):
        ledger, usdc = build_raise(min_investment=1000)
        ledger.set_cap(OPERATOR, "alice", 1_000 * UNIT)
        fund(ledger, usdc, "alice", 1_000 * UNIT)
        ledger.deposit("alice", 1_000 * UNIT)

        with pytest.raises(BelowMinimumInvestmentError):
            ledger.deposit("alice", 1)

    def test_negative_amount_rejected(self):
        ledger, _ = build_raise()
        ledger.set_cap(OPERATOR, "alice", 1_000 * UNIT)
        with pytest.raises(ValueError):
            ledger.deposit("alice", -1)

    @pytest.mark.parametrize("decimals", [0, 6, 8, 18])
    def test_claims_pegged_one_to_one_in_value(self, decimals):
        ledger, usdc = build_raise(min_investment=0, decimals=decimals)
        one = 10**decimals
        ledger.set_cap(OPERATOR, "alice", 500 * one)
        fund(ledger, usdc, "alice", 250 * one)

        ledger.deposit("alice", 250 * one)

        assert ledger.claim_ledger.balance_of("alice") == 250 * CLAIM

    def test_end_to_end_partial_fill_scenario(self):
        ledger, usdc = build_raise(min_investment=1000, decimals=6)
        ledger.set_cap(OPERATOR, "p", 10_000 * UNIT)
        fund(ledger, usdc, "p", 1_002_000 * UNIT)

        ledger.deposit("p", 1_000 * UNIT)
        assert ledger.claim_ledger.balance_of("p") == 1_000 * CLAIM

        ledger.deposit("p", 1_000 * UNIT)
        assert ledger.claim_ledger.balance_of("p") == 2_000 * CLAIM

        event = ledger.deposit("p", 1_000_000 * UNIT)
        assert event.accepted == 8_000 * UNIT
        assert ledger.deposited_of("p") == ledger.cap_of("p")
        assert ledger.claim_ledger.balance_of("p") == 10_000 * CLAIM

        with pytest.raises(CapReachedError):
            ledger.deposit("p", 1_000 * UNIT)


# =============================================================================
# Atomicity with failing external ledgers
# =============================================================================

class TestDepositAtomicity:
    def test_missing_allowance_leaves_no_trace(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        usdc.credit("alice", 1_000 * UNIT)  # no approval
        events_before = len(ledger.events)

        with pytest.raises(InsufficientAllowanceError):
            ledger.deposit("alice", 1_000 * UNIT)

        assert ledger.deposited_of("alice") == 0
        assert ledger.claim_ledger.balance_of("alice") == 0
        assert ledger.custody_balance() == 0
        assert len(ledger.events) == events_before

    def test_insufficient_balance_leaves_no_trace(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        usdc.credit("alice", 500 * UNIT)
        usdc.approve("alice", ledger.custody_account, 1_000 * UNIT)

        with pytest.raises(InsufficientBalanceError):
            ledger.deposit("alice", 1_000 * UNIT)

        assert ledger.deposited_of("alice") == 0
        assert usdc.balance_of("alice") == 500 * UNIT
        assert usdc.allowance("alice", ledger.custody_account) == 1_000 * UNIT

    def test_refused_transfer_raises_transfer_failed(self):
        refusing = RefusingAssetLedger("usdc", decimals=6)
        ledger, usdc = build_raise(asset_ledger=refusing)
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 1_000 * UNIT)

        with pytest.raises(TransferFailedError):
            ledger.deposit("alice", 1_000 * UNIT)

        assert ledger.deposited_of("alice") == 0
        assert ledger.claim_ledger.balance_of("alice") == 0

    def test_failed_mint_returns_funds(self):
        claims = FlakyClaimToken("Acme", "ACME")
        ledger, usdc = build_raise(claim_ledger=claims)
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 1_000 * UNIT)
        claims.fail_for.add("alice")

        with pytest.raises(RuntimeError, match="mint to alice refused"):
            ledger.deposit("alice", 1_000 * UNIT)

        assert ledger.deposited_of("alice") == 0
        assert usdc.balance_of("alice") == 1_000 * UNIT
        assert usdc.allowance("alice", ledger.custody_account) == 1_000 * UNIT
        assert ledger.custody_balance() == 0
        assert not any(isinstance(event, DepositEvent) for event in ledger.events)

    def test_failed_mint_can_be_retried(self):
        claims = FlakyClaimToken("Acme", "ACME")
        ledger, usdc = build_raise(claim_ledger=claims)
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 1_000 * UNIT)
        claims.fail_for.add("alice")

        with pytest.raises(RuntimeError):
            ledger.deposit("alice", 1_000 * UNIT)
        claims.fail_for.clear()
        event = ledger.deposit("alice", 1_000 * UNIT)

        assert event.accepted == 1_000 * UNIT
        assert claims.balance_of("alice") == 1_000 * CLAIM
        assert usdc.allowance("alice", ledger.custody_account) == 0

    def test_unreturnable_funds_raise_refund_failed(self):
        claims = FlakyClaimToken("Acme", "ACME")
        stuck = NonRefundingAssetLedger("usdc", decimals=6)
        ledger, usdc = build_raise(claim_ledger=claims, asset_ledger=stuck)
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 1_000 * UNIT)
        claims.fail_for.add("alice")

        with pytest.raises(RefundFailedError) as excinfo:
            ledger.deposit("alice", 1_000 * UNIT)

        error = excinfo.value
        assert isinstance(error, TransferFailedError)
        assert error.participant == "alice"
        assert error.amount == 1_000 * UNIT
        assert isinstance(error.__cause__, RuntimeError)
        # Nothing is booked for funds that could not be returned
        assert ledger.deposited_of("alice") == 0
        assert ledger.custody_balance() == 1_000 * UNIT
        assert not any(isinstance(event, DepositEvent) for event in ledger.events)


# =============================================================================
# Reentrancy
# =============================================================================

class TestReentrancy:
    def test_reentrant_deposit_cannot_double_spend_room(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 20_000 * UNIT)

        observed = []

        def reenter(sender, recipient, amount):
            if recipient != ledger.custody_account or observed:
                return
            observed.append(ledger.deposited_of("alice"))
            ledger.deposit("alice", 6_000 * UNIT)

        usdc.on_transfer = reenter

        outer = ledger.deposit("alice", 6_000 * UNIT)

        # The nested call saw the outer deposit already booked
        assert observed == [6_000 * UNIT]
        assert outer.accepted == 6_000 * UNIT
        assert ledger.deposited_of("alice") == 10_000 * UNIT
        assert ledger.custody_balance() == 10_000 * UNIT
        assert ledger.claim_ledger.balance_of("alice") == 10_000 * CLAIM

        deposits = [event for event in ledger.events if isinstance(event, DepositEvent)]
        assert [event.accepted for event in deposits] == [4_000 * UNIT, 6_000 * UNIT]

    def test_failed_outer_transfer_keeps_committed_inner_deposit(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 20_000 * UNIT)

        def reenter_then_fail(sender, recipient, amount):
            if recipient != ledger.custody_account:
                return
            usdc.on_transfer = None
            ledger.deposit("alice", 3_000 * UNIT)
            raise RuntimeError("outer transfer aborted")

        usdc.on_transfer = reenter_then_fail

        with pytest.raises(RuntimeError, match="outer transfer aborted"):
            ledger.deposit("alice", 5_000 * UNIT)

        assert ledger.deposited_of("alice") == 3_000 * UNIT
        assert ledger.custody_balance() == 3_000 * UNIT
        assert usdc.balance_of("alice") == 17_000 * UNIT
        assert usdc.allowance("alice", ledger.custody_account) == 17_000 * UNIT
        assert ledger.claim_ledger.balance_of("alice") == 3_000 * CLAIM

    def test_deposit_reentered_from_refund(self):
        claims = FlakyClaimToken("Acme", "ACME")
        ledger, usdc = build_raise(claim_ledger=claims)
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 20_000 * UNIT)
        claims.fail_for.add("alice")

        observed = []

        def reenter_on_refund(sender, recipient, amount):
            if recipient != "alice" or observed:
                return
            observed.append(ledger.deposited_of("alice"))
            claims.fail_for.clear()
            ledger.deposit("alice", 4_000 * UNIT)

        usdc.on_transfer = reenter_on_refund

        with pytest.raises(RuntimeError, match="mint to alice refused"):
            ledger.deposit("alice", 6_000 * UNIT)

        # The nested call saw the failed deposit already unbooked
        assert observed == [0]
        assert ledger.deposited_of("alice") == 4_000 * UNIT
        assert ledger.custody_balance() == 4_000 * UNIT
        assert usdc.balance_of("alice") == 16_000 * UNIT
        assert usdc.allowance("alice", ledger.custody_account) == 16_000 * UNIT
        assert claims.balance_of("alice") == 4_000 * CLAIM
        deposits = [event for event in ledger.events if isinstance(event, DepositEvent)]
        assert [event.accepted for event in deposits] == [4_000 * UNIT]


# =============================================================================
# Closing
# =============================================================================

class TestCloseRaise:
    def test_close_mints_second_allocation(self):
        ledger, _ = build_raise()
        before = ledger.claim_ledger.balance_of(OPERATOR)

        ledger.close_raise(OPERATOR)

        assert ledger.status == RaiseStatus.CLOSED
        assert not ledger.is_active
        assert ledger.claim_ledger.balance_of(OPERATOR) == before + ALLOCATION
        assert ledger.claim_ledger.balance_of(OPERATOR) == 2 * ALLOCATION

    def test_close_records_events(self):
        ledger, _ = build_raise()
        ledger.close_raise(OPERATOR)

        closing, mint = ledger.events[-2:]
        assert isinstance(closing, RaiseClosingEvent)
        assert closing.closed_by == OPERATOR
        assert isinstance(mint, AllocationMintEvent)
        assert mint.reason == "close"

    def test_non_operator_cannot_close(self):
        ledger, _ = build_raise()
        with pytest.raises(UnauthorizedError):
            ledger.close_raise("alice")
        assert ledger.is_active

    def test_second_close_rejected_without_minting(self):
        ledger, _ = build_raise()
        ledger.close_raise(OPERATOR)
        events_before = len(ledger.events)

        with pytest.raises(AlreadyClosedError):
            ledger.close_raise(OPERATOR)

        assert ledger.claim_ledger.balance_of(OPERATOR) == 2 * ALLOCATION
        assert len(ledger.events) == events_before

    def test_already_closed_is_a_raise_closed_error(self):
        assert issubclass(AlreadyClosedError, RaiseClosedError)

    def test_failed_allocation_mint_keeps_raise_open(self):
        claims = FlakyClaimToken("Acme", "ACME")
        ledger, _ = build_raise(claim_ledger=claims)
        claims.fail_for.add(OPERATOR)

        with pytest.raises(RuntimeError):
            ledger.close_raise(OPERATOR)

        assert ledger.is_active
        assert claims.balance_of(OPERATOR) == ALLOCATION


# =============================================================================
# Pulling funds
# =============================================================================

class TestPullFunds:
    def test_pull_sweeps_custody(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        ledger.set_cap(OPERATOR, "bob", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 3_000 * UNIT)
        fund(ledger, usdc, "bob", 2_000 * UNIT)
        ledger.deposit("alice", 3_000 * UNIT)
        ledger.deposit("bob", 2_000 * UNIT)

        moved = ledger.pull_funds(OPERATOR, TREASURY)

        assert moved == 5_000 * UNIT
        assert usdc.balance_of(TREASURY) == 5_000 * UNIT
        assert ledger.custody_balance() == 0

    def test_second_pull_moves_zero(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 3_000 * UNIT)
        ledger.deposit("alice", 3_000 * UNIT)

        ledger.pull_funds(OPERATOR, TREASURY)
        moved = ledger.pull_funds(OPERATOR, TREASURY)

        assert moved == 0
        assert usdc.balance_of(TREASURY) == 3_000 * UNIT
        withdrawals = [e for e in ledger.events if isinstance(e, FundsWithdrawalEvent)]
        assert [e.amount for e in withdrawals] == [3_000 * UNIT, 0]

    def test_pull_sweeps_observed_balance(self):
        ledger, usdc = build_raise()
        usdc.credit(ledger.custody_account, 42)

        assert ledger.pull_funds(OPERATOR, TREASURY) == 42

    def test_pull_allowed_after_close(self):
        ledger, usdc = build_raise()
        ledger.set_cap(OPERATOR, "alice", 10_000 * UNIT)
        fund(ledger, usdc, "alice", 1_000 * UNIT)
        ledger.deposit("alice", 1_000 * UNIT)
        ledger.close_raise(OPERATOR)

        assert ledger.pull_funds(OPERATOR, TREASURY) == 1_000 * UNIT

    def test_non_operator_cannot_pull(self):
        ledger, usdc = build_raise()
        usdc.credit(ledger.custody_account, 100)

        with pytest.raises(UnauthorizedError):
            ledger.pull_funds("alice", "alice")

        assert ledger.custody_balance() == 100

    def test_refused_sweep_raises(self):
        refusing = RefusingAssetLedger("usdc", decimals=6)
        ledger, usdc = build_raise(asset_ledger=refusing)
        usdc.credit(ledger.custody_account, 100)

        with pytest.raises(TransferFailedError):
            ledger.pull_funds(OPERATOR, TREASURY)

        assert ledger.custody_balance() == 100
        assert not any(isinstance(e, FundsWithdrawalEvent) for e in ledger.events)


# =============================================================================
# Invariants under random operation sequences
# =============================================================================

def test_deposited_never_exceeds_cap_under_random_operations():
    rng = random.Random(20240101)
    ledger, usdc = build_raise(min_investment=10)
    participants = ["alice", "bob", "carol", "dave"]
    for participant in participants:
        fund(ledger, usdc, participant, 10**12)

    for _ in range(500):
        participant = rng.choice(participants)
        action = rng.random()
        try:
            if action < 0.35:
                ledger.set_cap(OPERATOR, participant, rng.randrange(0, 5_000) * UNIT // 10)
            elif action < 0.97:
                ledger.deposit(participant, rng.randrange(0, 2_000) * UNIT // 10)
            elif action < 0.99:
                ledger.pull_funds(OPERATOR, TREASURY)
            else:
                ledger.close_raise(OPERATOR)
        except RaiseLedgerError:
            pass

        for record in ledger.investors():
            assert 0 <= record.deposited <= record.cap

    total = ledger.total_deposited
    assert ledger.custody_balance() + usdc.balance_of(TREASURY) == total
    minted = sum(ledger.claim_ledger.balance_of(p) for p in participants)
    assert minted == total * 10**12
