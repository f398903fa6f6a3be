"""Raise ledger core.

RaiseLedger owns the whitelist/cap table and the raise status, and is the
only writer of both. It moves the base asset through a BaseAssetLedger and
issues claim tokens through a ClaimTokenLedger.

Control flow of a raise:
    1. Operator whitelists participants (set_cap)
    2. Participants approve the custody account on the base-asset ledger
       and call deposit; each accepted unit of base asset mints one unit of
       value in claim tokens, rescaled to 18 decimals
    3. Operator closes the raise (close_raise), which stops deposits and
       mints the second operator allocation
    4. Operator sweeps custody to a treasury (pull_funds), any time

Every operation is atomic: it either commits all of its effects or raises
and leaves the ledger, both token ledgers and custody as they were.

Internal state is updated before the external ledgers are called, so an
external ledger that calls back into deposit mid-transfer sees the
already-increased deposited amount and cannot spend the same room twice.
"""

from typing import Dict, List, Optional, Tuple

from loguru import logger

from .errors import (
    AlreadyClosedError,
    BelowMinimumInvestmentError,
    CapBelowDepositedError,
    CapReachedError,
    CapUnchangedError,
    ConfigurationError,
    NotWhitelistedError,
    RaiseClosedError,
    RefundFailedError,
    TransferFailedError,
    UnauthorizedError,
)
from .ledgers import BaseAssetLedger, ClaimTokenLedger, InMemoryClaimToken
from .schemas import (
    AllocationMintEvent,
    CapSetEvent,
    DepositEvent,
    FundsWithdrawalEvent,
    InvestorRecord,
    RaiseCFG,
    RaiseClosingEvent,
    RaiseEvent,
    RaiseSnapshot,
    RaiseState,
    RaiseStatus,
    CLAIM_TOKEN_DECIMALS,
)
from .units import rescale


class RaiseLedger:
    """Capital-raise ledger with per-participant caps and proportional claims.

    Example:
        usdc = InMemoryAssetLedger("usdc", decimals=6)
        cfg = RaiseCFG(name="Acme Claim", symbol="ACME-C", deposit_token="usdc",
                       min_investment_amount=1000,
                       operator_allocation_unit=10**21)
        ledger = RaiseLedger(cfg, operator="operator", asset_ledger=usdc)

        ledger.set_cap("operator", "alice", 10_000 * 10**6)
        usdc.credit("alice", 1_000 * 10**6)
        usdc.approve("alice", ledger.custody_account, 1_000 * 10**6)
        ledger.deposit("alice", 1_000 * 10**6)

        ledger.claim_ledger.balance_of("alice")  # 1_000 * 10**18
    """

    def __init__(
        self,
        cfg: RaiseCFG,
        operator: str,
        asset_ledger: BaseAssetLedger,
        claim_ledger: Optional[ClaimTokenLedger] = None,
    ):
        """Bind the ledgers, start the raise and mint the first operator allocation.

        Args:
            cfg: Construction settings
            operator: The single privileged account
            asset_ledger: Ledger of the base asset; must be the one named by
                cfg.deposit_token
            claim_ledger: Claim token ledger to issue into. A fresh
                InMemoryClaimToken named after cfg is created when omitted.

        Raises:
            ConfigurationError: If the ledgers or accounts are inconsistent
        """
        if not operator:
            raise ConfigurationError("operator must be a non-empty account id")
        if asset_ledger.token_id != cfg.deposit_token:
            raise ConfigurationError(
                f"Asset ledger '{asset_ledger.token_id}' does not match "
                f"configured deposit token '{cfg.deposit_token}'"
            )
        if operator == cfg.custody_account:
            raise ConfigurationError("operator and custody account must differ")
        # Every accepted unit must scale up exactly into claim units
        if asset_ledger.decimals() > CLAIM_TOKEN_DECIMALS:
            raise ConfigurationError(
                f"Asset ledger '{asset_ledger.token_id}' has {asset_ledger.decimals()} "
                f"decimals, at most {CLAIM_TOKEN_DECIMALS} are supported"
            )

        if claim_ledger is None:
            claim_ledger = InMemoryClaimToken(cfg.name, cfg.symbol)
        if claim_ledger.decimals() != CLAIM_TOKEN_DECIMALS:
            raise ConfigurationError(
                f"Claim token must have {CLAIM_TOKEN_DECIMALS} decimals, "
                f"got {claim_ledger.decimals()}"
            )

        self.cfg = cfg
        self._operator = operator
        self._asset_ledger = asset_ledger
        self._claim_ledger = claim_ledger

        self._state = RaiseState(
            deposit_token_decimals=asset_ledger.decimals(),
            min_investment_amount=cfg.min_investment_amount,
            operator_allocation_unit=cfg.operator_allocation_unit,
        )
        self._investors: Dict[str, InvestorRecord] = {}
        self._events: List[RaiseEvent] = []

        self._claim_ledger.mint(operator, self._state.operator_allocation_unit)
        self._record(
            AllocationMintEvent,
            recipient=operator,
            amount=self._state.operator_allocation_unit,
            reason="construction",
        )

        logger.info(
            "Raise '{}' ({}) opened on {} ({} decimals), operator={}, min investment={}",
            cfg.name,
            cfg.symbol,
            cfg.deposit_token,
            self._state.deposit_token_decimals,
            operator,
            cfg.min_investment_amount,
        )

    # ------------------------------------------------------------------ #
    # Operator actions
    # ------------------------------------------------------------------ #

    def set_cap(self, caller: str, participant: str, new_cap: int) -> InvestorRecord:
        """Whitelist a participant or edit their cap.

        A cap of zero de-lists a participant that has not deposited.

        Args:
            caller: Must be the operator
            participant: Account whose cap is set
            new_cap: New cumulative cap in base-asset units

        Returns:
            Copy of the updated investor record

        Raises:
            UnauthorizedError: If caller is not the operator
            ValueError: If new_cap is negative
            CapUnchangedError: If new_cap equals the current cap
            CapBelowDepositedError: If new_cap is below what was already deposited
        """
        self._require_operator(caller, "set caps")
        if new_cap < 0:
            raise ValueError(f"cap must be non-negative, got {new_cap}")

        record = self._investors.get(participant)
        old_cap = record.cap if record else 0
        deposited = record.deposited if record else 0

        if new_cap == old_cap:
            logger.warning("Cap for {} unchanged at {}", participant, old_cap)
            raise CapUnchangedError(participant, old_cap)
        if new_cap < deposited:
            logger.warning(
                "Cap {} for {} rejected, already deposited {}", new_cap, participant, deposited
            )
            raise CapBelowDepositedError(participant, new_cap, deposited)

        if record is None:
            record = InvestorRecord(participant=participant)
            self._investors[participant] = record
        record.cap = new_cap

        self._record(CapSetEvent, participant=participant, old_cap=old_cap, new_cap=new_cap)
        logger.info("Cap for {} set {} -> {}", participant, old_cap, new_cap)
        return record.model_copy()

    whitelist = set_cap

    def close_raise(self, caller: str) -> None:
        """Stop accepting deposits and mint the second operator allocation.

        Raises:
            UnauthorizedError: If caller is not the operator
            AlreadyClosedError: If the raise was already closed
        """
        self._require_operator(caller, "close the raise")
        if not self._state.is_active:
            logger.warning("Close requested for raise '{}' which is already closed", self.cfg.name)
            raise AlreadyClosedError()

        self._state.close()
        try:
            self._claim_ledger.mint(self._operator, self._state.operator_allocation_unit)
        except Exception:
            # Closing only commits together with the allocation mint
            self._state.status = RaiseStatus.ACTIVE
            raise

        self._record(RaiseClosingEvent, closed_by=caller)
        self._record(
            AllocationMintEvent,
            recipient=self._operator,
            amount=self._state.operator_allocation_unit,
            reason="close",
        )
        logger.info(
            "Raise '{}' closed: {} deposited by {} participants",
            self.cfg.name,
            self.total_deposited,
            sum(1 for record in self._investors.values() if record.deposited),
        )

    def pull_funds(self, caller: str, recipient: str) -> int:
        """Sweep the entire custody balance to a recipient.

        Allowed whether the raise is active or closed.

        Args:
            caller: Must be the operator
            recipient: Account receiving the funds

        Returns:
            Amount moved (0 if custody was empty)

        Raises:
            UnauthorizedError: If caller is not the operator
            TransferFailedError: If the base-asset ledger reports failure
        """
        self._require_operator(caller, "pull funds")

        custody = self.cfg.custody_account
        amount = self._asset_ledger.balance_of(custody)
        if amount > 0:
            if not self._asset_ledger.transfer(custody, recipient, amount):
                logger.warning("Sweep of {} from {} to {} failed", amount, custody, recipient)
                raise TransferFailedError(custody, recipient, amount)

        self._record(FundsWithdrawalEvent, recipient=recipient, amount=amount)
        logger.info("Pulled {} from custody to {}", amount, recipient)
        return amount

    # ------------------------------------------------------------------ #
    # Participant actions
    # ------------------------------------------------------------------ #

    def deposit(self, caller: str, amount: int) -> DepositEvent:
        """Deposit base asset and receive claim tokens.

        Deposits larger than the participant's remaining room are truncated
        to the room; the excess is neither transferred nor minted.

        The participant must have approved the custody account for at least
        the accepted amount on the base-asset ledger.

        If minting fails after the base asset was pulled, the deposit is
        unbooked first and the funds and allowance are then refunded. The
        refund is a transfer like any other, so the participant may re-enter
        deposit from it; that call sees the deposit already unbooked.

        Args:
            caller: Depositing participant
            amount: Requested deposit in base-asset units

        Returns:
            The DepositEvent recorded for this deposit

        Raises:
            ValueError: If amount is negative
            RaiseClosedError: If the raise is closed
            NotWhitelistedError: If the caller's cap is 0
            BelowMinimumInvestmentError: If amount is under the minimum
            CapReachedError: If the caller has no room left
            TransferFailedError: If the base-asset ledger returns failure.
                Exceptions raised by the ledgers propagate unchanged.
            RefundFailedError: If minting failed and the pulled funds could
                not be refunded
        """
        if amount < 0:
            raise ValueError(f"deposit amount must be non-negative, got {amount}")

        if not self._state.is_active:
            logger.warning("Deposit by {} rejected: raise closed", caller)
            raise RaiseClosedError()

        record = self._investors.get(caller)
        if record is None or not record.is_whitelisted:
            logger.warning("Deposit by {} rejected: not whitelisted", caller)
            raise NotWhitelistedError(caller)

        if amount < self._state.min_investment_amount:
            logger.warning(
                "Deposit by {} rejected: {} below minimum {}",
                caller,
                amount,
                self._state.min_investment_amount,
            )
            raise BelowMinimumInvestmentError(amount, self._state.min_investment_amount)

        if record.room == 0:
            logger.warning("Deposit by {} rejected: cap {} reached", caller, record.cap)
            raise CapReachedError(caller, record.cap)

        accepted = min(amount, record.room)
        minted = rescale(accepted, self._state.deposit_token_decimals, CLAIM_TOKEN_DECIMALS)
        if accepted < amount:
            logger.debug(
                "Deposit by {} truncated from {} to remaining room {}", caller, amount, accepted
            )

        # Effects before interactions
        record.deposited += accepted

        custody = self.cfg.custody_account
        try:
            if not self._asset_ledger.transfer_from(custody, caller, custody, accepted):
                raise TransferFailedError(caller, custody, accepted)
        except Exception:
            record.deposited -= accepted
            logger.warning("Deposit by {} aborted: transfer of {} failed", caller, accepted)
            raise

        try:
            self._claim_ledger.mint(caller, minted)
        except Exception as exc:
            record.deposited -= accepted
            logger.warning("Deposit by {} aborted: mint of {} failed", caller, minted)
            if not self._asset_ledger.refund(custody, caller, accepted):
                logger.error(
                    "Refund of {} to {} failed, funds remain in custody", accepted, caller
                )
                raise RefundFailedError(custody, caller, accepted) from exc
            raise

        event = self._record(
            DepositEvent,
            participant=caller,
            requested=amount,
            accepted=accepted,
            minted=minted,
        )
        logger.info(
            "Deposit by {}: accepted {} of {}, minted {}, room left {}",
            caller,
            accepted,
            amount,
            minted,
            record.room,
        )
        return event

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    @property
    def operator(self) -> str:
        return self._operator

    @property
    def custody_account(self) -> str:
        return self.cfg.custody_account

    @property
    def asset_ledger(self) -> BaseAssetLedger:
        return self._asset_ledger

    @property
    def claim_ledger(self) -> ClaimTokenLedger:
        return self._claim_ledger

    @property
    def state(self) -> RaiseState:
        """Copy of the raise state."""
        return self._state.model_copy()

    @property
    def status(self) -> RaiseStatus:
        return RaiseStatus(self._state.status)

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    @property
    def events(self) -> Tuple[RaiseEvent, ...]:
        return tuple(self._events)

    @property
    def total_deposited(self) -> int:
        return sum(record.deposited for record in self._investors.values())

    def investor(self, participant: str) -> InvestorRecord:
        """Copy of a participant's record (an empty record if never whitelisted)."""
        record = self._investors.get(participant)
        if record is None:
            return InvestorRecord(participant=participant)
        return record.model_copy()

    def investors(self) -> List[InvestorRecord]:
        """Copies of all records, in whitelisting order."""
        return [record.model_copy() for record in self._investors.values()]

    def cap_of(self, participant: str) -> int:
        return self.investor(participant).cap

    def deposited_of(self, participant: str) -> int:
        return self.investor(participant).deposited

    def room_of(self, participant: str) -> int:
        return self.investor(participant).room

    def custody_balance(self) -> int:
        """Base-asset balance currently observed in custody."""
        return self._asset_ledger.balance_of(self.cfg.custody_account)

    def snapshot(self) -> RaiseSnapshot:
        """Detached point-in-time copy of the raise for reporting."""
        accounts = [self._operator, *self._investors]
        claim_balances = {
            account: self._claim_ledger.balance_of(account)
            for account in accounts
            if self._claim_ledger.balance_of(account)
        }

        return RaiseSnapshot(
            name=self.cfg.name,
            symbol=self.cfg.symbol,
            operator=self._operator,
            custody_account=self.cfg.custody_account,
            deposit_token=self.cfg.deposit_token,
            deposit_token_decimals=self._state.deposit_token_decimals,
            claim_token_decimals=CLAIM_TOKEN_DECIMALS,
            min_investment_amount=self._state.min_investment_amount,
            operator_allocation_unit=self._state.operator_allocation_unit,
            status=self._state.status,
            investors={
                participant: record.model_copy()
                for participant, record in self._investors.items()
            },
            claim_balances=claim_balances,
            claim_total_supply=self._claim_ledger.total_supply(),
            custody_balance=self.custody_balance(),
            events=list(self._events),
        )

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _require_operator(self, caller: str, action: str) -> None:
        if caller != self._operator:
            logger.warning("Unauthorized attempt by {} to {}", caller, action)
            raise UnauthorizedError(caller, action)

    def _record(self, event_cls, **fields) -> RaiseEvent:
        event = event_cls(sequence=len(self._events) + 1, **fields)
        self._events.append(event)
        return event

    def __repr__(self) -> str:
        return (
            f"RaiseLedger(name={self.cfg.name!r}, status={self.status.value}, "
            f"investors={len(self._investors)}, deposited={self.total_deposited})"
        )
