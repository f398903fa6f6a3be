"""External ledger interfaces and in-memory reference implementations.

RaiseLedger depends on two fungible-balance stores it does not own:

- BaseAssetLedger: holds the deposit currency and moves it between accounts
- ClaimTokenLedger: issues claim tokens; the raise is its only minter

Both are typed as Protocols so any synchronous, atomic implementation can be
plugged in. The in-memory versions below back the tests and make the package
usable on its own.
"""

from typing import Callable, Dict, Optional, Protocol, Tuple, runtime_checkable

from loguru import logger

from .errors import InsufficientAllowanceError, InsufficientBalanceError
from .schemas.base import CLAIM_TOKEN_DECIMALS

# Called after balances move: (sender, recipient, amount)
TransferHook = Callable[[str, str, int], None]


# =============================================================================
# Interfaces
# =============================================================================

@runtime_checkable
class BaseAssetLedger(Protocol):
    """Fungible ledger holding the base asset.

    transfer/transfer_from return True on success. Implementations may
    either return False or raise on failure; RaiseLedger treats both as a
    hard failure of the calling operation.
    """

    token_id: str

    def decimals(self) -> int: ...

    def balance_of(self, holder: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool: ...

    def refund(self, spender: str, owner: str, amount: int) -> bool:
        """Undo a transfer_from: move ``amount`` from ``spender`` back to
        ``owner`` and give the spent allowance back, as one step."""
        ...


@runtime_checkable
class ClaimTokenLedger(Protocol):
    """Fungible ledger of claim tokens, fixed at 18 decimals."""

    name: str
    symbol: str

    def decimals(self) -> int: ...

    def mint(self, to: str, amount: int) -> None: ...

    def balance_of(self, holder: str) -> int: ...

    def total_supply(self) -> int: ...


# =============================================================================
# In-memory base asset
# =============================================================================

class InMemoryAssetLedger:
    """Dict-backed base-asset ledger with ERC-20 style allowances.

    Example:
        usdc = InMemoryAssetLedger("usdc", decimals=6)
        usdc.credit("alice", 5_000 * 10**6)
        usdc.approve("alice", "raise_custody", 5_000 * 10**6)
    """

    def __init__(self, token_id: str, decimals: int, on_transfer: Optional[TransferHook] = None):
        """Initialize an empty ledger.

        Args:
            token_id: Identity of the asset (what RaiseCFG.deposit_token refers to)
            decimals: Decimal places of the asset
            on_transfer: Optional hook invoked after every successful transfer,
                in the middle of the caller's operation
        """
        if decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {decimals}")
        self.token_id = token_id
        self._decimals = decimals
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self.on_transfer = on_transfer

    def decimals(self) -> int:
        return self._decimals

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def total_supply(self) -> int:
        return sum(self._balances.values())

    def credit(self, holder: str, amount: int) -> None:
        """Create new units in a holder's balance (test and setup faucet)."""
        self._check_amount(amount)
        self._balances[holder] = self.balance_of(holder) + amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Set how much ``spender`` may move out of ``owner``'s balance."""
        self._check_amount(amount)
        self._allowances[(owner, spender)] = amount

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move funds the sender holds.

        Raises:
            InsufficientBalanceError: If the sender's balance is too low
        """
        self._check_amount(amount)
        self._move(sender, recipient, amount)
        return True

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        """Move funds on behalf of ``owner`` using ``spender``'s allowance.

        Raises:
            InsufficientAllowanceError: If the allowance is too low
            InsufficientBalanceError: If the owner's balance is too low
        """
        self._check_amount(amount)
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientAllowanceError(owner, spender, allowed, amount)
        balance = self.balance_of(owner)
        if balance < amount:
            raise InsufficientBalanceError(owner, balance, amount)

        self._allowances[(owner, spender)] = allowed - amount
        try:
            self._move(owner, recipient, amount)
        except Exception:
            self._allowances[(owner, spender)] = self.allowance(owner, spender) + amount
            raise
        return True

    def refund(self, spender: str, owner: str, amount: int) -> bool:
        """Return funds pulled with transfer_from and restore the allowance.

        The allowance is restored before the move, so a transfer hook that
        re-enters sees the owner's balance and allowance as they were
        before the pull.

        Raises:
            InsufficientBalanceError: If the spender no longer holds amount
        """
        self._check_amount(amount)
        self._allowances[(owner, spender)] = self.allowance(owner, spender) + amount
        try:
            self._move(spender, owner, amount)
        except Exception:
            self._allowances[(owner, spender)] = self.allowance(owner, spender) - amount
            raise
        return True

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalanceError(sender, balance, amount)

        self._balances[sender] = balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        logger.trace("{} transfer {} -> {}: {}", self.token_id, sender, recipient, amount)

        if self.on_transfer is not None:
            try:
                self.on_transfer(sender, recipient, amount)
            except Exception:
                # A failing hook aborts the transfer; undo by delta so moves
                # made by nested calls inside the hook survive
                self._balances[recipient] -= amount
                self._balances[sender] += amount
                raise

    @staticmethod
    def _check_amount(amount: int) -> None:
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")


# =============================================================================
# In-memory claim token
# =============================================================================

class InMemoryClaimToken:
    """Mint-only claim token ledger with 18 decimals."""

    def __init__(self, name: str, symbol: str):
        self.name = name
        self.symbol = symbol
        self._balances: Dict[str, int] = {}
        self._total_supply = 0

    def decimals(self) -> int:
        return CLAIM_TOKEN_DECIMALS

    def mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"mint amount must be non-negative, got {amount}")
        self._balances[to] = self.balance_of(to) + amount
        self._total_supply += amount

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def total_supply(self) -> int:
        return self._total_supply

    def balances(self) -> Dict[str, int]:
        """Copy of all non-zero balances."""
        return {holder: amount for holder, amount in self._balances.items() if amount}
