"""Exceptions raised by the raise ledger.

Every precondition violation aborts the whole operation with no partial
effect. None of these are retried by the ledger; the caller corrects the
violated precondition and submits again.

Exception tree:
    RaiseLedgerError
        UnauthorizedError
        CapUnchangedError
        CapBelowDepositedError
        RaiseClosedError
            AlreadyClosedError
        NotWhitelistedError
        BelowMinimumInvestmentError
        CapReachedError
        TransferFailedError
            RefundFailedError
        ConfigurationError
    LedgerError
        InsufficientBalanceError
        InsufficientAllowanceError
"""


class RaiseLedgerError(Exception):
    """Base class for errors raised by RaiseLedger."""
    pass


# =============================================================================
# Authorization
# =============================================================================

class UnauthorizedError(RaiseLedgerError):
    """Raised when a non-operator calls an operator-only action."""

    def __init__(self, caller: str, action: str):
        self.caller = caller
        self.action = action
        super().__init__(f"'{caller}' is not the operator and cannot {action}")


# =============================================================================
# Whitelist
# =============================================================================

class CapUnchangedError(RaiseLedgerError):
    """Raised when a new cap equals the existing cap."""

    def __init__(self, participant: str, cap: int):
        self.participant = participant
        self.cap = cap
        super().__init__(f"Cap for '{participant}' is already {cap}")


class CapBelowDepositedError(RaiseLedgerError):
    """Raised when a new cap is below what the participant already deposited."""

    def __init__(self, participant: str, cap: int, deposited: int):
        self.participant = participant
        self.cap = cap
        self.deposited = deposited
        super().__init__(
            f"Cap {cap} for '{participant}' is below deposited amount {deposited}"
        )


# =============================================================================
# Deposits
# =============================================================================

class RaiseClosedError(RaiseLedgerError):
    """Raised when a deposit is attempted after the raise was closed."""

    def __init__(self, message: str = "Raise is closed"):
        super().__init__(message)


class AlreadyClosedError(RaiseClosedError):
    """Raised when the operator closes a raise that is already closed."""

    def __init__(self):
        super().__init__("Raise is already closed")


class NotWhitelistedError(RaiseLedgerError):
    """Raised when a participant with cap 0 deposits."""

    def __init__(self, participant: str):
        self.participant = participant
        super().__init__(f"'{participant}' is not whitelisted")


class BelowMinimumInvestmentError(RaiseLedgerError):
    """Raised when a deposit is under the configured minimum."""

    def __init__(self, amount: int, minimum: int):
        self.amount = amount
        self.minimum = minimum
        super().__init__(f"Deposit {amount} is below the minimum investment {minimum}")


class CapReachedError(RaiseLedgerError):
    """Raised when a participant has no room left under their cap."""

    def __init__(self, participant: str, cap: int):
        self.participant = participant
        self.cap = cap
        super().__init__(f"'{participant}' has already deposited their full cap of {cap}")


# =============================================================================
# External ledgers and setup
# =============================================================================

class TransferFailedError(RaiseLedgerError):
    """Raised when the base-asset ledger reports a failed transfer."""

    def __init__(self, sender: str, recipient: str, amount: int):
        self.sender = sender
        self.recipient = recipient
        self.amount = amount
        super().__init__(f"Transfer of {amount} from '{sender}' to '{recipient}' failed")


class RefundFailedError(TransferFailedError):
    """Raised when funds pulled for an aborted deposit could not be returned.

    The amount is left in custody and is not booked as a deposit; the
    operator has to return it by hand.
    """

    def __init__(self, custody: str, participant: str, amount: int):
        self.participant = participant
        super().__init__(custody, participant, amount)


class ConfigurationError(RaiseLedgerError):
    """Raised when the ledger is constructed with inconsistent collaborators."""
    pass


class LedgerError(Exception):
    """Base class for errors raised by the in-memory token ledgers."""
    pass


class InsufficientBalanceError(LedgerError):
    """Raised when a holder's balance cannot cover a transfer."""

    def __init__(self, holder: str, balance: int, amount: int):
        self.holder = holder
        self.balance = balance
        self.amount = amount
        super().__init__(f"'{holder}' has balance {balance}, needs {amount}")


class InsufficientAllowanceError(LedgerError):
    """Raised when a spender's allowance cannot cover a transfer_from."""

    def __init__(self, owner: str, spender: str, allowance: int, amount: int):
        self.owner = owner
        self.spender = spender
        self.allowance = allowance
        self.amount = amount
        super().__init__(
            f"'{spender}' may spend {allowance} of '{owner}', needs {amount}"
        )
