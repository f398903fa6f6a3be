"""Fundraise Domain - capital-raise ledger and reporting.

This package provides the core of a whitelisted capital raise:
- Investor caps and deposits with partial-fill deposit logic
- Proportional claim-token issuance across decimal precisions
- One-way raise lifecycle (active -> closed) under a single operator
- Event log, snapshots and DataFrame reporting blocks

The domain layer is designed to be:
- Framework-agnostic (external ledgers are plain Protocols)
- Testable (pure Python with Pydantic validation)
- Auditable (every committed change is an event)
"""

from .schemas import *  # noqa: F403, F401
from .errors import (  # noqa: F401
    RaiseLedgerError,
    UnauthorizedError,
    CapUnchangedError,
    CapBelowDepositedError,
    RaiseClosedError,
    AlreadyClosedError,
    NotWhitelistedError,
    BelowMinimumInvestmentError,
    CapReachedError,
    TransferFailedError,
    RefundFailedError,
    ConfigurationError,
    LedgerError,
    InsufficientBalanceError,
    InsufficientAllowanceError,
)
from .ledgers import (  # noqa: F401
    BaseAssetLedger,
    ClaimTokenLedger,
    InMemoryAssetLedger,
    InMemoryClaimToken,
)
from .ledger import RaiseLedger  # noqa: F401
from .units import rescale  # noqa: F401
from .logs import configure_logging  # noqa: F401

__version__ = "0.1.0"
