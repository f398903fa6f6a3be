"""Raise ledger domain schemas.

This package contains all Pydantic models for the raise ledger domain layer:
- Base types and conventions
- Investor records and raise state
- Events (append-only audit trail)
- Snapshots (read model for reporting)
- Configuration

Usage:
    from fundraise_domain.schemas import (
        InvestorRecord, RaiseState, RaiseStatus,
        DepositEvent, RaiseSnapshot, RaiseCFG, AppCFG
    )
"""

# Base types
from .base import (
    DomainModel,
    TokenAmount,
    TokenDecimals,
    AccountId,
    TokenId,
    CLAIM_TOKEN_DECIMALS,
    MAX_TOKEN_DECIMALS,
)

# Ledger records
from .investors import InvestorRecord
from .raise_state import RaiseState, RaiseStatus

# Events
from .events import (
    RaiseLedgerEvent,
    RaiseEvent,
    CapSetEvent,
    DepositEvent,
    AllocationMintEvent,
    RaiseClosingEvent,
    FundsWithdrawalEvent,
)

# Snapshot
from .snapshot import RaiseSnapshot

# Configuration
from .config import (
    RaiseCFG,
    LogCFG,
    AppCFG,
)

# Workbook
from .workbook import RegisterWorkbookCFG

__all__ = [
    # Base types
    "DomainModel",
    "TokenAmount",
    "TokenDecimals",
    "AccountId",
    "TokenId",
    "CLAIM_TOKEN_DECIMALS",
    "MAX_TOKEN_DECIMALS",
    # Ledger records
    "InvestorRecord",
    "RaiseState",
    "RaiseStatus",
    # Events
    "RaiseLedgerEvent",
    "RaiseEvent",
    "CapSetEvent",
    "DepositEvent",
    "AllocationMintEvent",
    "RaiseClosingEvent",
    "FundsWithdrawalEvent",
    # Snapshot
    "RaiseSnapshot",
    # Configuration
    "RaiseCFG",
    "LogCFG",
    "AppCFG",
    # Workbook
    "RegisterWorkbookCFG",
]
