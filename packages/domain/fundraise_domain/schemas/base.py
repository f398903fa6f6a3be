"""Base classes and type system for capital-raise domain models.

This module provides the foundational types, validators, and base classes
used throughout the raise ledger schema system.

Amounts are integers expressed in the smallest unit of the ledger that holds
them (like wei for an 18-decimal token). Python ints are unbounded, so
256-bit balances need no special handling.
"""

from typing import Annotated
from pydantic import BaseModel, Field, ConfigDict

# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all domain models.

    Provides common configuration for all Pydantic models in the domain layer:
    - Validation on assignment for runtime safety
    - Enum value serialization
    """

    model_config = ConfigDict(
        frozen=False,  # Ledger records are updated in place by the core
        validate_assignment=True,  # Validate on field assignment
        use_enum_values=True,  # Use enum values in JSON
        arbitrary_types_allowed=True,
    )


# =============================================================================
# Constants
# =============================================================================

CLAIM_TOKEN_DECIMALS = 18

# 10**77 is the largest power of ten below 2**256
MAX_TOKEN_DECIMALS = 77


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

TokenAmount = Annotated[
    int,
    Field(ge=0, description="Token amount in smallest ledger units (non-negative)")
]

TokenDecimals = Annotated[
    int,
    Field(ge=0, le=MAX_TOKEN_DECIMALS, description="Decimal places of a fungible ledger")
]


# =============================================================================
# ID Conventions
# =============================================================================

AccountId = Annotated[
    str,
    Field(
        min_length=1,
        description="Identity of a ledger account (participant, operator, custody)"
    )
]

TokenId = Annotated[
    str,
    Field(
        min_length=1,
        description="Identity (address) of a fungible ledger, e.g. 'usdc'"
    )
]


# =============================================================================
# ID Examples and Conventions
# =============================================================================
#
# Account IDs:
#   - "operator" - The raise operator
#   - "0x5aAe...f3" - Any opaque wallet identity is accepted
#   - "raise_custody" - Default custody account of the raise itself
#
# Token IDs:
#   - "usdc" - 6 decimal stablecoin used as base asset
#
# =============================================================================
