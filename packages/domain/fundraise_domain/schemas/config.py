"""Configuration for a raise - the construction surface of RaiseLedger.

The AppCFG is the root configuration object. It is usually loaded from YAML:

    fundraise:
      name: Acme Raise Claim
      symbol: ACME-C
      deposit_token: usdc
      min_investment_amount: 1000
      operator_allocation_unit: 1000000000000000000000
    log:
      level: DEBUG
      sink_dir: logs
"""

from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import Field

from .base import DomainModel, AccountId, TokenId, TokenAmount


# =============================================================================
# Raise Configuration
# =============================================================================

class RaiseCFG(DomainModel):
    """Settings consumed by RaiseLedger at construction.

    ``min_investment_amount`` is stored verbatim and enforced as-is, so it
    must already be scaled to the base asset's decimals (1000 means 0.001
    units of a 6-decimal asset).
    """

    name: str = Field(
        min_length=1,
        description="Claim token name"
    )

    symbol: str = Field(
        min_length=1,
        description="Claim token symbol"
    )

    deposit_token: TokenId = Field(
        description="Identity of the base-asset ledger the raise accepts"
    )

    min_investment_amount: TokenAmount = Field(
        default=0,
        description="Smallest admissible deposit in base-asset units"
    )

    operator_allocation_unit: TokenAmount = Field(
        default=0,
        description="Claim tokens (18 decimals) minted to the operator at construction and at close"
    )

    custody_account: AccountId = Field(
        default="raise_custody",
        description="Account on the base-asset ledger that holds deposited funds"
    )


# =============================================================================
# Logging Configuration
# =============================================================================

class LogCFG(DomainModel):
    """Loguru sink settings used by fundraise_domain.logs.configure_logging."""

    level: str = "INFO"
    sink_dir: Optional[str] = Field(
        default=None,
        description="Directory for rotating file logs. None = stderr only"
    )
    rotation: str = "1 day"
    retention: str = "30 days"


# =============================================================================
# Root Configuration
# =============================================================================

class AppCFG(DomainModel):
    """Root configuration: the raise plus logging."""

    fundraise: RaiseCFG
    log: LogCFG = Field(default_factory=LogCFG)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "AppCFG":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML file

        Returns:
            Validated AppCFG

        Raises:
            FileNotFoundError: If the file does not exist
            pydantic.ValidationError: If the content does not match the schema
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        return cls.model_validate(raw)
