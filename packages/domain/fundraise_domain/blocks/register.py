"""Investor register computation block.

Converts a RaiseSnapshot into a per-participant DataFrame for Excel
rendering or analysis.
"""

from decimal import Decimal
from typing import List

import pandas as pd

from .base import Block, BlockContext
from ..schemas import RaiseSnapshot

REGISTER_COLUMNS = [
    "participant",
    "cap",
    "deposited",
    "room",
    "fill_pct",
    "claim_balance",
    "ownership_pct",
]


def to_units(amount: int, decimals: int) -> float:
    """Express a smallest-unit integer amount in whole units."""
    return float(Decimal(amount).scaleb(-decimals))


class InvestorRegisterBlock(Block):
    """Converts RaiseSnapshot to the investor register DataFrame.

    Inputs (from context):
        - raise_snapshot: RaiseSnapshot to convert

    Outputs (to context):
        - investor_register: DataFrame with columns:
            * participant: Participant account
            * cap: Cap in whole base-asset units
            * deposited: Accepted deposits in whole base-asset units
            * room: Remaining room in whole base-asset units
            * fill_pct: deposited / cap * 100
            * claim_balance: Claim tokens held, in whole claim units
            * ownership_pct: Share of total claim supply * 100 (operator
              allocation included in the denominator)

    Rows are sorted by deposited descending, then participant.
    """

    def __init__(self, snapshot_key: str = "raise_snapshot"):
        self.snapshot_key = snapshot_key

    def inputs(self) -> List[str]:
        return [self.snapshot_key]

    def outputs(self) -> List[str]:
        return ["investor_register"]

    def execute(self, context: BlockContext) -> None:
        snapshot: RaiseSnapshot = context.get(self.snapshot_key)
        context.set("investor_register", self._compute_register(snapshot))

    def _compute_register(self, snapshot: RaiseSnapshot) -> pd.DataFrame:
        asset_decimals = snapshot.deposit_token_decimals
        claim_decimals = snapshot.claim_token_decimals
        supply = snapshot.claim_total_supply

        rows = []
        for record in snapshot.investors.values():
            claims = snapshot.claim_balance(record.participant)
            rows.append({
                "participant": record.participant,
                "cap": to_units(record.cap, asset_decimals),
                "deposited": to_units(record.deposited, asset_decimals),
                "room": to_units(record.room, asset_decimals),
                "fill_pct": (
                    float(Decimal(record.deposited) / Decimal(record.cap) * 100)
                    if record.cap > 0
                    else 0.0
                ),
                "claim_balance": to_units(claims, claim_decimals),
                "ownership_pct": (
                    float(Decimal(claims) / Decimal(supply) * 100)
                    if supply > 0
                    else 0.0
                ),
            })

        df = pd.DataFrame(rows, columns=REGISTER_COLUMNS)
        if not df.empty:
            df = df.sort_values(
                ["deposited", "participant"], ascending=[False, True]
            ).reset_index(drop=True)
        return df
