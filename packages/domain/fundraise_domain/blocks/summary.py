"""Raise summary computation block."""

from typing import List

import pandas as pd

from .base import Block, BlockContext
from .register import to_units
from ..schemas import RaiseSnapshot, RaiseStatus


class RaiseSummaryBlock(Block):
    """Computes headline metrics for a raise.

    Inputs (from context):
        - raise_snapshot: RaiseSnapshot
        - investor_register: output of InvestorRegisterBlock

    Outputs (to context):
        - raise_summary: DataFrame with a single row:
            * name, symbol, status
            * whitelisted: Participants with a non-zero cap
            * depositors: Participants with a non-zero deposit
            * total_cap, total_deposited, custody_balance: whole base-asset units
            * fill_pct: total_deposited / total_cap * 100
            * claim_supply, operator_claims: whole claim units
    """

    def __init__(self, snapshot_key: str = "raise_snapshot"):
        self.snapshot_key = snapshot_key

    def inputs(self) -> List[str]:
        return [self.snapshot_key, "investor_register"]

    def outputs(self) -> List[str]:
        return ["raise_summary"]

    def execute(self, context: BlockContext) -> None:
        snapshot: RaiseSnapshot = context.get(self.snapshot_key)
        register: pd.DataFrame = context.get("investor_register")

        asset_decimals = snapshot.deposit_token_decimals
        claim_decimals = snapshot.claim_token_decimals
        total_cap = snapshot.total_cap
        total_deposited = snapshot.total_deposited

        summary = pd.DataFrame([{
            "name": snapshot.name,
            "symbol": snapshot.symbol,
            "status": RaiseStatus(snapshot.status).value,
            "whitelisted": snapshot.whitelisted_count,
            "depositors": int((register["deposited"] > 0).sum()) if not register.empty else 0,
            "total_cap": to_units(total_cap, asset_decimals),
            "total_deposited": to_units(total_deposited, asset_decimals),
            "custody_balance": to_units(snapshot.custody_balance, asset_decimals),
            "fill_pct": total_deposited / total_cap * 100 if total_cap > 0 else 0.0,
            "claim_supply": to_units(snapshot.claim_total_supply, claim_decimals),
            "operator_claims": to_units(snapshot.operator_claims, claim_decimals),
        }])

        context.set("raise_summary", summary)
