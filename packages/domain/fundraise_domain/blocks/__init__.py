"""Computation blocks for raise reporting.

This package contains the computation layer that transforms a RaiseSnapshot
into DataFrames suitable for Excel rendering or other consumption.

Architecture:
    RaiseLedger -> RaiseSnapshot (schema) -> Blocks (computation) -> DataFrames

Available blocks:
- InvestorRegisterBlock: Per-participant caps, deposits and claims
- RaiseSummaryBlock: Headline metrics for the raise
- EventLogBlock: Flat audit log of ledger events

Usage:
    from fundraise_domain.blocks import BlockExecutor, BlockContext, InvestorRegisterBlock

    context = BlockContext()
    context.set("raise_snapshot", ledger.snapshot())
    BlockExecutor([InvestorRegisterBlock()]).execute(context)

    register_df = context.get("investor_register")
"""

from .base import Block, BlockExecutor, BlockContext, CircularDependencyError
from .register import InvestorRegisterBlock
from .summary import RaiseSummaryBlock
from .event_log import EventLogBlock

__all__ = [
    "Block",
    "BlockExecutor",
    "BlockContext",
    "CircularDependencyError",
    "InvestorRegisterBlock",
    "RaiseSummaryBlock",
    "EventLogBlock",
]
