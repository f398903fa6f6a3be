"""Event log computation block.

Flattens the ledger's event log into one row per event. Amounts stay in
smallest ledger units so the table is an exact audit record.
"""

from typing import List

import pandas as pd

from .base import Block, BlockContext
from ..schemas import RaiseSnapshot

EVENT_COLUMNS = [
    "sequence",
    "event_type",
    "account",
    "old_cap",
    "new_cap",
    "requested",
    "accepted",
    "minted",
    "amount",
    "reason",
]


class EventLogBlock(Block):
    """Converts the snapshot's events to the raise_events DataFrame.

    ``account`` is whichever account the event concerns: the participant
    for cap and deposit events, the recipient for mints and withdrawals,
    and the closer for the closing event. Fields an event type does not
    carry are None.
    """

    def __init__(self, snapshot_key: str = "raise_snapshot"):
        self.snapshot_key = snapshot_key

    def inputs(self) -> List[str]:
        return [self.snapshot_key]

    def outputs(self) -> List[str]:
        return ["raise_events"]

    def execute(self, context: BlockContext) -> None:
        snapshot: RaiseSnapshot = context.get(self.snapshot_key)

        rows = []
        for event in sorted(snapshot.events, key=lambda e: e.sequence):
            data = event.model_dump()
            data["account"] = (
                data.pop("participant", None)
                or data.pop("recipient", None)
                or data.pop("closed_by", None)
            )
            rows.append({column: data.get(column) for column in EVENT_COLUMNS})

        # object dtype keeps exact ints and None instead of lossy float64 and NaN
        context.set("raise_events", pd.DataFrame(rows, columns=EVENT_COLUMNS, dtype=object))
