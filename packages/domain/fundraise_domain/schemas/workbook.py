"""Workbook configuration for the investor register export.

This is what gets passed to the Excel renderer together with a RaiseSnapshot.
"""

from typing import Optional
from pydantic import Field

from .base import DomainModel


class RegisterWorkbookCFG(DomainModel):
    """Which sheets to render and how to label them.

    Examples:
        # Everything (default)
        RegisterWorkbookCFG()

        # Register only, for sharing with investors
        RegisterWorkbookCFG(include_events=False, title="Acme Seed - Allocations")
    """

    title: Optional[str] = Field(
        default=None,
        description="Title shown above the summary. None = snapshot name"
    )

    include_summary: bool = Field(
        default=True,
        description="Render the 'Summary' sheet"
    )

    include_events: bool = Field(
        default=True,
        description="Render the 'Events' sheet with the full audit log"
    )

    author: str = Field(
        default="Fundraise Ledger",
        description="Author used for cell comments"
    )
