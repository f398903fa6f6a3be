"""Excel export for raise ledger snapshots.

Usage:
    from fundraise_excel import RegisterSheetRenderer

    RegisterSheetRenderer(ledger.snapshot()).render("register.xlsx")
"""

from .register_sheet_renderer import RegisterSheetRenderer

__all__ = ["RegisterSheetRenderer"]
