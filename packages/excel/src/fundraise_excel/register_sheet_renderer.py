"""Investor register workbook renderer."""

from __future__ import annotations

from typing import List, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.comments import Comment
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from fundraise_domain.blocks import (
    BlockContext,
    BlockExecutor,
    EventLogBlock,
    InvestorRegisterBlock,
    RaiseSummaryBlock,
)
from fundraise_domain.schemas import RaiseSnapshot, RegisterWorkbookCFG

REGISTER_HEADERS = {
    "participant": "Participant",
    "cap": "Cap",
    "deposited": "Deposited",
    "room": "Room",
    "fill_pct": "% Filled",
    "claim_balance": "Claim Tokens",
    "ownership_pct": "% of Claims",
}

# Register columns that get a SUM in the totals row
SUMMED_COLUMNS = ("cap", "deposited", "room", "claim_balance", "ownership_pct")

SUMMARY_LABELS = [
    ("status", "Status"),
    ("whitelisted", "Whitelisted participants"),
    ("depositors", "Participants with deposits"),
    ("total_cap", "Total cap"),
    ("total_deposited", "Total deposited"),
    ("custody_balance", "Custody balance"),
    ("fill_pct", "% of total cap filled"),
    ("claim_supply", "Claim token supply"),
    ("operator_claims", "Operator claim tokens"),
]


class RegisterSheetRenderer:
    """Render a RaiseSnapshot as Summary, Investors and Events sheets."""

    def __init__(self, snapshot: RaiseSnapshot, config: Optional[RegisterWorkbookCFG] = None):
        self.snapshot = snapshot
        self.config = config or RegisterWorkbookCFG()

        # Define styles
        self.bold_font = Font(bold=True)
        self.title_font = Font(bold=True, size=14)

        # Header styling
        self.header_font = Font(bold=True, color="FFFFFF")  # White text on dark blue
        self.header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")

        # Totals row styling
        self.totals_fill = PatternFill(start_color="E7E6E6", end_color="E7E6E6", fill_type="solid")
        self.top_border = Border(top=Side(style='medium'))

        self.thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        self.center_align = Alignment(horizontal='center', vertical='center')
        self.right_align = Alignment(horizontal='right')

        self.amount_format = "#,##0.00"
        self.pct_format = "0.00"

    def render(self, output_path: str) -> str:
        wb = self.build_workbook()
        wb.save(output_path)
        return output_path

    def build_workbook(self) -> Workbook:
        context = self._compute()

        wb = Workbook()
        wb.remove(wb.active)

        if self.config.include_summary:
            self._render_summary_sheet(wb, context.get("raise_summary"))
        self._render_investors_sheet(wb, context.get("investor_register"))
        if self.config.include_events:
            self._render_events_sheet(wb, context.get("raise_events"))

        return wb

    def _compute(self) -> BlockContext:
        context = BlockContext()
        context.set("raise_snapshot", self.snapshot)
        executor = BlockExecutor([
            RaiseSummaryBlock(),
            InvestorRegisterBlock(),
            EventLogBlock(),
        ])
        return executor.execute(context)

    # ------------------------------------------------------------------ #
    # Sheets
    # ------------------------------------------------------------------ #

    def _render_summary_sheet(self, wb: Workbook, summary: pd.DataFrame) -> None:
        ws = wb.create_sheet("Summary")
        row = summary.iloc[0]

        ws["A1"] = self.config.title or f"{self.snapshot.name} ({self.snapshot.symbol})"
        ws["A1"].font = self.title_font

        ws["A2"] = "Deposit token"
        ws["B2"] = self.snapshot.deposit_token
        ws["A3"] = "Minimum investment"
        ws["B3"] = self.snapshot.min_investment_amount
        ws["B3"].comment = Comment(
            f"Smallest ledger units ({self.snapshot.deposit_token_decimals} decimals)",
            self.config.author,
        )

        for offset, (key, label) in enumerate(SUMMARY_LABELS):
            excel_row = 5 + offset
            ws.cell(row=excel_row, column=1, value=label).font = self.bold_font
            value = row[key]
            cell = ws.cell(row=excel_row, column=2, value=value.item() if hasattr(value, "item") else value)
            if key == "fill_pct":
                cell.number_format = self.pct_format
            elif key != "status" and isinstance(cell.value, float):
                cell.number_format = self.amount_format
            cell.alignment = self.right_align

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 24

    def _render_investors_sheet(self, wb: Workbook, register: pd.DataFrame) -> None:
        ws = wb.create_sheet("Investors")
        columns = list(REGISTER_HEADERS)

        self._write_header(ws, [REGISTER_HEADERS[c] for c in columns])

        for idx, record in enumerate(register.itertuples(index=False), start=2):
            for col_idx, column in enumerate(columns, start=1):
                value = getattr(record, column)
                cell = ws.cell(row=idx, column=col_idx, value=value)
                cell.border = self.thin_border
                if column.endswith("_pct"):
                    cell.number_format = self.pct_format
                elif column != "participant":
                    cell.number_format = self.amount_format

        totals_row = len(register) + 2
        ws.cell(row=totals_row, column=1, value="Total").font = self.bold_font
        for col_idx, column in enumerate(columns, start=1):
            cell = ws.cell(row=totals_row, column=col_idx)
            cell.fill = self.totals_fill
            cell.border = self.top_border
            if column in SUMMED_COLUMNS and len(register) > 0:
                letter = get_column_letter(col_idx)
                cell.value = f"=SUM({letter}2:{letter}{totals_row - 1})"
                cell.font = self.bold_font
                cell.number_format = self.pct_format if column.endswith("_pct") else self.amount_format
            elif column in SUMMED_COLUMNS:
                cell.value = 0

        ws.freeze_panes = "B2"
        self._autosize(ws, len(columns))

    def _render_events_sheet(self, wb: Workbook, events: pd.DataFrame) -> None:
        ws = wb.create_sheet("Events")
        columns = list(events.columns)
        self._write_header(ws, columns)

        for idx, record in enumerate(events.itertuples(index=False), start=2):
            for col_idx, value in enumerate(record, start=1):
                if value is None or (isinstance(value, float) and pd.isna(value)):
                    continue
                # Raw ledger amounts exceed Excel's 15 significant digits
                if isinstance(value, int) and col_idx > 1:
                    value = str(value)
                ws.cell(row=idx, column=col_idx, value=value)

        ws.freeze_panes = "A2"
        self._autosize(ws, len(columns))

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _write_header(self, ws, labels: List[str]) -> None:
        for col_idx, label in enumerate(labels, start=1):
            cell = ws.cell(row=1, column=col_idx, value=label)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.center_align

    @staticmethod
    def _autosize(ws, column_count: int) -> None:
        for col_idx in range(1, column_count + 1):
            letter = get_column_letter(col_idx)
            longest = max(
                (len(str(cell.value)) for cell in ws[letter] if cell.value is not None),
                default=8,
            )
            ws.column_dimensions[letter].width = min(max(longest + 2, 10), 48)


__all__ = ["RegisterSheetRenderer"]
