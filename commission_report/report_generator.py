"""Report export for Dealership Commission Reports"""
import pandas as pd
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from .models import CommissionReportSnapshot, CommissionSalespersonSnapshot
from config import COMPANY_NAME, EXCEL_STYLES

COLUMNS = ['#', 'Date', 'Account', 'Vehicle', 'VIN', 'Down Payment',
           'Base Commission', 'Commission', 'Override', 'Notes']
CURRENCY_COLUMNS = {'Down Payment', 'Base Commission', 'Commission'}


class CommissionReportExporter:
    """
    Exports a commission report snapshot to Excel or CSV.

    Exports are refused until the collections bonus for Key is selected and
    locked, unless ``require_complete`` is False (drafts).
    """

    def __init__(self, snapshot: CommissionReportSnapshot, require_complete: bool = True):
        self.snapshot = snapshot
        self.require_complete = require_complete

    def _check_complete(self) -> None:
        if self.require_complete and not self.snapshot.totals.collections_complete:
            raise ValueError("Select and lock a collections bonus for Key before exporting the commission report.")

    @staticmethod
    def _row_values(person: CommissionSalespersonSnapshot) -> list:
        return [
            {
                '#': row.sequence,
                'Date': row.sale_date_display,
                'Account': row.account_number,
                'Vehicle': row.vehicle,
                'VIN': row.vin_last4,
                'Down Payment': row.true_down_payment,
                'Base Commission': round(row.base_commission, 2),
                'Commission': row.adjusted_commission,
                'Override': row.override_details or ('Yes' if row.override_applied else ''),
                'Notes': row.notes,
            }
            for row in person.rows
        ]

    def to_dataframe(self) -> pd.DataFrame:
        """
        One line per report row, with the salesperson as the first column.
        """
        data = []
        for person in self.snapshot.salespeople:
            for values in self._row_values(person):
                data.append({'Salesperson': person.salesperson, **values})
        return pd.DataFrame(data, columns=['Salesperson'] + COLUMNS)

    def summary_lines(self, person: CommissionSalespersonSnapshot) -> list:
        """Label/amount pairs printed under a salesperson's rows."""
        lines = [('Total Commission', person.total_adjusted_commission)]
        if person.is_house:
            lines.append(('Collections Bonus', person.collections_bonus or 0))
            lines.append((f"Weekly Sales ({person.weekly_sales_count or 0} deals, "
                          f"{person.weekly_sales_count_over_threshold or 0} over)",
                          person.weekly_sales_bonus or 0))
            lines.append(('Total Payout', person.total_payout))
        return lines

    def export_csv(self, filepath: str) -> None:
        self._check_complete()
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        self.to_dataframe().to_csv(filepath, index=False)

    def export_excel(self, filepath: str) -> None:
        """
        Export report to Excel file, one section per salesperson.

        Args:
            filepath: Path to save the Excel file
        """
        self._check_complete()

        wb = Workbook()
        ws = wb.active
        ws.title = "Commission Report"

        # Styles
        header_fill = PatternFill(start_color=EXCEL_STYLES['header_bg_color'],
                                  end_color=EXCEL_STYLES['header_bg_color'],
                                  fill_type='solid')
        summary_fill = PatternFill(start_color=EXCEL_STYLES['summary_bg_color'],
                                   end_color=EXCEL_STYLES['summary_bg_color'],
                                   fill_type='solid')
        header_font = Font(name=EXCEL_STYLES['font_name'],
                           size=EXCEL_STYLES['font_size'],
                           bold=True)
        title_font = Font(name=EXCEL_STYLES['font_name'],
                          size=14,
                          bold=True)
        border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        # Title section
        ws['A1'] = COMPANY_NAME
        ws['A1'].font = title_font
        ws['A2'] = f"Commission Report: {self.snapshot.period_start} → {self.snapshot.period_end}"
        ws['A2'].font = Font(size=12, bold=True)
        ws['A3'] = f"Generated: {self.snapshot.generated_at}"

        current_row = 5
        for person in self.snapshot.salespeople:
            ws.cell(row=current_row, column=1, value=person.salesperson).font = Font(size=12, bold=True)
            current_row += 1

            # Headers
            for col_idx, col_name in enumerate(COLUMNS, 1):
                cell = ws.cell(row=current_row, column=col_idx, value=col_name)
                cell.fill = header_fill
                cell.font = header_font
                cell.border = border
                cell.alignment = Alignment(horizontal='center')
            current_row += 1

            # Data rows
            for values in self._row_values(person):
                for col_idx, col_name in enumerate(COLUMNS, 1):
                    cell = ws.cell(row=current_row, column=col_idx, value=values[col_name])
                    cell.border = border
                    if col_name in CURRENCY_COLUMNS:
                        cell.alignment = Alignment(horizontal='right')
                        cell.number_format = '$#,##0.00'
                current_row += 1

            # Summary lines
            for label, amount in self.summary_lines(person):
                label_cell = ws.cell(row=current_row, column=7, value=label)
                amount_cell = ws.cell(row=current_row, column=8, value=amount)
                for cell in (label_cell, amount_cell):
                    cell.fill = summary_fill
                    cell.font = Font(bold=True)
                    cell.border = border
                amount_cell.number_format = '$#,##0.00'
                current_row += 1

            current_row += 1

        # Adjust column widths
        column_widths = [5, 12, 12, 28, 8, 14, 15, 14, 24, 40]
        for idx, width in enumerate(column_widths, 1):
            ws.column_dimensions[get_column_letter(idx)].width = width

        # Save
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        wb.save(filepath)
