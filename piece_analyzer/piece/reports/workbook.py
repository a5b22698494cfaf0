"""Excel workbook export for PIECE Analyzer.

Creates an .xlsx workbook with:
- Summary: project inputs and the NPV evaluation
- Cash_Flows: period, amount, discount factor and present value per flow,
  with live formulas so the NPV can be audited in Excel
- Terminals: one row per terminal berth of the reconciled scenario
- Comparison: scenarios ranked by NPV
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import xlsxwriter

from piece.models.project import NpvEvaluation, Project
from piece.models.terminals import FlatTerminalConfig


def export_workbook(
    output_path: str,
    project: Project,
    evaluation: Optional[NpvEvaluation] = None,
    flat_terminals: Optional[List[FlatTerminalConfig]] = None,
    comparison: Optional[Sequence[Tuple[str, NpvEvaluation]]] = None,
) -> str:
    """Write the project workbook.

    Args:
        output_path: Target path; the suffix is forced to .xlsx.
        project: Project exported.
        evaluation: NPV evaluation for the Summary and Cash_Flows sheets.
        flat_terminals: Reconciled terminals for the Terminals sheet.
        comparison: (scenario name, evaluation) pairs, best first.

    Returns:
        Path of the written workbook.
    """
    if not output_path.endswith(".xlsx"):
        output_path = str(Path(output_path).with_suffix(".xlsx"))
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    workbook = xlsxwriter.Workbook(output_path)
    fmt = _create_formats(workbook)

    ws_summary = workbook.add_worksheet("Summary")
    ws_cf = workbook.add_worksheet("Cash_Flows")
    ws_terminals = workbook.add_worksheet("Terminals")
    ws_compare = workbook.add_worksheet("Comparison")

    npv_cell = _create_cashflows_sheet(ws_cf, fmt, evaluation)
    _create_summary_sheet(ws_summary, fmt, project, evaluation, npv_cell)
    _create_terminals_sheet(ws_terminals, fmt, flat_terminals or [])
    _create_comparison_sheet(ws_compare, fmt, comparison or [])

    workbook.close()
    return output_path


# =============================================================================
# FORMATS
# =============================================================================

def _create_formats(wb) -> dict:
    f = {}
    blue = '#1565C0'
    lblue = '#E3F2FD'
    grn = '#E8F5E9'

    f['title'] = wb.add_format({'bold': True, 'font_size': 16, 'font_color': blue})
    f['subtitle'] = wb.add_format({'italic': True, 'font_color': '#555555', 'font_size': 10})
    f['header'] = wb.add_format({'bold': True, 'font_color': 'white', 'bg_color': blue,
                                 'align': 'center', 'border': 1, 'valign': 'vcenter'})
    f['label'] = wb.add_format({'bold': True, 'border': 1})
    f['text'] = wb.add_format({'border': 1})
    f['center'] = wb.add_format({'align': 'center', 'border': 1})
    f['currency'] = wb.add_format({'num_format': '$#,##0', 'border': 1})
    f['percent'] = wb.add_format({'num_format': '0.00%', 'border': 1})
    f['number'] = wb.add_format({'num_format': '#,##0', 'border': 1})
    f['factor'] = wb.add_format({'num_format': '0.0000', 'border': 1})
    f['fml_cur'] = wb.add_format({'bg_color': grn, 'border': 1, 'num_format': '$#,##0', 'bold': True})
    f['result_big'] = wb.add_format({'bold': True, 'font_size': 13, 'bg_color': lblue,
                                     'border': 2, 'num_format': '$#,##0', 'align': 'center'})
    f['result_pct'] = wb.add_format({'bold': True, 'font_size': 13, 'bg_color': lblue,
                                     'border': 2, 'num_format': '0.00%', 'align': 'center'})
    f['result_num'] = wb.add_format({'bold': True, 'font_size': 13, 'bg_color': lblue,
                                     'border': 2, 'num_format': '#,##0.00', 'align': 'center'})
    return f


# =============================================================================
# SHEETS
# =============================================================================

def _create_summary_sheet(ws, f, project: Project, evaluation: Optional[NpvEvaluation],
                          npv_cell: Optional[str]) -> None:
    ws.set_column('A:A', 3)
    ws.set_column('B:B', 28)
    ws.set_column('C:C', 24)

    ws.write('B2', project.name or 'Unnamed project', f['title'])
    ws.write('B3', f"Exported {datetime.now():%Y-%m-%d %H:%M}", f['subtitle'])

    rows = [
        ('Port', project.port_name, f['text']),
        ('Location', project.port_location, f['text']),
        ('Terminals', project.terminal_count, f['number']),
        ('Initial Investment', project.initial_investment, f['currency']),
        ('Discount Rate', project.discount_rate, f['percent']),
    ]
    row = 4
    for label, value, cell_fmt in rows:
        ws.write(row, 1, label, f['label'])
        ws.write(row, 2, value, cell_fmt)
        row += 1

    if evaluation is None:
        ws.write(row + 1, 1, 'No NPV evaluation available.', f['subtitle'])
        return

    row += 1
    ws.write(row, 1, 'Net Present Value', f['label'])
    # Formula on Cash_Flows recomputes the NPV; cached value is ours
    ws.write_formula(row, 2, f'={npv_cell}', f['result_big'], evaluation.npv)
    row += 1
    ws.write(row, 1, 'Internal Rate of Return', f['label'])
    if evaluation.irr is None:
        ws.write(row, 2, 'N/A', f['center'])
    else:
        ws.write(row, 2, evaluation.irr, f['result_pct'])
    row += 1
    ws.write(row, 1, 'Simple Payback (periods)', f['label'])
    if evaluation.payback_periods is None:
        ws.write(row, 2, 'N/A', f['center'])
    else:
        ws.write(row, 2, evaluation.payback_periods, f['result_num'])
    row += 1
    ws.write(row, 1, 'Cash Flow Records', f['label'])
    ws.write(row, 2, evaluation.total_periods, f['number'])


def _create_cashflows_sheet(ws, f, evaluation: Optional[NpvEvaluation]) -> Optional[str]:
    """Write one row per cash flow; return the cell holding the NPV formula."""
    ws.set_column('A:A', 3)
    ws.set_column('B:B', 10)
    ws.set_column('C:F', 16)

    ws.write('B2', 'Cash Flows and Present Values', f['title'])
    if evaluation is None:
        ws.write('B4', 'No cash flows evaluated.', f['subtitle'])
        return None

    ws.write('B3', 'Discount Rate', f['label'])
    ws.write('C3', evaluation.discount_rate, f['percent'])
    ws.write('D3', 'Initial Investment', f['label'])
    ws.write('E3', evaluation.initial_investment, f['currency'])

    headers = ['Period', 'Amount', 'Discount Factor', 'Present Value', 'Description']
    for c, hdr in enumerate(headers):
        ws.write(4, 1 + c, hdr, f['header'])

    data_start = 5
    for i, cf in enumerate(evaluation.cash_flows):
        row = data_start + i
        erow = row + 1
        ws.write(row, 1, cf.period, f['center'])
        ws.write(row, 2, cf.amount, f['currency'])
        ws.write_formula(row, 3, f'=1/(1+$C$3)^B{erow}', f['factor'])
        ws.write_formula(row, 4, f'=C{erow}*D{erow}', f['currency'])
        ws.write(row, 5, cf.description or '', f['text'])

    total_row = data_start + len(evaluation.cash_flows)
    first = data_start + 1
    last = total_row
    ws.write(total_row, 3, 'NPV', f['label'])
    ws.write_formula(total_row, 4, f'=-$E$3+SUM(E{first}:E{last})', f['fml_cur'], evaluation.npv)
    return f"Cash_Flows!E{total_row + 1}"


def _create_terminals_sheet(ws, f, flat_terminals: List[FlatTerminalConfig]) -> None:
    ws.set_column('A:A', 3)
    ws.set_column('B:D', 18)
    ws.set_column('E:L', 14)

    ws.write('B2', 'Scenario Terminals', f['title'])
    if not flat_terminals:
        ws.write('B4', 'No scenario selected.', f['subtitle'])
        return

    headers = [
        'Terminal', 'Type', 'Berth', 'Berth #', 'Max Segment', 'Annual Calls',
        'Berth Hours', 'OPS Existing', 'OPS Enabled', 'DC Enabled', 'Annual TEU',
    ]
    for c, hdr in enumerate(headers):
        ws.write(3, 1 + c, hdr, f['header'])

    row = 4
    for ft in flat_terminals:
        toggles = {bs.berth_id: bs for bs in ft.berth_scenarios}
        if not ft.berths:
            ws.write(row, 1, ft.name or ft.id, f['text'])
            ws.write(row, 2, ft.terminal_type, f['text'])
            ws.write(row, 11, ft.annual_teu, f['number'])
            row += 1
            continue
        for berth in ft.berths:
            toggle = toggles.get(berth.id)
            calls = sum(c.annual_calls for c in berth.vessel_calls)
            hours = sum(c.annual_calls * c.avg_berth_hours for c in berth.vessel_calls)
            ws.write(row, 1, ft.name or ft.id, f['text'])
            ws.write(row, 2, ft.terminal_type, f['text'])
            ws.write(row, 3, berth.berth_name or berth.id, f['text'])
            ws.write(row, 4, berth.berth_number, f['center'])
            ws.write(row, 5, berth.max_vessel_segment_key, f['text'])
            ws.write(row, 6, calls, f['number'])
            ws.write(row, 7, hours, f['number'])
            ws.write(row, 8, 'Yes' if berth.ops_existing else 'No', f['center'])
            ws.write(row, 9, 'Yes' if toggle and toggle.ops_enabled else 'No', f['center'])
            ws.write(row, 10, 'Yes' if toggle and toggle.dc_enabled else 'No', f['center'])
            ws.write(row, 11, ft.annual_teu, f['number'])
            row += 1


def _create_comparison_sheet(ws, f, comparison: Sequence[Tuple[str, NpvEvaluation]]) -> None:
    ws.set_column('A:A', 3)
    ws.set_column('B:B', 8)
    ws.set_column('C:C', 28)
    ws.set_column('D:F', 16)

    ws.write('B2', 'Scenario Comparison', f['title'])
    if not comparison:
        ws.write('B4', 'No evaluated scenarios.', f['subtitle'])
        return

    headers = ['Rank', 'Scenario', 'NPV', 'IRR', 'Payback']
    for c, hdr in enumerate(headers):
        ws.write(3, 1 + c, hdr, f['header'])

    for i, (name, ev) in enumerate(comparison):
        row = 4 + i
        ws.write(row, 1, i + 1, f['center'])
        ws.write(row, 2, name, f['text'])
        ws.write(row, 3, ev.npv, f['currency'])
        if ev.irr is None:
            ws.write(row, 4, 'N/A', f['center'])
        else:
            ws.write(row, 4, ev.irr, f['percent'])
        if ev.payback_periods is None:
            ws.write(row, 5, 'N/A', f['center'])
        else:
            ws.write(row, 5, ev.payback_periods, f['factor'])
