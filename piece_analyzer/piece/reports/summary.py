"""NPV summary PDF report generation using ReportLab.

Generates a short PDF containing the project overview, the NPV result with
every input used, the cash-flow schedule and chart, the terminals of the
evaluated scenario and, optionally, a scenario comparison.
"""

import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    Image,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from piece.models.calculations import discount_factors
from piece.models.project import NpvEvaluation, Project
from piece.models.terminals import FlatTerminalConfig
from piece.reports.charts import create_cashflow_chart, create_comparison_chart
from piece.utils.formatters import format_currency, format_number, format_percent, format_periods

_HEADER_STYLE = [
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1565c0")),
    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
    ("FONTSIZE", (0, 0), (-1, -1), 9),
    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ("TOPPADDING", (0, 0), (-1, -1), 4),
    ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f5f5f5")]),
]


def _get_verdict(npv: float) -> tuple:
    """Return verdict text and color for an NPV."""
    if npv > 0:
        return "Value-creating at the project discount rate", "green"
    if npv == 0:
        return "Break-even at the project discount rate", "orange"
    return "Does not recover its investment at the project discount rate", "red"


def _terminal_rows(flat_terminals: List[FlatTerminalConfig]) -> List[list]:
    rows = [["Terminal", "Type", "Berths", "Annual TEU", "Vessel Calls", "OPS / DC Berths"]]
    for ft in flat_terminals:
        ops = sum(1 for b in ft.berth_scenarios if b.ops_enabled)
        dc = sum(1 for b in ft.berth_scenarios if b.dc_enabled)
        rows.append([
            ft.name or ft.id,
            ft.terminal_type,
            str(len(ft.berths)),
            format_number(ft.annual_teu),
            format_number(ft.total_annual_calls),
            f"{ops} / {dc}",
        ])
    return rows


def generate_npv_summary(
    project: Project,
    evaluation: NpvEvaluation,
    output_path: str,
    scenario_name: str = "",
    flat_terminals: Optional[List[FlatTerminalConfig]] = None,
    comparison: Optional[Sequence[Tuple[str, NpvEvaluation]]] = None,
) -> None:
    """Generate an NPV summary PDF.

    Args:
        project: Project evaluated.
        evaluation: Result of evaluate_npv() for the project or a scenario.
        output_path: File path for the output PDF.
        scenario_name: Name of the evaluated scenario, if any.
        flat_terminals: Reconciled terminals of the evaluated scenario.
        comparison: (scenario name, evaluation) pairs, best first.
    """
    doc = SimpleDocTemplate(
        output_path,
        pagesize=letter,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        leftMargin=0.75 * inch,
        rightMargin=0.75 * inch,
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "CustomTitle", parent=styles["Title"], fontSize=18, spaceAfter=6
    )
    heading_style = ParagraphStyle(
        "CustomHeading", parent=styles["Heading2"], fontSize=14,
        spaceAfter=8, spaceBefore=12, textColor=colors.HexColor("#1565c0"),
    )
    body_style = styles["Normal"]
    small_style = ParagraphStyle(
        "Small", parent=body_style, fontSize=8, textColor=colors.grey,
    )

    elements = []

    elements.append(Paragraph("Port Electrification Investment Summary", title_style))
    if scenario_name:
        elements.append(Paragraph(f"Scenario: {scenario_name}", styles["Heading3"]))
    elements.append(Spacer(1, 12))

    info_data = [
        ["Project", project.name or "Unnamed"],
        ["Port", ", ".join(p for p in (project.port_name, project.port_location) if p) or "Not specified"],
        ["Terminals", str(project.terminal_count)],
        ["Initial Investment", format_currency(evaluation.initial_investment)],
        ["Discount Rate", format_percent(evaluation.discount_rate)],
        ["Cash Flow Periods", str(evaluation.total_periods)],
    ]
    info_table = Table(info_data, colWidths=[2.5 * inch, 4.5 * inch])
    info_table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("LINEBELOW", (0, -1), (-1, -1), 1, colors.grey),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 16))

    elements.append(Paragraph("Key Financial Metrics", heading_style))
    verdict, verdict_color = _get_verdict(evaluation.npv)
    metrics_data = [
        ["Metric", "Value"],
        ["Net Present Value (NPV)", format_currency(evaluation.npv)],
        ["Internal Rate of Return", format_percent(evaluation.irr)],
        ["Simple Payback", format_periods(evaluation.payback_periods, "periods")],
    ]
    metrics_table = Table(metrics_data, colWidths=[3.5 * inch, 3.5 * inch])
    metrics_table.setStyle(TableStyle(_HEADER_STYLE))
    elements.append(metrics_table)
    elements.append(Spacer(1, 12))
    elements.append(Paragraph(
        f'<b>Assessment:</b> <font color="{verdict_color}">{verdict}</font>', body_style,
    ))

    elements.append(Paragraph("Cash Flow Schedule", heading_style))
    factors = discount_factors(evaluation.discount_rate, [cf.period for cf in evaluation.cash_flows])
    cf_data = [["Period", "Amount", "Discount Factor", "Present Value"]]
    for cf, factor in zip(evaluation.cash_flows, factors):
        cf_data.append([
            str(cf.period),
            format_currency(cf.amount),
            f"{factor:.4f}",
            format_currency(cf.amount * factor),
        ])
    cf_table = Table(cf_data, colWidths=[1.2 * inch, 2 * inch, 1.8 * inch, 2 * inch], repeatRows=1)
    cf_table.setStyle(TableStyle(_HEADER_STYLE))
    elements.append(cf_table)

    if flat_terminals:
        elements.append(Paragraph("Scenario Terminals", heading_style))
        terminal_table = Table(_terminal_rows(flat_terminals), repeatRows=1)
        terminal_table.setStyle(TableStyle(_HEADER_STYLE))
        elements.append(terminal_table)

    with tempfile.TemporaryDirectory() as tmpdir:
        cf_path = str(Path(tmpdir) / "cashflow.png")
        cmp_path = str(Path(tmpdir) / "comparison.png")

        elements.append(PageBreak())
        elements.append(Paragraph("Cash Flow Analysis", heading_style))
        create_cashflow_chart(evaluation, cf_path)
        elements.append(Image(cf_path, width=6.5 * inch, height=3.5 * inch))

        if comparison:
            elements.append(Paragraph("Scenario Comparison", heading_style))
            cmp_data = [["Rank", "Scenario", "NPV", "IRR"]]
            for rank, (name, ev) in enumerate(comparison, 1):
                cmp_data.append([str(rank), name, format_currency(ev.npv), format_percent(ev.irr)])
            cmp_table = Table(cmp_data, repeatRows=1)
            cmp_table.setStyle(TableStyle(_HEADER_STYLE))
            elements.append(cmp_table)
            elements.append(Spacer(1, 12))
            create_comparison_chart([(name, ev.npv) for name, ev in comparison], cmp_path)
            elements.append(Image(cmp_path, width=6 * inch, height=3 * inch))

        elements.append(Spacer(1, 12))
        elements.append(Paragraph("Methodology", heading_style))
        elements.append(Paragraph(
            "NPV = -I<sub>0</sub> + sum of CF<sub>i</sub> / (1 + r)<super>t</super>, "
            "where each cash flow is discounted by its own period index t. "
            "IRR and payback use the same flows laid out on consecutive periods, "
            "with the initial investment at period 0.",
            body_style,
        ))
        elements.append(Spacer(1, 20))
        elements.append(Paragraph(
            "<i>Report generated by PIECE Analyzer. All figures are reproducible "
            "from the inputs listed above.</i>",
            small_style,
        ))

        # Build PDF (must happen while tmpdir exists for chart images)
        doc.build(elements)
