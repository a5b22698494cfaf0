"""Smoke tests for chart, PDF and Excel report generation."""

import zipfile

from piece.models.calculations import evaluate_npv
from piece.models.reconcile import create_empty_scenario_config, reconstitute
from piece.reports.charts import create_cashflow_chart, create_comparison_chart
from piece.reports.summary import generate_npv_summary
from piece.reports.workbook import export_workbook


def _evaluation(project):
    return evaluate_npv(project.discount_rate, project.initial_investment,
                        [(1, 500), (2, 600), (4, 300)],
                        project_id=project.id, project_name=project.name)


class TestCharts:
    def test_cashflow_chart(self, project, tmp_path):
        path = tmp_path / "cf.png"
        create_cashflow_chart(_evaluation(project), str(path))
        assert path.stat().st_size > 0

    def test_cashflow_chart_far_period(self, project, tmp_path):
        """Sparse flows with a distant period still chart."""
        evaluation = evaluate_npv(0.0, project.initial_investment, [(1, 500), (100000, 600)])
        path = tmp_path / "far.png"
        create_cashflow_chart(evaluation, str(path))
        assert path.stat().st_size > 0

    def test_comparison_chart_empty(self, tmp_path):
        """No scenarios, no file."""
        path = tmp_path / "cmp.png"
        create_comparison_chart([], str(path))
        assert not path.exists()


class TestSummaryPdf:
    def test_pdf_written(self, project, tmp_path):
        """PDF includes terminals and comparison sections without error."""
        evaluation = _evaluation(project)
        flat = reconstitute(project.baseline, create_empty_scenario_config(project.baseline))
        path = tmp_path / "summary.pdf"
        generate_npv_summary(project, evaluation, str(path), "Phase 1", flat,
                             [("Phase 1", evaluation)])
        assert path.read_bytes()[:4] == b"%PDF"


class TestWorkbook:
    def test_sheets(self, project, tmp_path):
        """Workbook has the four sheets; the suffix is forced to .xlsx."""
        evaluation = _evaluation(project)
        flat = reconstitute(project.baseline, create_empty_scenario_config(project.baseline))
        written = export_workbook(str(tmp_path / "out"), project, evaluation, flat,
                                  [("Phase 1", evaluation)])
        assert written.endswith(".xlsx")

        with zipfile.ZipFile(written) as zf:
            workbook_xml = zf.read("xl/workbook.xml").decode("utf-8")
        for name in ("Summary", "Cash_Flows", "Terminals", "Comparison"):
            assert f'name="{name}"' in workbook_xml

    def test_without_evaluation(self, project, tmp_path):
        """A project without NPV still exports."""
        written = export_workbook(str(tmp_path / "bare.xlsx"), project)
        assert written.endswith("bare.xlsx")
