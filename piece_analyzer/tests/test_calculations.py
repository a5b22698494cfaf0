"""Unit tests for PIECE Analyzer financial calculations.

Tests cover NPV over explicit periods, IRR, payback and scenario ranking.
Each test verifies against hand-computed values.
"""

import numpy as np
import numpy_financial as npf
import pytest

from piece.data.validators import ValidationError
from piece.models.calculations import (
    MAX_DENSE_PERIODS,
    calculate_irr,
    calculate_npv,
    calculate_payback,
    dense_cash_flow_series,
    discount_factors,
    evaluate_npv,
    rank_evaluations,
)
from piece.models.project import CashFlowRecord, NpvEvaluation


# ---- NPV Tests ----

class TestNPV:
    def test_npv_two_periods(self):
        """-1000 + 500/1.1 + 600/1.21 should be ~-45.45."""
        result = calculate_npv(0.10, 1000, [(1, 500), (2, 600)])
        assert abs(result - (-1000 + 500 / 1.1 + 600 / 1.21)) < 1e-9
        assert abs(result - (-45.45)) < 0.01

    def test_npv_zero_rate(self):
        """At 0% discount rate, NPV = sum of flows minus investment."""
        result = calculate_npv(0.0, 100, [(1, 40), (2, 40), (3, 40)])
        assert result == 20

    def test_npv_accepts_records(self):
        """CashFlowRecords and tuples give the same NPV."""
        records = [CashFlowRecord(project_id="p", period=1, amount=500),
                   CashFlowRecord(project_id="p", period=2, amount=600)]
        assert calculate_npv(0.10, 1000, records) == calculate_npv(0.10, 1000, [(1, 500), (2, 600)])

    def test_npv_uses_period_not_position(self):
        """Period gaps and ordering are honored."""
        result = calculate_npv(0.10, 0, [(3, 1331), (0, 100)])
        assert abs(result - 1100.0) < 1e-9

    def test_npv_period_zero_undiscounted(self):
        """A flow at period 0 is not discounted."""
        assert calculate_npv(0.5, 10, [(0, 25)]) == 15

    def test_npv_duplicate_periods_each_count(self):
        """Two flows in one period are both discounted."""
        result = calculate_npv(0.0, 0, [(1, 10), (1, 5)])
        assert result == 15

    def test_npv_empty_raises(self):
        """No cash flows is a validation error, not -investment."""
        with pytest.raises(ValidationError, match="No cash flows"):
            calculate_npv(0.10, 1000, [])

    def test_npv_rate_minus_one_raises(self):
        """A rate of -100% or below is rejected."""
        with pytest.raises(ValidationError):
            calculate_npv(-1.0, 1000, [(1, 500)])
        with pytest.raises(ValidationError):
            calculate_npv(-1.5, 1000, [(1, 500)])

    def test_npv_negative_period_raises(self):
        """Negative periods are rejected."""
        with pytest.raises(ValidationError):
            calculate_npv(0.10, 0, [(-1, 500)])

    def test_npv_negative_rate_allowed(self):
        """Rates between -100% and 0 are allowed."""
        result = calculate_npv(-0.5, 0, [(1, 10)])
        assert abs(result - 20.0) < 1e-9


class TestDiscountFactors:
    def test_factors(self):
        """1/(1+r)^t per period."""
        factors = discount_factors(0.10, [0, 1, 2])
        assert factors[0] == 1.0
        assert abs(factors[1] - 1 / 1.1) < 1e-12
        assert abs(factors[2] - 1 / 1.21) < 1e-12


class TestDenseSeries:
    def test_gaps_zero_filled(self):
        """Missing periods are zero; investment sits at period 0."""
        series = dense_cash_flow_series(100, [(3, 50), (1, 20)])
        assert series == [-100.0, 20.0, 0.0, 50.0]

    def test_same_period_summed(self):
        """Flows sharing a period are summed."""
        series = dense_cash_flow_series(0, [(1, 20), (1, 5)])
        assert series == [0.0, 25.0]


# ---- IRR Tests ----

class TestIRR:
    def test_irr_basic(self):
        """-1000 then 1100 one period later has a 10% IRR."""
        result = calculate_irr([-1000, 1100])
        assert abs(result - 0.10) < 1e-6

    def test_irr_zero_npv(self):
        """NPV at the IRR is zero."""
        irr = calculate_irr([-1000, 500, 600])
        assert irr is not None
        assert abs(calculate_npv(irr, 1000, [(1, 500), (2, 600)])) < 1e-6

    def test_irr_no_solution(self):
        """All-positive flows have no IRR."""
        assert calculate_irr([100, 100, 100]) is None

    def test_irr_solver_failure(self, monkeypatch):
        """Any solver error yields None instead of propagating."""
        def fail(values):
            raise np.linalg.LinAlgError("eigenvalues did not converge")

        monkeypatch.setattr(npf, "irr", fail)
        assert calculate_irr([-1000, 1100]) is None


# ---- Payback Tests ----

class TestPayback:
    def test_payback_basic(self):
        """1000 recovered at 250/period takes 4 periods."""
        assert calculate_payback([-1000, 250, 250, 250, 250, 250]) == pytest.approx(4.0)

    def test_payback_fractional(self):
        """Payback interpolates within the recovering period."""
        assert calculate_payback([-1000, 400, 400, 400]) == pytest.approx(2.5)

    def test_payback_never(self):
        """Never recovering the investment gives None."""
        assert calculate_payback([-1000, 100, 100]) is None


# ---- Evaluation ----

class TestEvaluateNpv:
    def test_evaluation_echoes_inputs(self):
        """The evaluation carries NPV plus every input used."""
        ev = evaluate_npv(0.10, 1000, [(1, 500), (2, 600)], project_id="p1",
                          project_name="Port A")
        assert abs(ev.npv - (-45.45)) < 0.01
        assert ev.discount_rate == 0.10
        assert ev.initial_investment == 1000
        assert ev.total_periods == 2
        assert [cf.period for cf in ev.cash_flows] == [1, 2]
        assert ev.project_name == "Port A"
        assert ev.payback_periods is None

    def test_evaluation_irr_and_payback(self):
        """IRR and payback come from the dense series."""
        ev = evaluate_npv(0.05, 1000, [(1, 1100)])
        assert abs(ev.irr - 0.10) < 1e-6
        assert ev.payback_periods == pytest.approx(1000 / 1100)

    def test_far_period_skips_dense_metrics(self):
        """A distant period still gets an NPV; IRR and payback are skipped."""
        ev = evaluate_npv(0.0, 1000, [(1, 500), (100000, 600)])
        assert ev.npv == 100
        assert ev.irr is None
        assert ev.payback_periods is None

    def test_last_period_at_horizon(self):
        """Flows ending exactly at the horizon still get IRR and payback."""
        ev = evaluate_npv(0.0, 100, [(1, 50), (MAX_DENSE_PERIODS, 100)])
        assert ev.payback_periods is not None
        assert ev.irr is not None

    def test_to_dict_keys(self):
        """Response dict exposes the NPV and inputs."""
        body = evaluate_npv(0.0, 100, [(1, 40), (2, 40), (3, 40)], project_name="X").to_dict()
        assert body["npv"] == 20
        assert body["project"] == "X"
        assert body["total_periods"] == 3
        assert len(body["cash_flows"]) == 3

    def test_to_npv_result(self):
        """Stored result mirrors the evaluation."""
        ev = evaluate_npv(0.10, 1000, [(1, 500)], project_id="p1", scenario_id="s1")
        result = ev.to_npv_result()
        assert result.project_id == "p1"
        assert result.scenario_id == "s1"
        assert result.npv_value == ev.npv
        assert result.discount_rate_used == 0.10
        assert result.total_periods == 1


class TestRanking:
    def test_rank_by_npv_descending(self):
        """Best NPV first."""
        ranked = rank_evaluations({
            "a": NpvEvaluation(npv=10),
            "b": NpvEvaluation(npv=30),
            "c": NpvEvaluation(npv=-5),
        })
        assert [name for name, _ in ranked] == ["b", "a", "c"]

    def test_rank_ties_keep_order(self):
        """Equal NPVs keep input order."""
        ranked = rank_evaluations({"x": NpvEvaluation(npv=1), "y": NpvEvaluation(npv=1)})
        assert [name for name, _ in ranked] == ["x", "y"]
