"""Tests for input validators and model constraints."""

import pytest

from piece.data.validators import (
    ValidationError,
    require_valid,
    validate_baseline,
    validate_cash_flows,
    validate_discount_rate,
    validate_initial_investment,
    validate_project,
    validate_scenario,
)
from piece.models.project import CashFlowRecord, Project
from piece.models.reconcile import create_empty_scenario_config
from piece.models.terminals import (
    BaselineBerthDefinition,
    BaselineTerminalConfig,
    BerthScenarioConfig,
    BerthVesselCall,
    ProjectBaseline,
    ScenarioEquipmentEntry,
    ScenarioTerminalConfig,
)


class TestDiscountRate:
    def test_valid_rate(self):
        assert validate_discount_rate(0.08) == (True, "")

    def test_minus_one_invalid(self):
        """-100% and below are invalid."""
        assert validate_discount_rate(-1.0)[0] is False
        assert validate_discount_rate(-2.0)[0] is False

    def test_negative_rate_warns(self):
        valid, msg = validate_discount_rate(-0.02)
        assert valid and msg.startswith("Warning")

    def test_high_rate_warns(self):
        valid, msg = validate_discount_rate(0.45)
        assert valid and "unusually high" in msg


class TestCashFlows:
    def test_empty_invalid(self):
        assert validate_cash_flows([]) == (False, "No cash flows found for this project.")

    def test_duplicate_periods_warn(self):
        flows = [CashFlowRecord(period=1, amount=1), CashFlowRecord(period=1, amount=2)]
        valid, msg = validate_cash_flows(flows)
        assert valid and msg.startswith("Warning")

    def test_negative_period_rejected_by_model(self):
        with pytest.raises(ValueError):
            CashFlowRecord(period=-1, amount=1)

    def test_require_valid_raises(self):
        with pytest.raises(ValidationError, match="No cash flows"):
            require_valid(validate_cash_flows([]))


class TestBaseline:
    def test_valid(self, baseline):
        assert validate_baseline(baseline) == (True, "")

    def test_duplicate_berth_ids(self):
        baseline = ProjectBaseline(terminals=[BaselineTerminalConfig(
            id="t", berths=[BaselineBerthDefinition(id="b"), BaselineBerthDefinition(id="b")],
        )])
        valid, msg = validate_baseline(baseline)
        assert not valid and "duplicate berth id" in msg

    def test_missing_terminal_id(self):
        valid, _ = validate_baseline(ProjectBaseline(terminals=[BaselineTerminalConfig(name="x")]))
        assert not valid

    def test_unknown_terminal_type(self):
        with pytest.raises(ValueError):
            BaselineTerminalConfig(id="t", terminal_type="bulk")


class TestScenario:
    def test_skeleton_clean(self, baseline):
        """A fresh skeleton produces no warnings."""
        assert validate_scenario(create_empty_scenario_config(baseline), baseline) == (True, [])

    def test_reference_warnings(self, baseline):
        """Unknown terminals, unknown berths and over-conversion are warned."""
        scenario = create_empty_scenario_config(baseline)
        t1 = scenario.get_terminal("t1")
        t1.vessel_calls_by_berth["zz"] = [BerthVesselCall(id="v")]
        t1.berth_scenarios.append(BerthScenarioConfig(berth_id="yy"))
        t1.scenario_equipment["rtg"] = ScenarioEquipmentEntry(num_to_convert=11)
        scenario.terminals.append(ScenarioTerminalConfig(terminal_id="ghost"))

        valid, messages = validate_scenario(scenario, baseline)
        assert valid
        assert len(messages) == 4
        assert all(m.startswith("Warning") for m in messages)


class TestProject:
    def test_valid_project(self, baseline):
        valid, messages = validate_project(Project(name="P", baseline=baseline))
        assert valid
        assert messages == []

    def test_name_required(self, baseline):
        valid, messages = validate_project(Project(name="  ", baseline=baseline))
        assert not valid
        assert "Project name is required." in messages

    def test_empty_baseline_warns(self):
        valid, messages = validate_project(Project(name="P"))
        assert valid
        assert any("no terminals" in m for m in messages)

    def test_negative_investment_warns(self):
        assert validate_initial_investment(-5)[0] is True

    def test_rate_out_of_domain(self, baseline):
        """A stored rate of -100% loads but does not validate."""
        project = Project(name="P", discount_rate=-1, baseline=baseline)
        valid, messages = validate_project(project)
        assert not valid
        assert any("greater than -100%" in m for m in messages)
