"""Tests for the JSON record store and project bundles."""

import json

import pytest

from piece.data.storage import (
    JsonRecordStore,
    RecordNotFoundError,
    StoreError,
    load_project,
    save_project,
)
from piece.models.project import CashFlowRecord, NpvResult, Project, ScenarioRecord
from piece.models.reconcile import create_empty_scenario_config


class TestProjects:
    def test_insert_assigns_id(self, project):
        """Inserted projects get a hex id."""
        assert len(project.id) == 32

    def test_round_trip(self, store, project):
        """A stored project reads back identical, baseline included."""
        loaded = store.get_project(project.id)
        assert loaded.to_dict() == project.to_dict()
        assert loaded.baseline.terminal_ids == ["t1", "t2"]

    def test_missing_project(self, store):
        """Unknown ids raise RecordNotFoundError."""
        with pytest.raises(RecordNotFoundError, match="Project not found"):
            store.get_project("nope")

    def test_list_newest_first(self, store):
        """Projects are listed by created_at descending."""
        store.insert_project(Project(name="old", created_at="2024-01-01T00:00:00+00:00"))
        store.insert_project(Project(name="new", created_at="2025-01-01T00:00:00+00:00"))
        assert [p.name for p in store.list_projects()] == ["new", "old"]

    def test_update_sets_timestamp(self, store, project):
        """Updating a project refreshes updated_at."""
        project.updated_at = "2000-01-01T00:00:00+00:00"
        project.name = "Renamed"
        store.update_project(project)
        loaded = store.get_project(project.id)
        assert loaded.name == "Renamed"
        assert loaded.updated_at > "2000-01-01"

    def test_delete_cascades(self, store, project):
        """Deleting a project removes its scenarios, flows and results."""
        scenario = store.insert_scenario(ScenarioRecord(project_id=project.id, name="S"))
        store.insert_cash_flow(CashFlowRecord(project_id=project.id, period=1, amount=5))
        store.insert_npv_result(NpvResult(project_id=project.id, npv_value=1.0))

        store.delete_project(project.id)

        with pytest.raises(RecordNotFoundError):
            store.get_project(project.id)
        with pytest.raises(RecordNotFoundError):
            store.get_scenario(scenario.id)
        assert store.list_cash_flows(project.id) == []
        assert store.list_npv_results(project.id) == []

    def test_corrupt_file_raises_store_error(self, store, project):
        """Undecodable records raise StoreError."""
        path = store.root / "projects" / f"{project.id}.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError):
            store.get_project(project.id)

    def test_bad_field_raises_store_error(self, store, project):
        """Records that parse but carry bad fields raise StoreError."""
        path = store.root / "projects" / f"{project.id}.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        data["initial_investment"] = None
        path.write_text(json.dumps(data), encoding="utf-8")
        with pytest.raises(StoreError):
            store.get_project(project.id)
        with pytest.raises(StoreError):
            store.list_projects()

    def test_unsafe_ids_rejected(self, store, project):
        """Ids containing separators or parent references never name a file."""
        for bad_id in ("../x", "a/b", "a\\b", "..", ""):
            with pytest.raises(RecordNotFoundError):
                store.get_project(bad_id)
        with pytest.raises(RecordNotFoundError):
            store.list_cash_flows("../../etc")
        with pytest.raises(RecordNotFoundError):
            store.insert_project(Project(id="../escape", name="P"))
        assert not (store.root / "escape.json").exists()


class TestScenarios:
    def test_insert_requires_project(self, store):
        """Scenarios cannot reference a missing project."""
        with pytest.raises(RecordNotFoundError):
            store.insert_scenario(ScenarioRecord(project_id="missing", name="S"))

    def test_list_by_sort_order(self, store, project):
        """Scenarios list in sort_order."""
        store.insert_scenario(ScenarioRecord(project_id=project.id, name="second", sort_order=2))
        store.insert_scenario(ScenarioRecord(project_id=project.id, name="first", sort_order=1))
        assert [s.name for s in store.list_scenarios(project.id)] == ["first", "second"]

    def test_config_round_trip(self, store, project):
        """Scenario configs survive storage."""
        config = create_empty_scenario_config(project.baseline)
        scenario = store.insert_scenario(ScenarioRecord(
            project_id=project.id, name="S", config=config, result={"capex": 10},
        ))
        loaded = store.get_scenario(scenario.id)
        assert loaded.config.to_dict() == config.to_dict()
        assert loaded.result == {"capex": 10}

    def test_delete_scenario(self, store, project):
        """Deleted scenarios are gone."""
        scenario = store.insert_scenario(ScenarioRecord(project_id=project.id, name="S"))
        store.delete_scenario(scenario.id)
        assert store.list_scenarios(project.id) == []
        with pytest.raises(RecordNotFoundError):
            store.delete_scenario(scenario.id)


class TestCashFlows:
    def test_listed_by_period(self, store, project):
        """Cash flows come back in ascending period order."""
        for period, amount in [(3, 30.0), (1, 10.0), (2, 20.0)]:
            store.insert_cash_flow(CashFlowRecord(project_id=project.id, period=period, amount=amount))
        assert [cf.period for cf in store.list_cash_flows(project.id)] == [1, 2, 3]

    def test_scenario_filter(self, store, project):
        """A scenario filter returns only that scenario's flows."""
        store.replace_cash_flows(project.id, [CashFlowRecord(period=1, amount=1)], scenario_id="s1")
        store.replace_cash_flows(project.id, [CashFlowRecord(period=1, amount=2)], scenario_id="s2")
        assert [cf.amount for cf in store.list_cash_flows(project.id, "s1")] == [1]
        assert len(store.list_cash_flows(project.id)) == 2

    def test_replace_only_touches_one_scenario(self, store, project):
        """Replacing a scenario's flows leaves other flows alone."""
        store.replace_cash_flows(project.id, [CashFlowRecord(period=1, amount=1)], scenario_id="s1")
        store.replace_cash_flows(project.id, [CashFlowRecord(period=1, amount=2)], scenario_id="s2")
        store.replace_cash_flows(project.id, [CashFlowRecord(period=2, amount=9)], scenario_id="s1")
        s1 = store.list_cash_flows(project.id, "s1")
        assert [(cf.period, cf.amount) for cf in s1] == [(2, 9)]
        assert [cf.amount for cf in store.list_cash_flows(project.id, "s2")] == [2]

    def test_delete_cash_flow(self, store, project):
        """Cash flows are deleted by id."""
        record = store.insert_cash_flow(CashFlowRecord(project_id=project.id, period=1, amount=5))
        store.delete_cash_flow(project.id, record.id)
        assert store.list_cash_flows(project.id) == []
        with pytest.raises(RecordNotFoundError):
            store.delete_cash_flow(project.id, record.id)

    def test_malformed_row_raises_store_error(self, store, project):
        """A stored flow without a period raises StoreError, not KeyError."""
        path = store.root / "cash_flows" / f"{project.id}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps([{"project_id": project.id, "amount": 5}]), encoding="utf-8")
        with pytest.raises(StoreError):
            store.list_cash_flows(project.id)

    def test_non_list_file_raises_store_error(self, store, project):
        """A cash-flow file holding an object instead of a list is rejected."""
        path = store.root / "cash_flows" / f"{project.id}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"period": 1}), encoding="utf-8")
        with pytest.raises(StoreError):
            store.list_cash_flows(project.id)


class TestNpvResults:
    def test_append_and_latest(self, store, project):
        """Results append; the newest is current."""
        store.insert_npv_result(NpvResult(project_id=project.id, npv_value=1.0))
        store.insert_npv_result(NpvResult(project_id=project.id, npv_value=2.0))
        assert len(store.list_npv_results(project.id)) == 2
        assert store.latest_npv_result(project.id).npv_value == 2.0

    def test_latest_none_when_empty(self, store, project):
        """No results gives None."""
        assert store.latest_npv_result(project.id) is None


class TestBundle:
    def test_export_import(self, store, project, tmp_path):
        """A bundle restores project, scenarios and flows into a new store."""
        scenario = store.insert_scenario(ScenarioRecord(
            project_id=project.id, name="S",
            config=create_empty_scenario_config(project.baseline),
        ))
        store.replace_cash_flows(project.id, [CashFlowRecord(period=1, amount=50)],
                                 scenario_id=scenario.id)
        bundle = tmp_path / "bundle.json"
        save_project(store, project.id, str(bundle))

        data = json.loads(bundle.read_text(encoding="utf-8"))
        assert set(data) == {"project", "scenarios", "cash_flows"}

        other = JsonRecordStore(str(tmp_path / "other"))
        loaded, scenarios = load_project(other, str(bundle))
        assert loaded.id == project.id
        assert loaded.baseline.to_dict() == project.baseline.to_dict()
        assert [s.name for s in scenarios] == ["S"]
        flows = other.list_cash_flows(project.id, scenario.id)
        assert [(cf.period, cf.amount) for cf in flows] == [(1, 50)]

    def test_import_missing_file(self, store, tmp_path):
        """Missing bundle raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_project(store, str(tmp_path / "missing.json"))
