"""Record store for projects, scenarios, cash flows and NPV results.

JsonRecordStore keeps one JSON file per project (baseline embedded) and per
scenario, plus one cash-flow list and one NPV-result list per project, under
a root directory:

    <root>/projects/<project_id>.json
    <root>/scenarios/<scenario_id>.json
    <root>/cash_flows/<project_id>.json
    <root>/npv_results/<project_id>.json

Flat terminal configurations are never stored; they are rebuilt from the
baseline and a scenario on every read.

save_project()/load_project() export and import a whole project bundle as a
single JSON file.
"""

import json
import logging
import re
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from piece.models.project import (
    CashFlowRecord,
    NpvResult,
    Project,
    ScenarioRecord,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

_UNSAFE_ID = re.compile(r"[/\\\x00]|\.\.")

_TABLE_KINDS = {
    "projects": "Project",
    "scenarios": "Scenario",
    "cash_flows": "Project",
    "npv_results": "Project",
}


class StoreError(RuntimeError):
    """Raised when the record store cannot read or write its files."""


class RecordNotFoundError(LookupError):
    """Raised when a referenced record does not exist."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


def new_id() -> str:
    """Return a new store-assigned identifier."""
    return uuid.uuid4().hex


class JsonRecordStore:
    """File-backed record store.

    Args:
        root_dir: Directory holding the store. Created on first write.
    """

    def __init__(self, root_dir: str):
        self.root = Path(root_dir)

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def _path(self, table: str, key: str) -> Path:
        key = str(key)
        # Ids name files directly under the table directory
        if not key or _UNSAFE_ID.search(key):
            raise RecordNotFoundError(_TABLE_KINDS.get(table, "Record"), key)
        return self.root / table / f"{key}.json"

    def _read(self, path: Path) -> Any:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt record file {path}: {e}") from e
        except OSError as e:
            raise StoreError(f"Cannot read {path}: {e}") from e

    def _load(self, cls, data: Any, path: Path):
        try:
            return cls.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StoreError(f"Malformed record in {path}: {e!r}") from e

    def _write(self, path: Path, data: Any) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            raise StoreError(f"Cannot write {path}: {e}") from e

    def _delete(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StoreError(f"Cannot delete {path}: {e}") from e

    def _read_list(self, table: str, project_id: str) -> List[dict]:
        path = self._path(table, project_id)
        if not path.exists():
            return []
        rows = self._read(path)
        if not isinstance(rows, list) or not all(isinstance(d, dict) for d in rows):
            raise StoreError(f"Malformed record list in {path}")
        return rows

    def _table_files(self, table: str) -> List[Path]:
        directory = self.root / table
        if not directory.exists():
            return []
        return sorted(directory.glob("*.json"))

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def get_project(self, project_id: str) -> Project:
        """Load a project with its baseline.

        Raises:
            RecordNotFoundError: If the project does not exist.
            StoreError: If the record cannot be read.
        """
        path = self._path("projects", project_id)
        if not path.exists():
            raise RecordNotFoundError("Project", project_id)
        return self._load(Project, self._read(path), path)

    def list_projects(self) -> List[Project]:
        """Return all projects, most recently created first."""
        projects = [self._load(Project, self._read(p), p) for p in self._table_files("projects")]
        return sorted(projects, key=lambda p: p.created_at, reverse=True)

    def insert_project(self, project: Project) -> Project:
        """Store a new project, assigning an id if it has none."""
        if not project.id:
            project.id = new_id()
        self._write(self._path("projects", project.id), project.to_dict())
        logger.info("Inserted project %s (%s)", project.id, project.name)
        return project

    def update_project(self, project: Project) -> Project:
        """Overwrite an existing project record."""
        if not self._path("projects", project.id).exists():
            raise RecordNotFoundError("Project", project.id)
        project.updated_at = utc_now_iso()
        self._write(self._path("projects", project.id), project.to_dict())
        logger.info("Updated project %s", project.id)
        return project

    def delete_project(self, project_id: str) -> None:
        """Delete a project and everything it owns."""
        if not self._path("projects", project_id).exists():
            raise RecordNotFoundError("Project", project_id)
        for scenario in self.list_scenarios(project_id):
            self._delete(self._path("scenarios", scenario.id))
        self._delete(self._path("cash_flows", project_id))
        self._delete(self._path("npv_results", project_id))
        self._delete(self._path("projects", project_id))
        logger.info("Deleted project %s", project_id)

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    def get_scenario(self, scenario_id: str) -> ScenarioRecord:
        path = self._path("scenarios", scenario_id)
        if not path.exists():
            raise RecordNotFoundError("Scenario", scenario_id)
        return self._load(ScenarioRecord, self._read(path), path)

    def list_scenarios(self, project_id: str) -> List[ScenarioRecord]:
        """Return a project's scenarios ordered by sort_order."""
        scenarios = []
        for path in self._table_files("scenarios"):
            data = self._read(path)
            if not isinstance(data, dict):
                raise StoreError(f"Malformed record in {path}")
            if data.get("project_id") == project_id:
                scenarios.append(self._load(ScenarioRecord, data, path))
        return sorted(scenarios, key=lambda s: (s.sort_order, s.created_at))

    def insert_scenario(self, scenario: ScenarioRecord) -> ScenarioRecord:
        if not self._path("projects", scenario.project_id).exists():
            raise RecordNotFoundError("Project", scenario.project_id)
        if not scenario.id:
            scenario.id = new_id()
        self._write(self._path("scenarios", scenario.id), scenario.to_dict())
        logger.info("Inserted scenario %s for project %s", scenario.id, scenario.project_id)
        return scenario

    def update_scenario(self, scenario: ScenarioRecord) -> ScenarioRecord:
        if not self._path("scenarios", scenario.id).exists():
            raise RecordNotFoundError("Scenario", scenario.id)
        scenario.updated_at = utc_now_iso()
        self._write(self._path("scenarios", scenario.id), scenario.to_dict())
        return scenario

    def delete_scenario(self, scenario_id: str) -> None:
        if not self._path("scenarios", scenario_id).exists():
            raise RecordNotFoundError("Scenario", scenario_id)
        self._delete(self._path("scenarios", scenario_id))
        logger.info("Deleted scenario %s", scenario_id)

    # ------------------------------------------------------------------
    # Cash flows
    # ------------------------------------------------------------------

    def list_cash_flows(self, project_id: str, scenario_id: Optional[str] = None) -> List[CashFlowRecord]:
        """Return a project's cash flows in ascending period order.

        Args:
            project_id: Owning project.
            scenario_id: If given, only flows produced by that scenario.
                Otherwise all of the project's flows.
        """
        path = self._path("cash_flows", project_id)
        records = [self._load(CashFlowRecord, d, path) for d in self._read_list("cash_flows", project_id)]
        if scenario_id is not None:
            records = [r for r in records if r.scenario_id == scenario_id]
        # Stable sort keeps insertion order within a period
        return sorted(records, key=lambda r: r.period)

    def insert_cash_flow(self, record: CashFlowRecord) -> CashFlowRecord:
        if not self._path("projects", record.project_id).exists():
            raise RecordNotFoundError("Project", record.project_id)
        if not record.id:
            record.id = new_id()
        rows = self._read_list("cash_flows", record.project_id)
        rows.append(record.to_dict())
        self._write(self._path("cash_flows", record.project_id), rows)
        return record

    def replace_cash_flows(
        self,
        project_id: str,
        records: List[CashFlowRecord],
        scenario_id: Optional[str] = None,
    ) -> List[CashFlowRecord]:
        """Replace the flows of one scenario (or project-level flows) at once."""
        if not self._path("projects", project_id).exists():
            raise RecordNotFoundError("Project", project_id)
        kept = [d for d in self._read_list("cash_flows", project_id) if d.get("scenario_id") != scenario_id]
        for record in records:
            record.project_id = project_id
            record.scenario_id = scenario_id
            if not record.id:
                record.id = new_id()
        self._write(self._path("cash_flows", project_id), kept + [r.to_dict() for r in records])
        logger.debug("Stored %d cash flows for project %s", len(records), project_id)
        return records

    def delete_cash_flow(self, project_id: str, cash_flow_id: str) -> None:
        rows = self._read_list("cash_flows", project_id)
        remaining = [d for d in rows if d.get("id") != cash_flow_id]
        if len(remaining) == len(rows):
            raise RecordNotFoundError("Cash flow", cash_flow_id)
        self._write(self._path("cash_flows", project_id), remaining)

    # ------------------------------------------------------------------
    # NPV results
    # ------------------------------------------------------------------

    def insert_npv_result(self, result: NpvResult) -> NpvResult:
        """Append an NPV result row. The newest row is the current result."""
        if not self._path("projects", result.project_id).exists():
            raise RecordNotFoundError("Project", result.project_id)
        if not result.id:
            result.id = new_id()
        rows = self._read_list("npv_results", result.project_id)
        rows.append(result.to_dict())
        self._write(self._path("npv_results", result.project_id), rows)
        return result

    def list_npv_results(self, project_id: str, scenario_id: Optional[str] = None) -> List[NpvResult]:
        path = self._path("npv_results", project_id)
        results = [self._load(NpvResult, d, path) for d in self._read_list("npv_results", project_id)]
        if scenario_id is not None:
            results = [r for r in results if r.scenario_id == scenario_id]
        return results

    def latest_npv_result(self, project_id: str, scenario_id: Optional[str] = None) -> Optional[NpvResult]:
        results = self.list_npv_results(project_id, scenario_id)
        return results[-1] if results else None


def save_project(store: JsonRecordStore, project_id: str, filepath: str) -> None:
    """Export a project, its scenarios and cash flows to one JSON file.

    Args:
        store: Store holding the project.
        project_id: Project to export.
        filepath: Output file path (should end in .json).

    Raises:
        RecordNotFoundError: If the project does not exist.
        OSError: If file cannot be written.
    """
    project = store.get_project(project_id)
    data = {
        "project": project.to_dict(),
        "scenarios": [s.to_dict() for s in store.list_scenarios(project_id)],
        "cash_flows": [cf.to_dict() for cf in store.list_cash_flows(project_id)],
    }
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)


def load_project(store: JsonRecordStore, filepath: str) -> Tuple[Project, List[ScenarioRecord]]:
    """Import a project bundle written by save_project() into a store.

    Records keep their ids, so importing the same bundle twice overwrites
    the earlier import.

    Returns:
        (project, scenarios) as stored.

    Raises:
        FileNotFoundError: If file does not exist.
        json.JSONDecodeError: If file is not valid JSON.
        KeyError: If required fields are missing.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        data: Dict[str, Any] = json.load(f)

    project = store.insert_project(Project.from_dict(data["project"]))
    scenarios = []
    for scenario_data in data.get("scenarios", []):
        scenario = ScenarioRecord.from_dict(scenario_data)
        scenario.project_id = project.id
        scenarios.append(store.insert_scenario(scenario))

    records = [CashFlowRecord.from_dict(d) for d in data.get("cash_flows", [])]
    by_scenario: Dict[Optional[str], List[CashFlowRecord]] = {}
    for record in records:
        by_scenario.setdefault(record.scenario_id, []).append(record)
    for scenario_id, group in by_scenario.items():
        store.replace_cash_flows(project.id, group, scenario_id=scenario_id)

    return project, scenarios
