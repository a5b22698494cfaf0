"""Scenario lifecycle operations on top of the record store.

Scenarios only reference baseline terminals and berths by id. Every write
path here keeps the two in step: new scenarios start from a full skeleton,
baseline edits resync every scenario, and flat edits are split back into
baseline and scenario writes.
"""

import logging
from typing import List, Optional

from piece.data.storage import JsonRecordStore
from piece.data.validators import ValidationError, validate_baseline
from piece.models.project import ScenarioRecord
from piece.models.reconcile import (
    create_empty_scenario_config,
    decompose,
    reconstitute,
    sync_scenario_with_baseline,
)
from piece.models.terminals import FlatTerminalConfig, ProjectBaseline, ScenarioConfig

logger = logging.getLogger(__name__)


def create_scenario(
    store: JsonRecordStore,
    project_id: str,
    name: str,
    description: Optional[str] = None,
    sort_order: Optional[int] = None,
) -> ScenarioRecord:
    """Create a scenario covering every baseline terminal, all toggles off.

    Args:
        store: Record store.
        project_id: Owning project.
        name: Scenario name.
        description: Optional description.
        sort_order: Position among siblings. Defaults to after the last one.

    Returns:
        The stored ScenarioRecord.
    """
    project = store.get_project(project_id)
    if sort_order is None:
        existing = store.list_scenarios(project_id)
        sort_order = max((s.sort_order for s in existing), default=-1) + 1

    scenario = ScenarioRecord(
        project_id=project_id,
        name=name,
        description=description,
        sort_order=sort_order,
        config=create_empty_scenario_config(project.baseline),
    )
    return store.insert_scenario(scenario)


def duplicate_scenario(store: JsonRecordStore, scenario_id: str, new_name: str) -> ScenarioRecord:
    """Copy a scenario's configuration into a new scenario. Results are not copied."""
    source = store.get_scenario(scenario_id)
    project_id = source.project_id
    existing = store.list_scenarios(project_id)

    duplicate = ScenarioRecord(
        project_id=project_id,
        name=new_name,
        description=source.description,
        sort_order=max((s.sort_order for s in existing), default=-1) + 1,
        config=ScenarioConfig.from_dict(source.config.to_dict()),
    )
    return store.insert_scenario(duplicate)


def load_flat_terminals(store: JsonRecordStore, scenario_id: str) -> List[FlatTerminalConfig]:
    """Rebuild the flat, engine-facing configuration of a scenario."""
    scenario = store.get_scenario(scenario_id)
    project = store.get_project(scenario.project_id)
    return reconstitute(project.baseline, scenario.config)


def save_flat_terminals(
    store: JsonRecordStore,
    scenario_id: str,
    flat_terminals: List[FlatTerminalConfig],
) -> ScenarioRecord:
    """Persist an edited flat configuration as baseline + scenario writes.

    If the baseline part differs from the stored baseline, it is written
    through update_baseline() so sibling scenarios are resynced. The edited
    scenario is aligned with the new baseline and written last.
    """
    scenario = store.get_scenario(scenario_id)
    project = store.get_project(scenario.project_id)

    baseline, config = decompose(
        flat_terminals,
        port_services_baseline=project.baseline.port_services_baseline,
        port_services_scenario=scenario.config.port_services_scenario,
    )

    if baseline.to_dict() != project.baseline.to_dict():
        update_baseline(store, project.id, baseline)
        scenario = store.get_scenario(scenario_id)

    scenario.config = sync_scenario_with_baseline(config, baseline)
    scenario.result = None
    return store.update_scenario(scenario)


def update_baseline(store: JsonRecordStore, project_id: str, baseline: ProjectBaseline) -> None:
    """Replace a project's baseline and realign all of its scenarios.

    Every scenario is synced against the new baseline and its stored engine
    result is cleared.

    Raises:
        ValidationError: If the new baseline has duplicate ids.
    """
    valid, msg = validate_baseline(baseline)
    if not valid:
        raise ValidationError(msg)

    project = store.get_project(project_id)
    project.baseline = baseline
    store.update_project(project)

    scenarios = store.list_scenarios(project_id)
    for scenario in scenarios:
        scenario.config = sync_scenario_with_baseline(scenario.config, baseline)
        scenario.result = None
        store.update_scenario(scenario)
    logger.info("Baseline of project %s updated; %d scenarios resynced", project_id, len(scenarios))
