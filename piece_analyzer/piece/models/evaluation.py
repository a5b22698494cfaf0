"""Project and scenario NPV evaluation against the record store.

Evaluation runs in two phases. The compute phase fetches inputs and
discounts them; it raises on bad input and writes nothing. The persist phase
writes the NpvResult on a best-effort basis: a failed write is logged and
never changes what the caller gets back.
"""

import logging
from typing import List, Optional, Tuple

from piece.data.storage import JsonRecordStore, RecordNotFoundError, StoreError
from piece.data.validators import ValidationError, validate_scenario
from piece.models.calculations import evaluate_npv, rank_evaluations
from piece.models.engine import CalculationEngine, EngineResult
from piece.models.project import NpvEvaluation, NpvResult, ScenarioRecord
from piece.models.reconcile import reconstitute, resolve_port_services

logger = logging.getLogger(__name__)


def evaluate_project_npv(
    store: JsonRecordStore,
    project_id: str,
    scenario_id: Optional[str] = None,
) -> NpvEvaluation:
    """Compute a project's NPV from its stored cash flows.

    Args:
        store: Record store.
        project_id: Project to evaluate.
        scenario_id: Restrict to one scenario's flows. None uses all of the
            project's flows.

    Returns:
        NpvEvaluation. Nothing is written.

    Raises:
        RecordNotFoundError: If the project does not exist.
        StoreError: If the store cannot be read.
        ValidationError: If there are no cash flows or the rate is <= -1.
    """
    project = store.get_project(project_id)
    cash_flows = store.list_cash_flows(project_id, scenario_id)
    return evaluate_npv(
        project.discount_rate,
        project.initial_investment,
        cash_flows,
        project_id=project.id,
        project_name=project.name,
        scenario_id=scenario_id,
    )


def persist_npv_result(store: JsonRecordStore, evaluation: NpvEvaluation) -> Optional[NpvResult]:
    """Write an evaluation's NpvResult. Returns None if the write failed."""
    try:
        return store.insert_npv_result(evaluation.to_npv_result())
    except (StoreError, RecordNotFoundError) as e:
        logger.error("Error saving NPV result for project %s: %s", evaluation.project_id, e)
        return None


def handle_npv_request(store: JsonRecordStore, payload: dict) -> Tuple[int, dict]:
    """Evaluate a project's NPV for a request body of the form {"projectId": ...}.

    Status codes:
        400: projectId missing, no cash flows, or an out-of-domain rate.
        404: project not found.
        500: the store failed while fetching.
        200: success; body holds the NPV and every input used.

    Returns:
        (status_code, body) tuple.
    """
    project_id = payload.get("projectId") if isinstance(payload, dict) else None
    if not project_id:
        return 400, {"error": "Project ID is required"}
    scenario_id = payload.get("scenarioId")

    try:
        project = store.get_project(project_id)
    except RecordNotFoundError:
        return 404, {"error": "Project not found"}
    except StoreError as e:
        logger.error("Error fetching project %s: %s", project_id, e)
        return 500, {"error": "Error fetching project"}

    try:
        cash_flows = store.list_cash_flows(project_id, scenario_id)
    except StoreError as e:
        logger.error("Error fetching cash flows for project %s: %s", project_id, e)
        return 500, {"error": "Error fetching cash flows"}

    if not cash_flows:
        return 400, {"error": "No cash flows found for this project"}

    try:
        evaluation = evaluate_npv(
            project.discount_rate,
            project.initial_investment,
            cash_flows,
            project_id=project.id,
            project_name=project.name,
            scenario_id=scenario_id,
        )
    except ValidationError as e:
        return 400, {"error": str(e)}

    persist_npv_result(store, evaluation)

    body = {"success": True}
    body.update(evaluation.to_dict())
    return 200, body


def evaluate_scenario(
    store: JsonRecordStore,
    scenario_id: str,
    engine: CalculationEngine,
) -> Tuple[NpvEvaluation, EngineResult]:
    """Run a scenario through the calculation engine and evaluate its NPV.

    Steps: reconstitute the flat configuration and resolve the port-wide
    services, run the engine, compute NPV on its cash flows, then replace
    the scenario's stored cash flows, keep the engine summary on the
    scenario record and persist the NpvResult. A run that fails validation
    writes nothing.

    Raises:
        RecordNotFoundError: If the scenario or its project does not exist.
        ValidationError: If the engine returns no cash flows.
    """
    scenario = store.get_scenario(scenario_id)
    project = store.get_project(scenario.project_id)

    _, warnings = validate_scenario(scenario.config, project.baseline)
    for msg in warnings:
        logger.warning("Scenario %s: %s", scenario.id, msg)

    flat_terminals = reconstitute(project.baseline, scenario.config)
    services_baseline, services_scenario = resolve_port_services(project.baseline, scenario.config)
    result = engine(flat_terminals, services_baseline, services_scenario)
    logger.info(
        "Engine produced %d cash flows for scenario %s", len(result.cash_flows), scenario.id,
    )

    records = result.to_records(project.id, scenario.id)
    evaluation = evaluate_npv(
        project.discount_rate,
        project.initial_investment,
        records,
        project_id=project.id,
        project_name=project.name,
        scenario_id=scenario.id,
    )

    store.replace_cash_flows(project.id, records, scenario_id=scenario.id)
    scenario.result = dict(result.summary)
    store.update_scenario(scenario)
    persist_npv_result(store, evaluation)
    return evaluation, result


def compare_scenarios(
    store: JsonRecordStore,
    project_id: str,
) -> List[Tuple[ScenarioRecord, NpvEvaluation]]:
    """Evaluate every scenario of a project that has cash flows, best NPV first.

    Scenarios without cash flows are skipped and logged. Nothing is written.
    """
    project = store.get_project(project_id)
    scenarios = {s.id: s for s in store.list_scenarios(project_id)}

    evaluations = {}
    for scenario_id in scenarios:
        cash_flows = store.list_cash_flows(project_id, scenario_id)
        if not cash_flows:
            logger.info("Scenario %s has no cash flows; skipped in comparison", scenario_id)
            continue
        evaluations[scenario_id] = evaluate_npv(
            project.discount_rate,
            project.initial_investment,
            cash_flows,
            project_id=project.id,
            project_name=project.name,
            scenario_id=scenario_id,
        )

    return [(scenarios[sid], ev) for sid, ev in rank_evaluations(evaluations)]
