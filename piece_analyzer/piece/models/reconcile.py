"""Baseline/scenario reconciliation for PIECE Analyzer.

Projects store the shared baseline once and each scenario stores only its
electrification overlay, keyed by terminal id. The calculation engine needs
one flat configuration per terminal. This module merges the two
representations into that flat view and splits an edited flat view back
into baseline and scenario parts.

The baseline is always the spine of the merge: every baseline terminal and
berth appears in baseline order, and scenario data is looked up by key with an
explicit default for each field. Scenario entries whose terminal_id is not in
the baseline are dropped. Use find_unmatched_terminal_ids() to surface them.
"""

from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from piece.models.terminals import (
    BaselineBerthDefinition,
    BaselineTerminalConfig,
    BerthScenarioConfig,
    BerthVesselCall,
    FlatBerth,
    FlatTerminalConfig,
    PortServicesBaseline,
    PortServicesScenario,
    ProjectBaseline,
    ScenarioConfig,
    ScenarioEquipmentEntry,
    ScenarioTerminalConfig,
)


def _copy_calls(calls: List[BerthVesselCall]) -> List[BerthVesselCall]:
    return [replace(c) for c in calls]


def _index_scenario_terminals(scenario: ScenarioConfig) -> Dict[str, ScenarioTerminalConfig]:
    """Map terminal_id -> scenario entry. The first entry for an id wins."""
    index: Dict[str, ScenarioTerminalConfig] = {}
    for st in scenario.terminals:
        index.setdefault(st.terminal_id, st)
    return index


def _flatten_terminal(
    bt: BaselineTerminalConfig,
    st: Optional[ScenarioTerminalConfig],
) -> FlatTerminalConfig:
    calls_by_berth = st.vessel_calls_by_berth if st else {}

    berths = [
        FlatBerth(
            id=bb.id,
            berth_number=bb.berth_number,
            berth_name=bb.berth_name,
            max_vessel_segment_key=bb.max_vessel_segment_key,
            ops_existing=bb.ops_existing,
            dc_existing=bb.dc_existing,
            vessel_calls=_copy_calls(calls_by_berth.get(bb.id, [])),
        )
        for bb in bt.berths
    ]

    return FlatTerminalConfig(
        id=bt.id,
        name=bt.name,
        terminal_type=bt.terminal_type,
        berths=berths,
        baseline_equipment={k: replace(v) for k, v in bt.baseline_equipment.items()},
        cable_length_m=bt.cable_length_m,
        port_services_baseline=replace(bt.port_services_baseline) if bt.port_services_baseline else None,
        annual_teu=st.annual_teu if st else 0,
        # Passed through untouched: relevance depends on terminal type
        annual_passengers=st.annual_passengers if st else None,
        annual_ceu=st.annual_ceu if st else None,
        scenario_equipment={k: replace(v) for k, v in st.scenario_equipment.items()} if st else {},
        berth_scenarios=[replace(b) for b in st.berth_scenarios] if st else [],
        charger_overrides=dict(st.charger_overrides) if st and st.charger_overrides is not None else None,
        port_services_scenario=(
            replace(st.port_services_scenario) if st and st.port_services_scenario else None
        ),
    )


def reconstitute(baseline: ProjectBaseline, scenario: ScenarioConfig) -> List[FlatTerminalConfig]:
    """Merge a project baseline and a scenario into flat terminal configs.

    Terminals the scenario does not cover get zero throughput, no vessel
    calls, no equipment changes and no berth toggles. Baseline-sourced fields
    are copied unchanged.

    Args:
        baseline: Project baseline (authoritative terminal and berth order).
        scenario: Scenario overlay, possibly partial.

    Returns:
        One FlatTerminalConfig per baseline terminal, in baseline order.
        Berths within each terminal follow baseline berth order.
    """
    index = _index_scenario_terminals(scenario)
    return [_flatten_terminal(bt, index.get(bt.id)) for bt in baseline.terminals]


def resolve_port_services(
    baseline: ProjectBaseline,
    scenario: ScenarioConfig,
) -> Tuple[Optional[PortServicesBaseline], Optional[PortServicesScenario]]:
    """Return the port-wide harbour craft baseline and scenario changes.

    The project-level values win. Older records kept port services on a
    terminal instead; when the project-level value is missing, the first
    terminal that carries one is used.

    Returns:
        (port_services_baseline, port_services_scenario), copies or None.
    """
    services_baseline = baseline.port_services_baseline
    if services_baseline is None:
        services_baseline = next(
            (bt.port_services_baseline for bt in baseline.terminals if bt.port_services_baseline),
            None,
        )

    services_scenario = scenario.port_services_scenario
    if services_scenario is None:
        services_scenario = next(
            (st.port_services_scenario for st in scenario.terminals if st.port_services_scenario),
            None,
        )

    return (
        replace(services_baseline) if services_baseline else None,
        replace(services_scenario) if services_scenario else None,
    )


def decompose(
    flat_terminals: List[FlatTerminalConfig],
    port_services_baseline: Optional[PortServicesBaseline] = None,
    port_services_scenario: Optional[PortServicesScenario] = None,
) -> Tuple[ProjectBaseline, ScenarioConfig]:
    """Split flat terminal configs into a baseline and a scenario.

    Vessel calls move from each flat berth into the scenario's
    vessel_calls_by_berth. Berths without calls are left out of that mapping,
    so decompose(reconstitute(b, s)) reproduces s only up to empty/absent
    berth entries.

    Args:
        flat_terminals: Flat configs, typically edited in memory.
        port_services_baseline: Port-wide baseline services to carry over.
        port_services_scenario: Port-wide scenario services to carry over.

    Returns:
        (baseline, scenario) tuple.
    """
    baseline_terminals = []
    scenario_terminals = []

    for ft in flat_terminals:
        baseline_terminals.append(BaselineTerminalConfig(
            id=ft.id,
            name=ft.name,
            terminal_type=ft.terminal_type,
            berths=[
                BaselineBerthDefinition(
                    id=b.id,
                    berth_number=b.berth_number,
                    berth_name=b.berth_name,
                    max_vessel_segment_key=b.max_vessel_segment_key,
                    ops_existing=b.ops_existing,
                    dc_existing=b.dc_existing,
                )
                for b in ft.berths
            ],
            baseline_equipment={k: replace(v) for k, v in ft.baseline_equipment.items()},
            cable_length_m=ft.cable_length_m,
            port_services_baseline=replace(ft.port_services_baseline) if ft.port_services_baseline else None,
        ))

        scenario_terminals.append(ScenarioTerminalConfig(
            terminal_id=ft.id,
            annual_teu=ft.annual_teu,
            annual_passengers=ft.annual_passengers,
            annual_ceu=ft.annual_ceu,
            vessel_calls_by_berth={
                b.id: _copy_calls(b.vessel_calls) for b in ft.berths if b.vessel_calls
            },
            scenario_equipment={k: replace(v) for k, v in ft.scenario_equipment.items()},
            berth_scenarios=[replace(b) for b in ft.berth_scenarios],
            charger_overrides=dict(ft.charger_overrides) if ft.charger_overrides is not None else None,
            port_services_scenario=replace(ft.port_services_scenario) if ft.port_services_scenario else None,
        ))

    baseline = ProjectBaseline(
        terminals=baseline_terminals,
        port_services_baseline=replace(port_services_baseline) if port_services_baseline else None,
    )
    scenario = ScenarioConfig(
        terminals=scenario_terminals,
        port_services_scenario=replace(port_services_scenario) if port_services_scenario else None,
    )
    return baseline, scenario


def _empty_terminal_entry(bt: BaselineTerminalConfig) -> ScenarioTerminalConfig:
    return ScenarioTerminalConfig(
        terminal_id=bt.id,
        annual_teu=0,
        vessel_calls_by_berth={},
        scenario_equipment={},
        berth_scenarios=[
            BerthScenarioConfig(berth_id=b.id, ops_enabled=False, dc_enabled=False)
            for b in bt.berths
        ],
    )


def create_empty_scenario_config(baseline: ProjectBaseline) -> ScenarioConfig:
    """Create a scenario skeleton covering every baseline terminal and berth.

    Every terminal gets zero throughput, no vessel calls and no equipment
    changes. Every berth gets a BerthScenarioConfig with OPS and DC disabled.
    New scenarios always start from this skeleton.
    """
    return ScenarioConfig(terminals=[_empty_terminal_entry(bt) for bt in baseline.terminals])


def sync_scenario_with_baseline(scenario: ScenarioConfig, baseline: ProjectBaseline) -> ScenarioConfig:
    """Realign a scenario after its project's baseline was edited.

    - Terminals new to the baseline get an empty entry.
    - Terminals removed from the baseline are pruned.
    - Berth toggles follow the baseline berth list: existing toggles are
      kept, new berths start disabled, removed berths are dropped. Vessel
      calls on removed berths are dropped too.
    - Equipment keys missing from the baseline are dropped and
      num_to_convert is capped at the baseline's existing diesel count.

    Returns:
        A new ScenarioConfig in baseline terminal order. The input is not
        modified.
    """
    index = _index_scenario_terminals(scenario)
    terminals = []

    for bt in baseline.terminals:
        st = index.get(bt.id)
        if st is None:
            terminals.append(_empty_terminal_entry(bt))
            continue

        berth_ids = set(bt.berth_ids)
        existing_toggles = {bs.berth_id: bs for bs in st.berth_scenarios}
        berth_scenarios = [
            replace(existing_toggles[b.id]) if b.id in existing_toggles
            else BerthScenarioConfig(berth_id=b.id)
            for b in bt.berths
        ]

        equipment = {}
        for key, entry in st.scenario_equipment.items():
            baseline_entry = bt.baseline_equipment.get(key)
            if baseline_entry is None:
                continue
            equipment[key] = ScenarioEquipmentEntry(
                num_to_convert=min(entry.num_to_convert, baseline_entry.existing_diesel),
                num_to_add=entry.num_to_add,
            )

        terminals.append(ScenarioTerminalConfig(
            terminal_id=bt.id,
            annual_teu=st.annual_teu,
            annual_passengers=st.annual_passengers,
            annual_ceu=st.annual_ceu,
            vessel_calls_by_berth={
                berth_id: _copy_calls(calls)
                for berth_id, calls in st.vessel_calls_by_berth.items()
                if berth_id in berth_ids and calls
            },
            scenario_equipment=equipment,
            berth_scenarios=berth_scenarios,
            charger_overrides=dict(st.charger_overrides) if st.charger_overrides is not None else None,
            port_services_scenario=replace(st.port_services_scenario) if st.port_services_scenario else None,
        ))

    return ScenarioConfig(
        terminals=terminals,
        port_services_scenario=(
            replace(scenario.port_services_scenario) if scenario.port_services_scenario else None
        ),
    )


def find_unmatched_terminal_ids(baseline: ProjectBaseline, scenario: ScenarioConfig) -> List[str]:
    """Return scenario terminal ids that reconstitute() would drop."""
    known = set(baseline.terminal_ids)
    return [st.terminal_id for st in scenario.terminals if st.terminal_id not in known]
