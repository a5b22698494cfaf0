"""Input validation functions for PIECE Analyzer.

Each validator returns a tuple of (is_valid: bool, message: str).
Messages describe errors or warnings for user display; a warning is a valid
result whose message starts with "Warning:".

ValidationError is raised where invalid input must stop a computation.
"""

from typing import List, Sequence, Tuple

from piece.models.project import CashFlowRecord, Project
from piece.models.reconcile import find_unmatched_terminal_ids
from piece.models.terminals import ProjectBaseline, ScenarioConfig


class ValidationError(ValueError):
    """Raised for malformed or out-of-domain caller input."""


def validate_discount_rate(rate: float) -> Tuple[bool, str]:
    """Validate a per-period discount rate.

    Args:
        rate: Discount rate as decimal (e.g., 0.08 for 8%).

    Returns:
        (is_valid, message) tuple.
    """
    if rate <= -1:
        return False, "Discount rate must be greater than -100%."
    if rate < 0:
        return True, "Warning: Negative discount rate. Verify this is correct."
    if rate > 0.30:
        return True, f"Warning: Discount rate of {rate:.0%} is unusually high."
    return True, ""


def validate_initial_investment(amount: float) -> Tuple[bool, str]:
    """Validate the project's initial investment."""
    if amount < 0:
        return True, "Warning: Initial investment is negative (treated as an inflow)."
    return True, ""


def validate_cash_flows(cash_flows: Sequence[CashFlowRecord]) -> Tuple[bool, str]:
    """Validate a cash-flow set before discounting.

    An empty set is an error: an NPV of exactly -initial_investment would
    hide a failed or missing data load.

    Args:
        cash_flows: Records to evaluate.

    Returns:
        (is_valid, message) tuple.
    """
    if not cash_flows:
        return False, "No cash flows found for this project."
    for cf in cash_flows:
        if cf.period < 0:
            return False, f"Cash flow period must be >= 0, got {cf.period}."
    periods = [cf.period for cf in cash_flows]
    if len(set(periods)) != len(periods):
        return True, "Warning: Duplicate cash flow periods. Each is discounted separately."
    return True, ""


def validate_baseline(baseline: ProjectBaseline) -> Tuple[bool, str]:
    """Check that terminal ids, and berth ids within a terminal, are unique."""
    seen_terminals = set()
    for terminal in baseline.terminals:
        if not terminal.id:
            return False, f"Terminal '{terminal.name}' has no id."
        if terminal.id in seen_terminals:
            return False, f"Duplicate terminal id '{terminal.id}'."
        seen_terminals.add(terminal.id)

        seen_berths = set()
        for berth in terminal.berths:
            if berth.id in seen_berths:
                return False, f"Terminal '{terminal.id}': duplicate berth id '{berth.id}'."
            seen_berths.add(berth.id)
    return True, ""


def validate_scenario(scenario: ScenarioConfig, baseline: ProjectBaseline) -> Tuple[bool, List[str]]:
    """Check a scenario's references against its project's baseline.

    Unknown terminal and berth references are reported as warnings only:
    reconciliation ignores them, and older stored scenarios may still carry
    entries for terminals deleted from the baseline.

    Returns:
        (is_valid, messages) tuple.
    """
    messages = []
    for terminal_id in find_unmatched_terminal_ids(baseline, scenario):
        messages.append(
            f"Warning: Scenario terminal '{terminal_id}' is not in the baseline and will be ignored."
        )

    for st in scenario.terminals:
        bt = baseline.get_terminal(st.terminal_id)
        if bt is None:
            continue
        berth_ids = set(bt.berth_ids)
        for berth_id in st.vessel_calls_by_berth:
            if berth_id not in berth_ids:
                messages.append(
                    f"Warning: Terminal '{bt.id}': vessel calls reference unknown berth '{berth_id}'."
                )
        for bs in st.berth_scenarios:
            if bs.berth_id not in berth_ids:
                messages.append(
                    f"Warning: Terminal '{bt.id}': berth toggle references unknown berth '{bs.berth_id}'."
                )
        for key, entry in st.scenario_equipment.items():
            baseline_entry = bt.baseline_equipment.get(key)
            if baseline_entry is not None and entry.num_to_convert > baseline_entry.existing_diesel:
                messages.append(
                    f"Warning: Terminal '{bt.id}': converting {entry.num_to_convert} '{key}' units "
                    f"but only {baseline_entry.existing_diesel} diesel units exist."
                )

    return True, messages


def validate_project(project: Project) -> Tuple[bool, List[str]]:
    """Run all validations on a project and its baseline.

    Args:
        project: Project to validate.

    Returns:
        (is_valid, messages) where messages includes all errors and warnings.
    """
    messages = []
    is_valid = True

    checks = [
        validate_discount_rate(project.discount_rate),
        validate_initial_investment(project.initial_investment),
        validate_baseline(project.baseline),
    ]

    for valid, msg in checks:
        if not valid:
            is_valid = False
        if msg:
            messages.append(msg)

    if not project.name.strip():
        is_valid = False
        messages.append("Project name is required.")

    if not project.baseline.terminals:
        messages.append("Warning: Baseline has no terminals. Scenarios will be empty.")

    return is_valid, messages


def require_valid(check: Tuple[bool, str]) -> None:
    """Raise ValidationError if a validator result is invalid."""
    valid, msg = check
    if not valid:
        raise ValidationError(msg)
