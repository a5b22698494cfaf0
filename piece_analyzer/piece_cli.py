#!/usr/bin/env python3
"""
PIECE Analyzer CLI - Port electrification scenario and NPV tool

Command-line interface over the project record store:
- Create projects from a JSON terminal baseline
- Create and duplicate scenarios (always aligned with the baseline)
- Print or save the flat, engine-facing terminal configuration
- Load cash flows and evaluate NPV, IRR and payback
- Compare scenarios by NPV
- Export/import project bundles as JSON
- Export an Excel workbook and a PDF summary

Usage:
    python piece_cli.py --list
    python piece_cli.py --new-project baseline.json --name "Port of Tema" --investment 2.5e6
    python piece_cli.py --project <id> --new-scenario "Shore power, phase 1"
    python piece_cli.py --project <id> --npv --report
    python piece_cli.py --help
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

sys.path.insert(0, str(Path(__file__).parent))

from piece.data.scenarios import (
    create_scenario,
    duplicate_scenario,
    load_flat_terminals,
    save_flat_terminals,
)
from piece.data.settings import Settings, load_settings
from piece.data.storage import (
    JsonRecordStore,
    RecordNotFoundError,
    StoreError,
    load_project,
    save_project,
)
from piece.data.validators import ValidationError, validate_project, validate_scenario
from piece.models.evaluation import compare_scenarios, evaluate_project_npv, persist_npv_result
from piece.models.project import CashFlowRecord, NpvEvaluation, Project
from piece.models.terminals import FlatTerminalConfig, ProjectBaseline
from piece.reports.summary import generate_npv_summary
from piece.reports.workbook import export_workbook
from piece.utils.formatters import format_currency, format_percent, format_periods

logger = logging.getLogger("piece_cli")


# ============================================================================
# FORMATTING UTILITIES
# ============================================================================

def print_header(text: str, char: str = "=") -> None:
    """Print a formatted section header."""
    width = 70
    print(f"\n{char * width}")
    print(f" {text}")
    print(f"{char * width}")


def print_table(headers: List[str], rows: List[List[str]],
                col_widths: Optional[List[int]] = None) -> None:
    """Print a formatted ASCII table."""
    if col_widths is None:
        col_widths = [max(len(str(row[i])) for row in [headers] + rows) + 2
                      for i in range(len(headers))]

    header_line = "|".join(h.center(w) for h, w in zip(headers, col_widths))
    separator = "+".join("-" * w for w in col_widths)
    print(f"+{separator}+")
    print(f"|{header_line}|")
    print(f"+{separator}+")

    for row in rows:
        row_line = "|".join(str(cell).center(w) for cell, w in zip(row, col_widths))
        print(f"|{row_line}|")
    print(f"+{separator}+")


# ============================================================================
# COMMANDS
# ============================================================================

def print_projects(store: JsonRecordStore) -> None:
    projects = store.list_projects()
    print_header("PROJECTS")
    if not projects:
        print("\n  No projects in store.")
        return
    rows = [
        [p.id, p.name, str(p.terminal_count), format_currency(p.initial_investment),
         format_percent(p.discount_rate)]
        for p in projects
    ]
    print_table(["ID", "Name", "Terminals", "Investment", "Rate"], rows)


def print_scenarios(store: JsonRecordStore, project: Project) -> None:
    scenarios = store.list_scenarios(project.id)
    print_header(f"SCENARIOS: {project.name}")
    if not scenarios:
        print("\n  No scenarios.")
        return
    rows = [
        [str(s.sort_order), s.id, s.name, "yes" if s.has_result else "no"]
        for s in scenarios
    ]
    print_table(["#", "ID", "Name", "Result"], rows)


def print_evaluation(evaluation: NpvEvaluation) -> None:
    """Print an NPV evaluation with every input used."""
    print_header(f"NPV: {evaluation.project_name}")
    print(f"\n  Initial Investment:  {format_currency(evaluation.initial_investment)}")
    print(f"  Discount Rate:       {format_percent(evaluation.discount_rate, 2)}")
    print(f"  Cash Flow Records:   {evaluation.total_periods}")

    rows = [[str(cf.period), format_currency(cf.amount), cf.description or ""]
            for cf in evaluation.cash_flows]
    print()
    print_table(["Period", "Amount", "Description"], rows)

    print(f"\n  NPV:      {format_currency(evaluation.npv, 2)}")
    print(f"  IRR:      {format_percent(evaluation.irr)}")
    print(f"  Payback:  {format_periods(evaluation.payback_periods, 'periods')}")


def create_project_from_baseline(store: JsonRecordStore, baseline_path: str,
                                 args: argparse.Namespace) -> Project:
    """Create a project from a JSON file holding a ProjectBaseline."""
    with open(baseline_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    project = Project(
        name=args.name,
        description=args.description,
        initial_investment=args.investment,
        discount_rate=args.discount_rate,
        baseline=ProjectBaseline.from_dict(data),
        port_name=args.port or "",
        port_location=args.location or "",
    )
    valid, messages = validate_project(project)
    for msg in messages:
        print(f"  {msg}")
    if not valid:
        raise ValidationError("; ".join(m for m in messages if not m.startswith("Warning")))
    return store.insert_project(project)


def import_cash_flows(store: JsonRecordStore, project_id: str, filepath: str,
                      scenario_id: Optional[str] = None) -> List[CashFlowRecord]:
    """Replace cash flows from a JSON list of {"period", "amount", "description"}."""
    with open(filepath, "r", encoding="utf-8") as f:
        rows = json.load(f)
    records = [
        CashFlowRecord(
            project_id=project_id,
            period=int(row["period"]),
            amount=float(row["amount"]),
            description=row.get("description"),
        )
        for row in rows
    ]
    return store.replace_cash_flows(project_id, records, scenario_id=scenario_id)


def configure_logging(settings: Settings, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run(args: argparse.Namespace, settings: Settings) -> None:
    store = JsonRecordStore(args.store or settings.store_dir)
    report_dir = Path(settings.report_dir)
    logger.debug("Using record store at %s", store.root)

    # Import a bundle first so later flags can act on it
    if args.import_bundle:
        project, scenarios = load_project(store, args.import_bundle)
        print(f"\nImported project {project.id} with {len(scenarios)} scenarios")
        args.project = args.project or project.id

    if args.new_project:
        project = create_project_from_baseline(store, args.new_project, args)
        print(f"\nCreated project {project.id} ({project.name})")
        args.project = project.id

    if args.list and not args.project:
        print_projects(store)
        return

    if not args.project and args.scenario:
        args.project = store.get_scenario(args.scenario).project_id
    if not args.project:
        print("\nNo project selected. Use --project ID or --list.")
        return

    project = store.get_project(args.project)

    if args.new_scenario:
        scenario = create_scenario(store, project.id, args.new_scenario)
        print(f"\nCreated scenario {scenario.id} ({scenario.name})")
        args.scenario = scenario.id

    if args.duplicate:
        if not args.scenario:
            raise ValidationError("--duplicate requires --scenario")
        scenario = duplicate_scenario(store, args.scenario, args.duplicate)
        print(f"\nDuplicated into scenario {scenario.id} ({scenario.name})")
        args.scenario = scenario.id

    if args.save_flat:
        if not args.scenario:
            raise ValidationError("--save-flat requires --scenario")
        with open(args.save_flat, "r", encoding="utf-8") as f:
            flat = [FlatTerminalConfig.from_dict(d) for d in json.load(f)]
        save_flat_terminals(store, args.scenario, flat)
        print(f"\nSaved flat configuration to scenario {args.scenario}")
        project = store.get_project(project.id)

    if args.cash_flows:
        records = import_cash_flows(store, project.id, args.cash_flows, args.scenario)
        print(f"\nStored {len(records)} cash flows")

    if args.list:
        print_scenarios(store, project)

    flat_terminals = None
    scenario_name = ""
    if args.scenario:
        scenario = store.get_scenario(args.scenario)
        scenario_name = scenario.name
        _, warnings = validate_scenario(scenario.config, project.baseline)
        for msg in warnings:
            print(f"  {msg}")
        flat_terminals = load_flat_terminals(store, args.scenario)

    if args.flatten:
        if flat_terminals is None:
            raise ValidationError("--flatten requires --scenario")
        print(json.dumps([ft.to_dict() for ft in flat_terminals], indent=2))

    evaluation = None
    if args.npv or args.report or args.excel:
        try:
            evaluation = evaluate_project_npv(store, project.id, args.scenario)
        except ValidationError as e:
            print(f"\nNPV evaluation failed: {e}")
        else:
            persist_npv_result(store, evaluation)
            if not args.quiet:
                print_evaluation(evaluation)

    comparison = None
    if args.compare or args.report or args.excel:
        ranked = compare_scenarios(store, project.id)
        comparison = [(s.name, ev) for s, ev in ranked]
        if args.compare and not args.quiet:
            print_header("SCENARIO COMPARISON")
            if comparison:
                rows = [[str(i), name, format_currency(ev.npv), format_percent(ev.irr)]
                        for i, (name, ev) in enumerate(comparison, 1)]
                print_table(["Rank", "Scenario", "NPV", "IRR"], rows)
            else:
                print("\n  No scenarios with cash flows.")

    if args.export:
        save_project(store, project.id, args.export)
        print(f"\nProject exported to {args.export}")

    if args.excel:
        path = export_workbook(str(report_dir / args.excel), project, evaluation,
                               flat_terminals, comparison)
        print(f"\nExcel workbook generated: {path}")

    if args.report:
        if evaluation is None:
            print("\nPDF report skipped: no NPV evaluation available.")
        else:
            path = report_dir / args.report
            path.parent.mkdir(parents=True, exist_ok=True)
            generate_npv_summary(project, evaluation, str(path), scenario_name,
                                 flat_terminals, comparison)
            print(f"\nPDF report generated: {path}")


def main():
    """Main entry point for CLI."""

    parser = argparse.ArgumentParser(
        description="PIECE Analyzer CLI - Port electrification scenarios and NPV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python piece_cli.py --list                          # List projects
  python piece_cli.py --project ID --list             # List a project's scenarios
  python piece_cli.py --new-project baseline.json --name "Port A" --investment 1e6
  python piece_cli.py --project ID --new-scenario "Phase 1"
  python piece_cli.py --scenario ID --flatten         # Print flat terminal JSON
  python piece_cli.py --scenario ID --cash-flows cf.json --npv
  python piece_cli.py --project ID --compare --excel --report
        """
    )

    # Store and settings
    parser.add_argument("--store", type=str,
                        help="Record store directory (default: from settings)")
    parser.add_argument("--settings", type=str,
                        help="Settings JSON file")

    # Selection
    parser.add_argument("--project", "-p", type=str,
                        help="Project ID")
    parser.add_argument("--scenario", "-s", type=str,
                        help="Scenario ID")
    parser.add_argument("--list", "-l", action="store_true",
                        help="List projects, or scenarios of --project")

    # Project creation
    parser.add_argument("--new-project", type=str, metavar="BASELINE_JSON",
                        help="Create a project from a baseline JSON file")
    parser.add_argument("--name", "-n", type=str, default="Port Electrification Project",
                        help="Project name")
    parser.add_argument("--description", type=str,
                        help="Project description")
    parser.add_argument("--port", type=str,
                        help="Port name")
    parser.add_argument("--location", type=str,
                        help="Port location")
    parser.add_argument("--investment", type=float, default=0.0,
                        help="Initial investment (default: 0)")
    parser.add_argument("--discount-rate", type=float, default=0.08,
                        help="Discount rate as decimal (default: 0.08)")

    # Scenarios and data
    parser.add_argument("--new-scenario", type=str, metavar="NAME",
                        help="Create a scenario covering every baseline terminal")
    parser.add_argument("--duplicate", type=str, metavar="NAME",
                        help="Duplicate --scenario under a new name")
    parser.add_argument("--flatten", action="store_true",
                        help="Print the flat terminal configuration of --scenario as JSON")
    parser.add_argument("--save-flat", type=str, metavar="FLAT_JSON",
                        help="Save an edited flat configuration into --scenario")
    parser.add_argument("--cash-flows", type=str, metavar="CF_JSON",
                        help="Replace cash flows from a JSON list of period/amount rows")

    # Analysis
    parser.add_argument("--npv", action="store_true",
                        help="Evaluate NPV of the project (or --scenario flows)")
    parser.add_argument("--compare", "-c", action="store_true",
                        help="Rank the project's scenarios by NPV")

    # File operations
    parser.add_argument("--export", type=str,
                        help="Export project bundle to JSON file")
    parser.add_argument("--import", dest="import_bundle", type=str,
                        help="Import project bundle from JSON file")
    parser.add_argument("--report", type=str, nargs="?", const="PIECE_NPV_Summary.pdf",
                        help="Generate PDF summary (optional: specify filename)")
    parser.add_argument("--excel", type=str, nargs="?", const="PIECE_Analysis.xlsx",
                        help="Export to Excel workbook")

    # Display options
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Suppress detailed output")

    args = parser.parse_args()

    try:
        settings = load_settings(args.settings)
    except (OSError, ValueError) as e:
        parser.error(f"cannot load settings: {e}")

    configure_logging(settings, args.verbose)

    try:
        run(args, settings)
    except RecordNotFoundError as e:
        print(f"\nError: {e}")
        sys.exit(1)
    except (ValidationError, StoreError) as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
