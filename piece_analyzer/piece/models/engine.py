"""Boundary types for the external equipment/cost calculation engine.

The engine sizes equipment and chargers and produces costs, emissions and a
per-period cash-flow projection. Its internals live outside this package; it
is any callable that accepts the flat terminal configs produced by
reconstitute() together with the port-wide harbour craft services from
resolve_port_services(), and returns an EngineResult.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from piece.models.project import CashFlowRecord
from piece.models.terminals import FlatTerminalConfig, PortServicesBaseline, PortServicesScenario


@dataclass
class EngineResult:
    """Output of one engine run.

    Attributes:
        cash_flows: (period, amount) pairs, the scenario's cash-flow projection.
        summary: Free-form totals (capex, CO2 reduction, OPEX savings, ...)
            kept on the scenario record for list views.
    """

    cash_flows: List[Tuple[int, float]] = field(default_factory=list)
    summary: dict = field(default_factory=dict)

    def to_records(self, project_id: str, scenario_id: str) -> List[CashFlowRecord]:
        return [
            CashFlowRecord(
                project_id=project_id,
                scenario_id=scenario_id,
                period=int(period),
                amount=float(amount),
            )
            for period, amount in self.cash_flows
        ]


CalculationEngine = Callable[
    [List[FlatTerminalConfig], Optional[PortServicesBaseline], Optional[PortServicesScenario]],
    EngineResult,
]
