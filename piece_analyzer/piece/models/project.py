"""Project, scenario and financial record models for PIECE Analyzer.

Defines dataclasses for the records kept in the record store (projects,
scenarios, cash flows, NPV results) and for the in-memory outcome of an NPV
evaluation. All models support JSON serialization via to_dict()/from_dict()
methods.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from piece.models.terminals import ProjectBaseline, ScenarioConfig


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Project:
    """A port electrification project.

    Attributes:
        id: Store-assigned identifier.
        name: Project name (e.g., "Port of Tema Phase 1").
        description: Free-text description, optional.
        initial_investment: Capital cost not tied to any scenario.
        discount_rate: Fractional rate per period (0.08 = 8%).
        baseline: Shared physical baseline, owned 1:1 by the project.
        port_name: Port display name.
        port_location: Port location (city, country).
        created_at: ISO-8601 creation timestamp.
        updated_at: ISO-8601 timestamp of the last explicit update.
    """

    id: str = ""
    name: str = ""
    description: Optional[str] = None
    initial_investment: float = 0.0
    discount_rate: float = 0.08
    baseline: ProjectBaseline = field(default_factory=ProjectBaseline)
    port_name: str = ""
    port_location: str = ""
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = ""

    def __post_init__(self):
        # discount_rate is checked by validate_project() and at evaluation
        if not self.updated_at:
            self.updated_at = self.created_at

    @property
    def terminal_count(self) -> int:
        return len(self.baseline.terminals)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "initial_investment": self.initial_investment,
            "discount_rate": self.discount_rate,
            "baseline": self.baseline.to_dict(),
            "port_name": self.port_name,
            "port_location": self.port_location,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        data = dict(data)
        data["baseline"] = ProjectBaseline.from_dict(data.get("baseline") or {})
        # Numeric columns may arrive as strings from exported tables
        data["initial_investment"] = float(data.get("initial_investment", 0.0))
        data["discount_rate"] = float(data.get("discount_rate", 0.08))
        data.setdefault("description", None)
        data.setdefault("port_name", "")
        data.setdefault("port_location", "")
        data.setdefault("updated_at", "")
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        return cls(**{k: v for k, v in data.items() if k in valid_fields})


@dataclass
class ScenarioRecord:
    """A stored scenario of a project.

    Attributes:
        id: Store-assigned identifier.
        project_id: Owning project.
        name: Scenario name shown in comparisons.
        description: Free-text description, optional.
        sort_order: Position among the project's scenarios.
        config: The scenario overlay.
        result: Summary of the last engine run, or None when stale.
        created_at: ISO-8601 creation timestamp.
        updated_at: ISO-8601 timestamp of the last update.
    """

    id: str = ""
    project_id: str = ""
    name: str = ""
    description: Optional[str] = None
    sort_order: int = 0
    config: ScenarioConfig = field(default_factory=ScenarioConfig)
    result: Optional[dict] = None
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = ""

    def __post_init__(self):
        if not self.updated_at:
            self.updated_at = self.created_at

    @property
    def has_result(self) -> bool:
        return self.result is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description,
            "sort_order": self.sort_order,
            "config": self.config.to_dict(),
            "result": dict(self.result) if self.result is not None else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScenarioRecord":
        data = dict(data)
        data["config"] = ScenarioConfig.from_dict(data.get("config") or {})
        data.setdefault("description", None)
        data.setdefault("sort_order", 0)
        data.setdefault("result", None)
        data.setdefault("updated_at", "")
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        return cls(**{k: v for k, v in data.items() if k in valid_fields})


@dataclass
class CashFlowRecord:
    """Signed cash flow of one period.

    Attributes:
        project_id: Owning project.
        period: Discrete time step (>= 0), used directly as the discount exponent.
        amount: Signed currency amount for the period.
        id: Store-assigned identifier.
        description: Optional label (e.g., "OPEX savings").
        scenario_id: Scenario that produced the flow, or None for project-level flows.
    """

    project_id: str = ""
    period: int = 0
    amount: float = 0.0
    id: str = ""
    description: Optional[str] = None
    scenario_id: Optional[str] = None

    def __post_init__(self):
        if self.period < 0:
            raise ValueError(f"period must be >= 0, got {self.period}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "scenario_id": self.scenario_id,
            "period": self.period,
            "amount": self.amount,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CashFlowRecord":
        return cls(
            project_id=data["project_id"],
            period=int(data["period"]),
            amount=float(data["amount"]),
            id=data.get("id", ""),
            description=data.get("description"),
            scenario_id=data.get("scenario_id"),
        )


@dataclass
class NpvResult:
    """Stored outcome of one NPV evaluation. Rewritten on every evaluation."""

    project_id: str = ""
    npv_value: float = 0.0
    discount_rate_used: float = 0.0
    total_periods: int = 0
    id: str = ""
    scenario_id: Optional[str] = None
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "scenario_id": self.scenario_id,
            "npv_value": self.npv_value,
            "discount_rate_used": self.discount_rate_used,
            "total_periods": self.total_periods,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NpvResult":
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)


@dataclass
class NpvEvaluation:
    """Computed NPV together with the inputs used.

    Attributes:
        npv: Net present value.
        discount_rate: Rate applied.
        initial_investment: Investment subtracted at period 0.
        total_periods: Number of cash-flow records evaluated.
        cash_flows: The records evaluated, in the order supplied.
        irr: Internal rate of return over the dense period series, or None.
        payback_periods: Simple (undiscounted) payback, or None if never reached.
        project_id: Project evaluated.
        project_name: Name of the project evaluated.
        scenario_id: Scenario evaluated, if any.
    """

    npv: float = 0.0
    discount_rate: float = 0.0
    initial_investment: float = 0.0
    total_periods: int = 0
    cash_flows: List[CashFlowRecord] = field(default_factory=list)
    irr: Optional[float] = None
    payback_periods: Optional[float] = None
    project_id: str = ""
    project_name: str = ""
    scenario_id: Optional[str] = None

    def to_npv_result(self) -> NpvResult:
        """Build the record persisted for this evaluation."""
        return NpvResult(
            project_id=self.project_id,
            scenario_id=self.scenario_id,
            npv_value=self.npv,
            discount_rate_used=self.discount_rate,
            total_periods=self.total_periods,
        )

    def to_dict(self) -> dict:
        return {
            "npv": self.npv,
            "project": self.project_name,
            "discount_rate": self.discount_rate,
            "initial_investment": self.initial_investment,
            "total_periods": self.total_periods,
            "cash_flows": [cf.to_dict() for cf in self.cash_flows],
            "irr": self.irr,
            "payback_periods": self.payback_periods,
        }
