"""Terminal and berth data models for PIECE Analyzer.

Three shapes describe a port's terminals:

- Baseline types hold the physical facts shared by every scenario of a
  project (terminal identity, berths, existing equipment, cable runs).
- Scenario types hold one electrification plan keyed by terminal id
  (throughput, vessel calls per berth, equipment changes, berth toggles).
- Flat types are the merged, engine-facing view produced by reconciliation.
  They are never persisted on their own.

All models support JSON serialization via to_dict()/from_dict() methods.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

TERMINAL_TYPES = ("container", "cruise", "roro")


@dataclass
class BaselineEquipmentEntry:
    """Existing equipment fleet for one equipment type.

    Attributes:
        existing_diesel: Units currently running on diesel.
        existing_electric: Units already electrified.
    """

    existing_diesel: int = 0
    existing_electric: int = 0

    def __post_init__(self):
        if self.existing_diesel < 0:
            raise ValueError(f"existing_diesel must be >= 0, got {self.existing_diesel}")
        if self.existing_electric < 0:
            raise ValueError(f"existing_electric must be >= 0, got {self.existing_electric}")

    def to_dict(self) -> dict:
        return {
            "existing_diesel": self.existing_diesel,
            "existing_electric": self.existing_electric,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BaselineEquipmentEntry":
        data = dict(data)
        data.setdefault("existing_diesel", 0)
        data.setdefault("existing_electric", 0)
        return cls(**data)


@dataclass
class ScenarioEquipmentEntry:
    """Planned equipment changes for one equipment type.

    Attributes:
        num_to_convert: Diesel units converted to electric.
        num_to_add: New electric units added to the fleet.
    """

    num_to_convert: int = 0
    num_to_add: int = 0

    def __post_init__(self):
        if self.num_to_convert < 0:
            raise ValueError(f"num_to_convert must be >= 0, got {self.num_to_convert}")
        if self.num_to_add < 0:
            raise ValueError(f"num_to_add must be >= 0, got {self.num_to_add}")

    def to_dict(self) -> dict:
        return {
            "num_to_convert": self.num_to_convert,
            "num_to_add": self.num_to_add,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScenarioEquipmentEntry":
        data = dict(data)
        data.setdefault("num_to_convert", 0)
        data.setdefault("num_to_add", 0)
        return cls(**data)


@dataclass
class BerthVesselCall:
    """Annual call pattern of one vessel segment at a berth.

    Attributes:
        id: Stable identifier of this call entry.
        vessel_segment_key: Vessel classification (e.g., "container_feeder").
        annual_calls: Number of calls per year.
        avg_berth_hours: Average hours alongside per call.
    """

    id: str = ""
    vessel_segment_key: str = ""
    annual_calls: float = 0
    avg_berth_hours: float = 0.0

    def __post_init__(self):
        if self.annual_calls < 0:
            raise ValueError(f"annual_calls must be >= 0, got {self.annual_calls}")
        if self.avg_berth_hours < 0:
            raise ValueError(f"avg_berth_hours must be >= 0, got {self.avg_berth_hours}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vessel_segment_key": self.vessel_segment_key,
            "annual_calls": self.annual_calls,
            "avg_berth_hours": self.avg_berth_hours,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BerthVesselCall":
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)


@dataclass
class BaselineBerthDefinition:
    """Physical berth as it exists before electrification.

    Attributes:
        id: Stable berth identifier, referenced by scenarios.
        berth_number: Berth number as signposted in the port.
        berth_name: Display name.
        max_vessel_segment_key: Largest vessel segment the berth accepts.
        ops_existing: Onshore power supply already installed.
        dc_existing: DC fast charging already installed.
    """

    id: str = ""
    berth_number: int = 1
    berth_name: str = ""
    max_vessel_segment_key: str = ""
    ops_existing: bool = False
    dc_existing: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "berth_number": self.berth_number,
            "berth_name": self.berth_name,
            "max_vessel_segment_key": self.max_vessel_segment_key,
            "ops_existing": self.ops_existing,
            "dc_existing": self.dc_existing,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BaselineBerthDefinition":
        data = dict(data)
        # Flat berths carry vessel calls; a baseline berth never does
        data.pop("vessel_calls", None)
        data.setdefault("ops_existing", False)
        data.setdefault("dc_existing", False)
        return cls(**data)


@dataclass
class BerthScenarioConfig:
    """Per-berth electrification toggles chosen in a scenario."""

    berth_id: str = ""
    ops_enabled: bool = False
    dc_enabled: bool = False

    def to_dict(self) -> dict:
        return {
            "berth_id": self.berth_id,
            "ops_enabled": self.ops_enabled,
            "dc_enabled": self.dc_enabled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BerthScenarioConfig":
        data = dict(data)
        data.setdefault("ops_enabled", False)
        data.setdefault("dc_enabled", False)
        return cls(**data)


@dataclass
class PortServicesBaseline:
    """Port-wide harbour craft fleet before electrification.

    Attributes:
        tugs_diesel: Diesel tugs in service.
        tugs_electric: Electric tugs in service.
        pilot_boats_diesel: Diesel pilot boats in service.
        pilot_boats_electric: Electric pilot boats in service.
        tug_avg_hours_per_call: Average tug operating hours per vessel call.
        pilot_avg_hours_per_call: Average pilot boat hours per vessel call.
    """

    tugs_diesel: int = 0
    tugs_electric: int = 0
    pilot_boats_diesel: int = 0
    pilot_boats_electric: int = 0
    tug_avg_hours_per_call: Optional[float] = None
    pilot_avg_hours_per_call: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "tugs_diesel": self.tugs_diesel,
            "tugs_electric": self.tugs_electric,
            "pilot_boats_diesel": self.pilot_boats_diesel,
            "pilot_boats_electric": self.pilot_boats_electric,
            "tug_avg_hours_per_call": self.tug_avg_hours_per_call,
            "pilot_avg_hours_per_call": self.pilot_avg_hours_per_call,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PortServicesBaseline":
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)


@dataclass
class PortServicesScenario:
    """Harbour craft conversions and additions planned in a scenario."""

    tugs_to_convert: int = 0
    tugs_to_add: int = 0
    pilot_boats_to_convert: int = 0
    pilot_boats_to_add: int = 0

    def to_dict(self) -> dict:
        return {
            "tugs_to_convert": self.tugs_to_convert,
            "tugs_to_add": self.tugs_to_add,
            "pilot_boats_to_convert": self.pilot_boats_to_convert,
            "pilot_boats_to_add": self.pilot_boats_to_add,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PortServicesScenario":
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)


@dataclass
class BaselineTerminalConfig:
    """Immutable baseline facts for one terminal.

    Attributes:
        id: Terminal identity, stable across all scenarios of the project.
        name: Display name.
        terminal_type: One of TERMINAL_TYPES.
        berths: Berths in display order.
        baseline_equipment: Equipment type key -> existing fleet.
        cable_length_m: Total grid cable run in meters, if known.
        port_services_baseline: Harbour craft attributed to this terminal.
    """

    id: str = ""
    name: str = ""
    terminal_type: str = "container"
    berths: List[BaselineBerthDefinition] = field(default_factory=list)
    baseline_equipment: Dict[str, BaselineEquipmentEntry] = field(default_factory=dict)
    cable_length_m: Optional[float] = None
    port_services_baseline: Optional[PortServicesBaseline] = None

    def __post_init__(self):
        if self.terminal_type not in TERMINAL_TYPES:
            raise ValueError(
                f"terminal_type must be one of {', '.join(TERMINAL_TYPES)}, got {self.terminal_type}"
            )
        if self.cable_length_m is not None and self.cable_length_m < 0:
            raise ValueError(f"cable_length_m must be >= 0, got {self.cable_length_m}")

    @property
    def berth_ids(self) -> List[str]:
        return [b.id for b in self.berths]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "terminal_type": self.terminal_type,
            "berths": [b.to_dict() for b in self.berths],
            "baseline_equipment": {k: v.to_dict() for k, v in self.baseline_equipment.items()},
            "cable_length_m": self.cable_length_m,
            "port_services_baseline": (
                self.port_services_baseline.to_dict() if self.port_services_baseline else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BaselineTerminalConfig":
        services_data = data.get("port_services_baseline")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            terminal_type=data.get("terminal_type", "container"),
            berths=[BaselineBerthDefinition.from_dict(b) for b in data.get("berths", [])],
            baseline_equipment={
                k: BaselineEquipmentEntry.from_dict(v)
                for k, v in data.get("baseline_equipment", {}).items()
            },
            cable_length_m=data.get("cable_length_m"),
            port_services_baseline=PortServicesBaseline.from_dict(services_data) if services_data else None,
        )


@dataclass
class ProjectBaseline:
    """Baseline of a project: ordered terminals plus port-wide services."""

    terminals: List[BaselineTerminalConfig] = field(default_factory=list)
    port_services_baseline: Optional[PortServicesBaseline] = None

    @property
    def terminal_ids(self) -> List[str]:
        return [t.id for t in self.terminals]

    def get_terminal(self, terminal_id: str) -> Optional[BaselineTerminalConfig]:
        """Return the baseline terminal with the given id, or None."""
        for terminal in self.terminals:
            if terminal.id == terminal_id:
                return terminal
        return None

    def to_dict(self) -> dict:
        return {
            "terminals": [t.to_dict() for t in self.terminals],
            "port_services_baseline": (
                self.port_services_baseline.to_dict() if self.port_services_baseline else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectBaseline":
        services_data = data.get("port_services_baseline")
        return cls(
            terminals=[BaselineTerminalConfig.from_dict(t) for t in data.get("terminals", [])],
            port_services_baseline=PortServicesBaseline.from_dict(services_data) if services_data else None,
        )


@dataclass
class ScenarioTerminalConfig:
    """Scenario overlay for one baseline terminal.

    Attributes:
        terminal_id: Id of the baseline terminal this entry applies to.
        annual_teu: Container throughput assumption.
        annual_passengers: Cruise passenger throughput, if relevant.
        annual_ceu: Ro-ro car equivalent units, if relevant.
        vessel_calls_by_berth: Berth id -> vessel calls. A berth missing from
            the mapping has no calls in this scenario.
        scenario_equipment: Equipment type key -> planned changes.
        berth_scenarios: OPS/DC toggles per berth.
        charger_overrides: Manual charger counts by charger type.
        port_services_scenario: Harbour craft changes attributed to this terminal.
    """

    terminal_id: str = ""
    annual_teu: float = 0
    annual_passengers: Optional[float] = None
    annual_ceu: Optional[float] = None
    vessel_calls_by_berth: Dict[str, List[BerthVesselCall]] = field(default_factory=dict)
    scenario_equipment: Dict[str, ScenarioEquipmentEntry] = field(default_factory=dict)
    berth_scenarios: List[BerthScenarioConfig] = field(default_factory=list)
    charger_overrides: Optional[Dict[str, float]] = None
    port_services_scenario: Optional[PortServicesScenario] = None

    def __post_init__(self):
        if self.annual_teu < 0:
            raise ValueError(f"annual_teu must be >= 0, got {self.annual_teu}")

    def to_dict(self) -> dict:
        return {
            "terminal_id": self.terminal_id,
            "annual_teu": self.annual_teu,
            "annual_passengers": self.annual_passengers,
            "annual_ceu": self.annual_ceu,
            "vessel_calls_by_berth": {
                berth_id: [c.to_dict() for c in calls]
                for berth_id, calls in self.vessel_calls_by_berth.items()
            },
            "scenario_equipment": {k: v.to_dict() for k, v in self.scenario_equipment.items()},
            "berth_scenarios": [b.to_dict() for b in self.berth_scenarios],
            "charger_overrides": dict(self.charger_overrides) if self.charger_overrides is not None else None,
            "port_services_scenario": (
                self.port_services_scenario.to_dict() if self.port_services_scenario else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScenarioTerminalConfig":
        services_data = data.get("port_services_scenario")
        return cls(
            terminal_id=data["terminal_id"],
            annual_teu=data.get("annual_teu") or 0,
            annual_passengers=data.get("annual_passengers"),
            annual_ceu=data.get("annual_ceu"),
            vessel_calls_by_berth={
                berth_id: [BerthVesselCall.from_dict(c) for c in calls]
                for berth_id, calls in data.get("vessel_calls_by_berth", {}).items()
            },
            scenario_equipment={
                k: ScenarioEquipmentEntry.from_dict(v)
                for k, v in data.get("scenario_equipment", {}).items()
            },
            berth_scenarios=[BerthScenarioConfig.from_dict(b) for b in data.get("berth_scenarios", [])],
            charger_overrides=data.get("charger_overrides"),
            port_services_scenario=PortServicesScenario.from_dict(services_data) if services_data else None,
        )


@dataclass
class ScenarioConfig:
    """One electrification plan. May cover only some baseline terminals."""

    terminals: List[ScenarioTerminalConfig] = field(default_factory=list)
    port_services_scenario: Optional[PortServicesScenario] = None

    def get_terminal(self, terminal_id: str) -> Optional[ScenarioTerminalConfig]:
        """Return the first scenario entry for terminal_id, or None."""
        for terminal in self.terminals:
            if terminal.terminal_id == terminal_id:
                return terminal
        return None

    def to_dict(self) -> dict:
        return {
            "terminals": [t.to_dict() for t in self.terminals],
            "port_services_scenario": (
                self.port_services_scenario.to_dict() if self.port_services_scenario else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScenarioConfig":
        services_data = data.get("port_services_scenario")
        return cls(
            terminals=[ScenarioTerminalConfig.from_dict(t) for t in data.get("terminals", [])],
            port_services_scenario=PortServicesScenario.from_dict(services_data) if services_data else None,
        )


@dataclass
class FlatBerth:
    """Baseline berth with the scenario's vessel calls attached."""

    id: str = ""
    berth_number: int = 1
    berth_name: str = ""
    max_vessel_segment_key: str = ""
    ops_existing: bool = False
    dc_existing: bool = False
    vessel_calls: List[BerthVesselCall] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "berth_number": self.berth_number,
            "berth_name": self.berth_name,
            "max_vessel_segment_key": self.max_vessel_segment_key,
            "ops_existing": self.ops_existing,
            "dc_existing": self.dc_existing,
            "vessel_calls": [c.to_dict() for c in self.vessel_calls],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FlatBerth":
        data = dict(data)
        data["vessel_calls"] = [BerthVesselCall.from_dict(c) for c in data.get("vessel_calls", [])]
        data.setdefault("ops_existing", False)
        data.setdefault("dc_existing", False)
        return cls(**data)


@dataclass
class FlatTerminalConfig:
    """Reconciled, engine-facing configuration of one terminal.

    Union of a BaselineTerminalConfig and its ScenarioTerminalConfig (or
    scenario defaults when the scenario does not cover the terminal). This
    is the only shape the calculation engine accepts.
    """

    id: str = ""
    name: str = ""
    terminal_type: str = "container"
    berths: List[FlatBerth] = field(default_factory=list)
    baseline_equipment: Dict[str, BaselineEquipmentEntry] = field(default_factory=dict)
    cable_length_m: Optional[float] = None
    port_services_baseline: Optional[PortServicesBaseline] = None
    annual_teu: float = 0
    annual_passengers: Optional[float] = None
    annual_ceu: Optional[float] = None
    scenario_equipment: Dict[str, ScenarioEquipmentEntry] = field(default_factory=dict)
    berth_scenarios: List[BerthScenarioConfig] = field(default_factory=list)
    charger_overrides: Optional[Dict[str, float]] = None
    port_services_scenario: Optional[PortServicesScenario] = None

    @property
    def total_annual_calls(self) -> float:
        return sum(c.annual_calls for b in self.berths for c in b.vessel_calls)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "terminal_type": self.terminal_type,
            "berths": [b.to_dict() for b in self.berths],
            "baseline_equipment": {k: v.to_dict() for k, v in self.baseline_equipment.items()},
            "cable_length_m": self.cable_length_m,
            "port_services_baseline": (
                self.port_services_baseline.to_dict() if self.port_services_baseline else None
            ),
            "annual_teu": self.annual_teu,
            "annual_passengers": self.annual_passengers,
            "annual_ceu": self.annual_ceu,
            "scenario_equipment": {k: v.to_dict() for k, v in self.scenario_equipment.items()},
            "berth_scenarios": [b.to_dict() for b in self.berth_scenarios],
            "charger_overrides": dict(self.charger_overrides) if self.charger_overrides is not None else None,
            "port_services_scenario": (
                self.port_services_scenario.to_dict() if self.port_services_scenario else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FlatTerminalConfig":
        baseline_services = data.get("port_services_baseline")
        scenario_services = data.get("port_services_scenario")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            terminal_type=data.get("terminal_type", "container"),
            berths=[FlatBerth.from_dict(b) for b in data.get("berths", [])],
            baseline_equipment={
                k: BaselineEquipmentEntry.from_dict(v)
                for k, v in data.get("baseline_equipment", {}).items()
            },
            cable_length_m=data.get("cable_length_m"),
            port_services_baseline=(
                PortServicesBaseline.from_dict(baseline_services) if baseline_services else None
            ),
            annual_teu=data.get("annual_teu") or 0,
            annual_passengers=data.get("annual_passengers"),
            annual_ceu=data.get("annual_ceu"),
            scenario_equipment={
                k: ScenarioEquipmentEntry.from_dict(v)
                for k, v in data.get("scenario_equipment", {}).items()
            },
            berth_scenarios=[BerthScenarioConfig.from_dict(b) for b in data.get("berth_scenarios", [])],
            charger_overrides=data.get("charger_overrides"),
            port_services_scenario=(
                PortServicesScenario.from_dict(scenario_services) if scenario_services else None
            ),
        )
