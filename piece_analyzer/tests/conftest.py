"""Shared fixtures for PIECE Analyzer tests."""

import pytest

from piece.data.storage import JsonRecordStore
from piece.models.project import Project
from piece.models.terminals import (
    BaselineBerthDefinition,
    BaselineEquipmentEntry,
    BaselineTerminalConfig,
    PortServicesBaseline,
    ProjectBaseline,
)


def make_baseline() -> ProjectBaseline:
    """Two terminals: a container terminal with two berths, a cruise terminal with one."""
    return ProjectBaseline(
        terminals=[
            BaselineTerminalConfig(
                id="t1",
                name="North Container Terminal",
                terminal_type="container",
                berths=[
                    BaselineBerthDefinition(id="b1", berth_number=1, berth_name="Berth 1",
                                            max_vessel_segment_key="container_panamax"),
                    BaselineBerthDefinition(id="b2", berth_number=2, berth_name="Berth 2",
                                            max_vessel_segment_key="container_feeder",
                                            ops_existing=True),
                ],
                baseline_equipment={
                    "rtg": BaselineEquipmentEntry(existing_diesel=10, existing_electric=2),
                    "sts_crane": BaselineEquipmentEntry(existing_diesel=0, existing_electric=4),
                },
                cable_length_m=1200.0,
            ),
            BaselineTerminalConfig(
                id="t2",
                name="Cruise Terminal",
                terminal_type="cruise",
                berths=[
                    BaselineBerthDefinition(id="c1", berth_number=5, berth_name="Cruise Pier",
                                            max_vessel_segment_key="cruise_large"),
                ],
            ),
        ],
        port_services_baseline=PortServicesBaseline(tugs_diesel=4, pilot_boats_diesel=2),
    )


@pytest.fixture
def baseline():
    return make_baseline()


@pytest.fixture
def store(tmp_path):
    return JsonRecordStore(str(tmp_path / "store"))


@pytest.fixture
def project(store):
    return store.insert_project(Project(
        name="Port of Example",
        initial_investment=1000.0,
        discount_rate=0.10,
        baseline=make_baseline(),
        port_name="Example Harbour",
    ))
