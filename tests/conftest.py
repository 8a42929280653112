"""
Shared fixtures: platform records, scenarios, stores and the ITU table.
"""

import copy

import pytest

from spear.attenuation import AttenuationTable
from spear.platforms import FighterPlatformConfig, SAMSystemConfig
from spear.scenario import ScenarioConfig
from spear.store import PlatformStore, ScenarioStore


SAM_RECORD = {
    "id": "sa-6",
    "name": "SA-6 Gainful",
    "nominalRange": 30.0,
    "pulseModel": "short",
    "manualAcquisitionTime": 12.0,
    "autoAcquisitionTime": 4.0,
    "memr": 20.0,
    "missileVelocity": 3.0,
    "systemFrequency": 10.0,
    "missileTrackingFrequency": 9.0,
}

FIGHTER_RECORD = {
    "id": "f-16",
    "type": "F-16",
    "velocity": 0.9,
    "rcs": {"nose": 5.0, "tail": 8.0, "side": 12.0},
    "harmParams": {"velocity": 2.0, "range": 15.0, "launchPreference": "maxRange"},
}

SCENARIO_RECORD = {
    "id": "head-on",
    "name": "Head-on closing",
    "grid": {"width": 100.0, "height": 100.0, "resolution": 1.0},
    "timeStep": 0.5,
    "platforms": {
        "sam": {"configId": "sa-6", "position": {"x": 0.0, "y": 0.0}, "heading": 0.0},
        "fighter": {
            "configId": "f-16",
            "position": {"x": 25.0, "y": 0.0},
            "heading": 180.0,
            "flightPath": {"type": "straight"},
        },
    },
    "environment": {
        "precipitation": {
            "enabled": False,
            "nominalRainRate": 20.0,
            "nominalCellSize": 5.0,
            "nominalCoverage": 25.0,
            "alpha": 0.3,
            "maxRainRateCap": 50.0,
        }
    },
}


def make_scenario(**overrides) -> ScenarioConfig:
    """
    Scenario from SCENARIO_RECORD with dotted-path overrides, e.g.
    make_scenario(**{"environment.precipitation.enabled": True}).
    """
    record = copy.deepcopy(SCENARIO_RECORD)
    for path, value in overrides.items():
        node = record
        keys = path.split(".")
        for key in keys[:-1]:
            node = node[key]
        node[keys[-1]] = value
    return ScenarioConfig.model_validate(record)


@pytest.fixture(scope="session")
def attenuation():
    return AttenuationTable.from_p838()


@pytest.fixture
def sam_config():
    return SAMSystemConfig.model_validate(SAM_RECORD)


@pytest.fixture
def fighter_config():
    return FighterPlatformConfig.model_validate(FIGHTER_RECORD)


@pytest.fixture
def platform_store(tmp_path, sam_config, fighter_config):
    store = PlatformStore(tmp_path)
    store.save_sam(sam_config)
    store.save_fighter(fighter_config)
    return store


@pytest.fixture
def scenario():
    return make_scenario()


@pytest.fixture
def rain_scenario():
    return make_scenario(**{
        "id": "head-on-rain",
        "environment.precipitation.enabled": True,
        "environment.precipitation.seed": 42,
    })


@pytest.fixture
def scenario_store(tmp_path, scenario, rain_scenario):
    store = ScenarioStore(tmp_path)
    store.save(scenario)
    store.save(rain_scenario)
    return store
