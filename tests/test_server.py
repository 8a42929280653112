"""
Tests for the HTTP API.

Tests cover:
- Catalog endpoints (platforms, scenarios) and error status codes
- Session lifecycle: initialize, step, run, state, reset, close
- Range profiles and precipitation read-back
- Monte Carlo endpoint
"""

import pytest
from fastapi.testclient import TestClient

import server

from conftest import SAM_RECORD


@pytest.fixture
def client(monkeypatch, tmp_path, platform_store, scenario_store):
    monkeypatch.setenv("SPEAR_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("SPEAR_ITU_CSV", raising=False)
    with TestClient(server.app) as test_client:
        yield test_client


@pytest.fixture
def session_id(client):
    response = client.post("/simulation/initialize", json={"scenario_id": "head-on"})
    assert response.status_code == 200
    return response.json()["session_id"]


# =============================================================================
# CATALOG TESTS
# =============================================================================

class TestCatalog:

    def test_root(self, client):
        data = client.get("/").json()
        assert data["status"] == "ready"
        assert data["itu_loaded"] is True

    def test_list_platforms(self, client):
        data = client.get("/platforms").json()
        assert [s["id"] for s in data["sams"]] == ["sa-6"]
        assert [f["id"] for f in data["fighters"]] == ["f-16"]

    def test_get_platform(self, client):
        response = client.get("/platforms/sam/sa-6")
        assert response.status_code == 200
        assert response.json()["nominalRange"] == 30.0

    def test_unknown_platform_kind(self, client):
        assert client.get("/platforms/tank/t-72").status_code == 400

    def test_missing_platform(self, client):
        assert client.get("/platforms/fighter/f-99").status_code == 404

    def test_save_platform(self, client):
        record = dict(SAM_RECORD, id="sa-2", nominalRange=40.0)
        assert client.post("/platforms/sam", json=record).status_code == 200
        assert client.get("/platforms/sam/sa-2").json()["nominalRange"] == 40.0

    def test_save_malformed_platform(self, client):
        record = dict(SAM_RECORD, id="sa-2", nominalRange="40")
        response = client.post("/platforms/sam", json=record)
        assert response.status_code == 422
        assert response.json()["detail"][0]["loc"] == ["nominalRange"]

    def test_scenarios(self, client):
        assert [s["id"] for s in client.get("/scenarios").json()] == ["head-on", "head-on-rain"]
        assert client.get("/scenarios/head-on").json()["grid"]["width"] == 100.0
        assert client.get("/scenarios/nope").status_code == 404


# =============================================================================
# SESSION TESTS
# =============================================================================

class TestSimulation:

    def test_initialize_returns_state(self, client):
        data = client.post("/simulation/initialize", json={"scenario_id": "head-on"}).json()
        assert data["session_id"]
        assert data["state"]["time"] == 0.0
        assert data["state"]["detected"] is True

    def test_initialize_unknown_scenario(self, client):
        response = client.post("/simulation/initialize", json={"scenario_id": "nope"})
        assert response.status_code == 404

    def test_initialize_invalid_grid(self, client):
        record = server.scenario_store.require("head-on").to_dict()
        record["id"] = "flat"
        record["grid"]["width"] = 0.0
        assert client.post("/scenarios", json=record).status_code == 200

        response = client.post("/simulation/initialize", json={"scenario_id": "flat"})
        assert response.status_code == 400

    def test_single_step_without_body(self, client, session_id):
        data = client.post(f"/simulation/{session_id}/step").json()
        assert data["complete"] is False
        assert data["state"]["time"] == 0.5

    def test_multiple_steps(self, client, session_id):
        data = client.post(f"/simulation/{session_id}/step", json={"steps": 10}).json()
        assert data["state"]["time"] == 5.0
        assert "result" not in data

    def test_step_to_completion_reports_result(self, client, session_id):
        data = client.post(f"/simulation/{session_id}/step", json={"steps": 10000}).json()
        assert data["complete"] is True
        assert data["result"]["success"] is True

    def test_run_and_reset(self, client, session_id):
        data = client.post(f"/simulation/{session_id}/run").json()
        assert data["result"]["success"] is True
        assert data["state"]["complete"] is True

        state = client.post(f"/simulation/{session_id}/reset").json()
        assert state["time"] == 0.0
        assert state["missiles"] == []

    def test_state(self, client, session_id):
        state = client.get(f"/simulation/{session_id}/state").json()
        assert state["distance"] == pytest.approx(25.0)
        assert state["sam"]["tracking_status"]["status"] == "not_tracking"

    def test_close(self, client, session_id):
        assert client.delete(f"/simulation/{session_id}").status_code == 200
        assert client.get(f"/simulation/{session_id}/state").status_code == 404

    def test_unknown_session(self, client):
        assert client.post("/simulation/missing/step").status_code == 404


# =============================================================================
# RANGE AND PRECIPITATION TESTS
# =============================================================================

class TestRangesAndRain:

    def test_nominal_ranges(self, client, session_id):
        ranges = client.get(f"/simulation/{session_id}/ranges/nominal").json()["ranges"]
        assert len(ranges) == 360
        assert ranges[0] == 30.0

    def test_nominal_ranges_for_rcs(self, client, session_id):
        ranges = client.get(f"/simulation/{session_id}/ranges/nominal", params={"rcs": 16.0}).json()["ranges"]
        assert ranges[0] == pytest.approx(60.0)

    def test_clear_air_has_no_rain(self, client, session_id):
        assert client.get(f"/simulation/{session_id}/ranges/precipitation").json()["enabled"] is False
        assert client.get(f"/simulation/{session_id}/precipitation").json() == {"enabled": False}
        assert client.get(f"/simulation/{session_id}/precipitation/grid").status_code == 404

    def test_rain_session(self, client):
        sid = client.post("/simulation/initialize", json={"scenario_id": "head-on-rain"}).json()["session_id"]

        ranges = client.get(f"/simulation/{sid}/ranges/precipitation").json()
        assert ranges["enabled"] is True
        assert len(ranges["ranges"]) == 360

        field = client.get(f"/simulation/{sid}/precipitation").json()
        assert field["enabled"] is True
        assert len(field["cells"]) == field["statistics"]["num_cells"]

        grid = client.get(f"/simulation/{sid}/precipitation/grid", params={"resolution": 0.5}).json()
        assert (grid["width"], grid["height"]) == (50, 50)


# =============================================================================
# MONTE CARLO TESTS
# =============================================================================

class TestMonteCarlo:

    def test_batch(self, client):
        data = client.post("/monte-carlo", json={"scenario_id": "head-on", "num_runs": 2}).json()
        assert data["num_runs"] == 2
        assert data["sam_survival_rate"] == 1.0

    def test_unknown_scenario(self, client):
        response = client.post("/monte-carlo", json={"scenario_id": "nope", "num_runs": 1})
        assert response.status_code == 404
