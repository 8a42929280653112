"""
API Server - HTTP Front End for the Engagement Simulator

This server does three things:
1. Platform / scenario catalog: read and save the JSON records
2. Sessions: create a simulator, step it, read its state, tear it down
3. Batch analysis: seeded Monte Carlo runs of a stored scenario

Everything algorithmic lives in the `spear` package. The server only maps
requests onto it and errors onto status codes:

    not found (scenario, platform, session)  -> 404
    invalid grid bounds                      -> 400
    malformed record                         -> 422
    attenuation table missing                -> 503

Environment:
    SPEAR_DATA_DIR   data root (platforms/, scenarios/, precipitation/)
    SPEAR_ITU_CSV    optional ITU attenuation CSV; default is ITU-R P.838-3
    SPEAR_LOG_LEVEL  logging level, default INFO
"""

from __future__ import annotations
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from spear.attenuation import AttenuationTable
from spear.errors import (
    ITUDataNotLoaded, InvalidBounds, PlatformNotFound, ScenarioNotFound, SessionNotFound,
)
from spear.monte_carlo import MonteCarloConfig, run_monte_carlo
from spear.platforms import FighterPlatformConfig, SAMSystemConfig
from spear.raster import RainRaster
from spear.scenario import ScenarioConfig
from spear.session import SessionStore
from spear.store import PLATFORM_KINDS, PlatformStore, ScenarioStore

logger = logging.getLogger("spear.server")

DEFAULT_DATA_DIR = Path(__file__).resolve().parent / "data"
MAX_MONTE_CARLO_RUNS = 1000
MAX_STEPS_PER_REQUEST = 10000


# ============================================================
# Global instances (created in lifespan)
# ============================================================

platform_store: Optional[PlatformStore] = None
scenario_store: Optional[ScenarioStore] = None
attenuation_table: Optional[AttenuationTable] = None
sessions: Optional[SessionStore] = None
data_dir: Path = DEFAULT_DATA_DIR


def load_attenuation_table() -> AttenuationTable:
    csv_path = os.environ.get("SPEAR_ITU_CSV")
    if csv_path:
        return AttenuationTable.from_csv(csv_path)
    return AttenuationTable.from_p838()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown logic."""
    global platform_store, scenario_store, attenuation_table, sessions, data_dir

    logging.basicConfig(
        level=os.environ.get("SPEAR_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    data_dir = Path(os.environ.get("SPEAR_DATA_DIR", DEFAULT_DATA_DIR))
    platform_store = PlatformStore(data_dir)
    scenario_store = ScenarioStore(data_dir)
    attenuation_table = load_attenuation_table()
    sessions = SessionStore(platform_store, attenuation_table, raster_dir=data_dir / "precipitation")

    logger.info(f"SPEAR server starting (data dir {data_dir})")
    yield
    logger.info(f"SPEAR server shutting down ({len(sessions)} open sessions)")


app = FastAPI(
    title="SPEAR Engagement Simulator",
    description="SAM vs fighter engagement simulation with rain attenuation",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for local dev (UI on a different port)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# Error mapping
# ============================================================

@app.exception_handler(PlatformNotFound)
@app.exception_handler(ScenarioNotFound)
@app.exception_handler(SessionNotFound)
async def not_found_handler(request: Request, exc: LookupError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidBounds)
async def invalid_bounds_handler(request: Request, exc: InvalidBounds):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    errors = exc.errors(include_url=False, include_context=False, include_input=False)
    return JSONResponse(status_code=422, content={"detail": errors})


@app.exception_handler(ITUDataNotLoaded)
async def itu_not_loaded_handler(request: Request, exc: ITUDataNotLoaded):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# ============================================================
# API Models
# ============================================================

class InitializeRequest(BaseModel):
    scenario_id: str
    time_step: Optional[float] = Field(default=None, gt=0)
    seed: Optional[int] = None


class StepRequest(BaseModel):
    steps: int = Field(default=1, ge=1, le=MAX_STEPS_PER_REQUEST)


class MonteCarloRequest(BaseModel):
    scenario_id: str
    num_runs: int = Field(default=100, ge=1)
    base_seed: int = 0
    time_step: Optional[float] = Field(default=None, gt=0)


# ============================================================
# Catalog Endpoints
# ============================================================

@app.get("/")
async def root():
    return {
        "name": "SPEAR Engagement Simulator",
        "version": "0.1.0",
        "status": "ready",
        "itu_loaded": attenuation_table is not None and attenuation_table.is_loaded,
    }


@app.get("/platforms")
async def list_platforms():
    return platform_store.list_all()


@app.get("/platforms/{kind}/{platform_id}")
async def get_platform(kind: str, platform_id: str):
    if kind not in PLATFORM_KINDS:
        raise HTTPException(status_code=400, detail=f"Unknown platform kind: {kind}")
    record = platform_store.load(kind, platform_id)
    if record is None:
        raise PlatformNotFound("SAM" if kind == "sam" else "Fighter", platform_id)
    return record.to_dict()


@app.post("/platforms/sam")
async def save_sam(data: dict):
    sam = SAMSystemConfig.model_validate(data)
    platform_store.save_sam(sam)
    return sam.to_dict()


@app.post("/platforms/fighter")
async def save_fighter(data: dict):
    fighter = FighterPlatformConfig.model_validate(data)
    platform_store.save_fighter(fighter)
    return fighter.to_dict()


@app.get("/scenarios")
async def list_scenarios():
    return scenario_store.list_all()


@app.get("/scenarios/{scenario_id}")
async def get_scenario(scenario_id: str):
    return scenario_store.require(scenario_id).to_dict()


@app.post("/scenarios")
async def save_scenario(data: dict):
    scenario = ScenarioConfig.model_validate(data)
    scenario_store.save(scenario)
    return scenario.to_dict()


# ============================================================
# Simulation Endpoints
# ============================================================

@app.post("/simulation/initialize")
async def initialize_simulation(request: InitializeRequest):
    """Create a simulator for a stored scenario and return its session id."""
    scenario = scenario_store.require(request.scenario_id)
    handle = sessions.create(scenario, time_step=request.time_step, seed=request.seed)
    simulator = sessions.get(handle)
    return {
        "session_id": handle.session_id,
        "state": simulator.get_state().to_dict(),
    }


@app.post("/simulation/{session_id}/step")
async def step_simulation(session_id: str, request: Optional[StepRequest] = None):
    simulator = sessions.get(session_id)
    steps = request.steps if request is not None else 1

    complete = simulator.engagement_complete()
    for _ in range(steps):
        complete = simulator.advance_simulation_time_step()
        if complete:
            break

    response = {
        "complete": complete,
        "state": simulator.get_state().to_dict(),
    }
    if complete:
        response["result"] = simulator.engagement_result().to_dict()
    return response


@app.post("/simulation/{session_id}/run")
async def run_simulation(session_id: str):
    simulator = sessions.get(session_id)
    result = simulator.run_to_completion()
    return {
        "result": result.to_dict(),
        "state": simulator.get_state().to_dict(),
    }


@app.get("/simulation/{session_id}/state")
async def get_simulation_state(session_id: str):
    return sessions.get(session_id).get_state().to_dict()


@app.post("/simulation/{session_id}/reset")
async def reset_simulation(session_id: str):
    simulator = sessions.get(session_id)
    simulator.reset_scenario()
    return simulator.get_state().to_dict()


@app.get("/simulation/{session_id}/ranges/nominal")
async def get_nominal_ranges(session_id: str, rcs: Optional[float] = None):
    """1 m^2 range per azimuth, or scaled to `rcs` with the SAM's pulse count."""
    simulator = sessions.get(session_id)
    ranges = simulator.nominal_ranges()
    if rcs is not None:
        ranges = simulator.detection_ranges(ranges, rcs, simulator.sam_config.num_pulses)
    return {"ranges": ranges}


@app.get("/simulation/{session_id}/ranges/precipitation")
async def get_precipitation_ranges(session_id: str, rcs: Optional[float] = None):
    simulator = sessions.get(session_id)
    ranges = simulator.precipitation_ranges()
    if ranges is None:
        return {"enabled": False, "ranges": None}
    if rcs is not None:
        ranges = simulator.detection_ranges(ranges, rcs, simulator.sam_config.num_pulses)
    return {"enabled": True, "ranges": ranges}


@app.get("/simulation/{session_id}/precipitation")
async def get_precipitation_field(session_id: str):
    simulator = sessions.get(session_id)
    field = simulator.precipitation
    if field is None:
        return {"enabled": False}
    return {
        "enabled": True,
        "config": field.config.to_dict(),
        "statistics": field.get_statistics(),
        "cells": field.cells_as_dicts(),
    }


@app.get("/simulation/{session_id}/precipitation/grid")
async def get_precipitation_grid(session_id: str, resolution: Optional[float] = None):
    """Rain-rate raster in image convention (row 0 = north edge)."""
    simulator = sessions.get(session_id)
    if simulator.raster is not None:
        return simulator.raster.to_dict()
    if simulator.precipitation is None:
        raise HTTPException(status_code=404, detail="Scenario has no precipitation")

    resolution = resolution or simulator.scenario.grid.resolution
    if resolution <= 0:
        raise HTTPException(status_code=400, detail="Resolution must be positive")
    return RainRaster.from_field(simulator.precipitation, resolution).to_dict()


@app.delete("/simulation/{session_id}")
async def close_simulation(session_id: str):
    sessions.close(session_id)
    return {"status": "closed", "session_id": session_id}


# ============================================================
# Analysis Endpoints
# ============================================================

@app.post("/monte-carlo")
async def run_monte_carlo_batch(request: MonteCarloRequest):
    """
    Run a seeded Monte Carlo batch of a stored scenario.

    Returns survival/loss rates, end-time statistics and histogram.
    """
    config = MonteCarloConfig(
        scenario_id=request.scenario_id,
        num_runs=min(request.num_runs, MAX_MONTE_CARLO_RUNS),
        base_seed=request.base_seed,
        time_step=request.time_step,
    )
    results = run_monte_carlo(
        config,
        scenario_store,
        platform_store,
        attenuation_table,
        raster_dir=data_dir / "precipitation",
    )
    return results.to_dict()


# ============================================================
# Main entry point
# ============================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
