"""
Monte Carlo Analysis - Engagement Outcomes Under Random Weather

A single engagement depends on random draws: where the rain cells land,
how heavy they are, and how missiles drift when the radar loses lock.
One run tells you little. Many runs tell you the ODDS.

KEY CONCEPTS:

1. SEEDED RUNS
   Run i uses seed base_seed + i. The whole batch is reproducible, and
   any single interesting run can be replayed on its own.

2. OUTCOME RATES
   SAM survival rate, fighter loss rate, and who scored the kill.

3. TIMING DISTRIBUTION
   Engagement end times summarized (mean/std/min/max) and binned into a
   histogram for plotting.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from .attenuation import AttenuationTable
from .engine import EngagementSimulator, PlatformSource
from .entities import MissileStatus
from .errors import ScenarioNotFound
from .platforms import PlatformState

logger = logging.getLogger(__name__)


@dataclass
class MonteCarloConfig:
    scenario_id: str
    num_runs: int = 100
    base_seed: int = 0
    time_step: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scenario_id": self.scenario_id,
            "num_runs": self.num_runs,
            "base_seed": self.base_seed,
            "time_step": self.time_step,
        }


@dataclass
class RunResult:
    """Outcome of a single seeded engagement."""
    run_index: int
    seed: int
    success: bool               # SAM survived
    sam_destroyed: bool
    fighter_destroyed: bool
    end_time: float
    killed_by: Optional[str]    # 'sam', 'fighter' or None
    missiles_launched: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_index": self.run_index,
            "seed": self.seed,
            "success": self.success,
            "sam_destroyed": self.sam_destroyed,
            "fighter_destroyed": self.fighter_destroyed,
            "end_time": self.end_time,
            "killed_by": self.killed_by,
            "missiles_launched": self.missiles_launched,
        }


@dataclass
class MonteCarloResults:
    config: Dict[str, Any]
    num_runs: int
    results: List[RunResult]

    # Computed statistics
    sam_survival_rate: float = 0.0
    fighter_loss_rate: float = 0.0
    mean_engagement_time: float = 0.0
    std_engagement_time: float = 0.0
    min_engagement_time: float = 0.0
    max_engagement_time: float = 0.0
    kills_by_launcher: Dict[str, int] = field(default_factory=lambda: {"sam": 0, "fighter": 0})

    def compute_stats(self):
        if not self.results:
            return

        n = len(self.results)
        self.sam_survival_rate = sum(1 for r in self.results if r.success) / n
        self.fighter_loss_rate = sum(1 for r in self.results if r.fighter_destroyed) / n

        end_times = np.array([r.end_time for r in self.results])
        self.mean_engagement_time = float(np.mean(end_times))
        self.std_engagement_time = float(np.std(end_times))
        self.min_engagement_time = float(np.min(end_times))
        self.max_engagement_time = float(np.max(end_times))

        self.kills_by_launcher = {"sam": 0, "fighter": 0}
        for r in self.results:
            if r.killed_by is not None:
                self.kills_by_launcher[r.killed_by] += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config": self.config,
            "num_runs": self.num_runs,
            "sam_survival_rate": self.sam_survival_rate,
            "fighter_loss_rate": self.fighter_loss_rate,
            "mean_engagement_time": self.mean_engagement_time,
            "std_engagement_time": self.std_engagement_time,
            "min_engagement_time": self.min_engagement_time,
            "max_engagement_time": self.max_engagement_time,
            "kills_by_launcher": self.kills_by_launcher,
            "engagement_time_histogram": self._compute_histogram(),
            "runs": [r.to_dict() for r in self.results],
        }

    def _compute_histogram(self, bins: int = 20) -> Dict[str, List]:
        """Histogram of engagement end times."""
        if not self.results:
            return {"bin_edges": [], "counts": []}

        end_times = [r.end_time for r in self.results]
        counts, bin_edges = np.histogram(end_times, bins=bins)

        return {
            "bin_edges": bin_edges.tolist(),
            "counts": counts.tolist(),
        }


def run_single_engagement(
    simulator: EngagementSimulator,
    run_index: int,
    seed: int,
) -> RunResult:
    result = simulator.run_to_completion()

    killed_by = None
    for missile_result in result.missile_results:
        if missile_result.status == MissileStatus.KILL:
            killed_by = missile_result.launched_by.value
            break

    return RunResult(
        run_index=run_index,
        seed=seed,
        success=result.success,
        sam_destroyed=simulator.sam.state == PlatformState.DESTROYED,
        fighter_destroyed=simulator.fighter.state == PlatformState.DESTROYED,
        end_time=simulator.get_time_elapsed(),
        killed_by=killed_by,
        missiles_launched=len(result.missile_results),
    )


def run_monte_carlo(
    config: MonteCarloConfig,
    scenario_store,
    platforms: PlatformSource,
    attenuation: AttenuationTable,
    raster_dir=None,
) -> MonteCarloResults:
    """Run `num_runs` seeded engagements of one scenario and aggregate."""
    scenario = scenario_store.load(config.scenario_id)
    if scenario is None:
        raise ScenarioNotFound(config.scenario_id)

    results = []
    for i in range(config.num_runs):
        seed = config.base_seed + i
        simulator = EngagementSimulator.create(
            scenario,
            platforms,
            attenuation,
            time_step=config.time_step,
            seed=seed,
            raster_dir=raster_dir,
        )
        results.append(run_single_engagement(simulator, i, seed))

    mc_results = MonteCarloResults(
        config=config.to_dict(),
        num_runs=config.num_runs,
        results=results,
    )
    mc_results.compute_stats()

    logger.info(
        f"Monte Carlo {config.scenario_id}: {config.num_runs} runs, "
        f"SAM survival {mc_results.sam_survival_rate:.0%}, "
        f"fighter loss {mc_results.fighter_loss_rate:.0%}"
    )
    return mc_results
