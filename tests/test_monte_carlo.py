"""
Tests for Monte Carlo batches.

Tests cover:
- Deterministic scenario aggregates
- Seeded reproducibility with rain
- Unknown scenario
"""

import pytest

from spear.errors import ScenarioNotFound
from spear.monte_carlo import MonteCarloConfig, MonteCarloResults, run_monte_carlo


class TestRunMonteCarlo:

    def test_clear_air_batch(self, scenario_store, platform_store, attenuation):
        results = run_monte_carlo(
            MonteCarloConfig(scenario_id="head-on", num_runs=3, base_seed=10),
            scenario_store, platform_store, attenuation,
        )

        assert results.num_runs == 3
        assert [r.seed for r in results.results] == [10, 11, 12]
        assert results.sam_survival_rate == 1.0
        assert results.fighter_loss_rate == 1.0
        assert results.kills_by_launcher == {"sam": 3, "fighter": 0}
        assert results.std_engagement_time == pytest.approx(0.0)

    def test_rain_batch_is_reproducible(self, scenario_store, platform_store, attenuation):
        config = MonteCarloConfig(scenario_id="head-on-rain", num_runs=2, base_seed=5)
        a = run_monte_carlo(config, scenario_store, platform_store, attenuation)
        b = run_monte_carlo(config, scenario_store, platform_store, attenuation)

        assert [r.to_dict() for r in a.results] == [r.to_dict() for r in b.results]

    def test_unknown_scenario(self, scenario_store, platform_store, attenuation):
        with pytest.raises(ScenarioNotFound):
            run_monte_carlo(MonteCarloConfig(scenario_id="nope", num_runs=1), scenario_store, platform_store, attenuation)

    def test_serialized_results(self, scenario_store, platform_store, attenuation):
        data = run_monte_carlo(
            MonteCarloConfig(scenario_id="head-on", num_runs=2),
            scenario_store, platform_store, attenuation,
        ).to_dict()

        assert len(data["runs"]) == 2
        assert sum(data["engagement_time_histogram"]["counts"]) == 2
        assert data["config"]["scenario_id"] == "head-on"

    def test_empty_results(self):
        results = MonteCarloResults(config={}, num_runs=0, results=[])
        results.compute_stats()
        assert results.to_dict()["engagement_time_histogram"] == {"bin_edges": [], "counts": []}
