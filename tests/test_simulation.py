from __future__ import annotations

import math
import threading

import numpy as np
import pytest

from defectstat.simulation import (
    REDUCTION_SCENARIOS,
    SIMULATIONS_PER_SCENARIO,
    InsufficientDataError,
    MonteCarloSimulator,
    SimulationCancelled,
    run_monte_carlo,
    scenario_label,
)


def test_empty_costs_refuse_to_run():
    simulator = MonteCarloSimulator(simulations=10)
    with pytest.raises(InsufficientDataError):
        simulator.run([])
    assert issubclass(InsufficientDataError, ValueError)


def test_default_configuration():
    assert tuple(REDUCTION_SCENARIOS) == (0.0, 0.10, 0.20, 0.30)
    assert SIMULATIONS_PER_SCENARIO == 10000
    simulator = MonteCarloSimulator()
    assert simulator.simulations == 10000
    assert simulator.scenarios == (0.0, 0.1, 0.2, 0.3)


def test_scenario_labels():
    assert scenario_label(0.0) == "0% Reduction"
    assert scenario_label(0.1) == "10% Reduction"
    assert scenario_label(0.3) == "30% Reduction"
    assert scenario_label(0.125) == "12.5% Reduction"


def test_full_run_converges_to_expected_totals():
    results = MonteCarloSimulator(seed=1234).run([100, 200, 300, 400])

    assert [r.scenario for r in results] == ["0% Reduction", "10% Reduction", "20% Reduction", "30% Reduction"]
    baseline, *others = results
    assert baseline.mean_cost == pytest.approx(1000, rel=0.05)
    assert baseline.expected_savings is None

    # floor(4 * 0.9) = floor(4 * 0.8) = 3 and floor(4 * 0.7) = 2 remaining defects
    assert others[0].mean_cost == pytest.approx(750, rel=0.05)
    assert others[1].mean_cost == pytest.approx(750, rel=0.05)
    assert others[2].mean_cost == pytest.approx(500, rel=0.05)

    thirty = others[2]
    assert thirty.expected_savings == pytest.approx(baseline.mean_cost - thirty.mean_cost)
    assert thirty.expected_savings > 0


def test_summary_statistics_match_totals():
    results = MonteCarloSimulator(simulations=400, seed=7).run([10.0, 55.0, 80.0, 120.0, 300.0])
    for result in results:
        totals = result.total_costs
        assert totals is not None
        assert len(totals) == 400
        assert np.all(np.diff(totals) >= 0)
        n = len(totals)
        assert result.mean_cost == pytest.approx(float(np.mean(totals)))
        assert result.std_dev_cost == pytest.approx(float(np.std(totals, ddof=1)))
        assert result.percentiles.p5 == totals[int(math.floor(n * 0.05))]
        assert result.percentiles.p50 == totals[int(math.floor(n * 0.50))]
        assert result.percentiles.p95 == totals[int(math.floor(n * 0.95))]
        assert result.percentiles.p5 <= result.percentiles.p50 <= result.percentiles.p95


def test_identical_costs_give_exact_totals():
    results = MonteCarloSimulator(simulations=50, seed=3).run([50.0, 50.0, 50.0])
    baseline, ten, *_ = results
    assert baseline.mean_cost == pytest.approx(150.0)
    assert baseline.std_dev_cost == pytest.approx(0.0)
    assert baseline.percentiles.p5 == pytest.approx(150.0)
    assert ten.mean_cost == pytest.approx(100.0)
    assert ten.expected_savings == pytest.approx(50.0)


def test_reduction_can_remove_every_defect():
    results = MonteCarloSimulator(simulations=20, seed=5).run([80.0])
    baseline, ten, twenty, thirty = results
    assert baseline.mean_cost == pytest.approx(80.0)
    for result in (ten, twenty, thirty):
        assert result.mean_cost == 0.0
        assert result.std_dev_cost == 0.0
        assert result.expected_savings == pytest.approx(80.0)


def test_progress_is_monotonic_and_finishes_at_100():
    seen = []
    MonteCarloSimulator(simulations=1000, seed=11).run([1.0, 2.0, 3.0], progress=seen.append)
    assert seen[0] == 0
    assert seen[-1] == 100
    assert all(isinstance(p, int) for p in seen)
    assert all(b > a for a, b in zip(seen, seen[1:]))
    assert seen.count(100) == 1
    # roughly one update per percent of work
    assert len(seen) >= 90


def test_progress_with_tiny_simulation_count():
    seen = []
    MonteCarloSimulator(simulations=1, seed=2).run([4.0, 6.0], progress=seen.append)
    assert seen[0] == 0
    assert seen[-1] == 100
    assert all(b > a for a, b in zip(seen, seen[1:]))


def test_cancel_event_stops_the_run():
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(SimulationCancelled):
        MonteCarloSimulator(simulations=100).run([1.0, 2.0], cancel=cancel)


def test_scenarios_without_baseline_have_no_savings():
    results = MonteCarloSimulator(scenarios=(0.1, 0.5), simulations=30, seed=1).run([10.0, 20.0, 30.0, 40.0])
    assert [r.scenario for r in results] == ["10% Reduction", "50% Reduction"]
    assert all(r.expected_savings is None for r in results)


def test_invalid_configuration_rejected():
    with pytest.raises(ValueError):
        MonteCarloSimulator(simulations=0)
    with pytest.raises(ValueError):
        MonteCarloSimulator(scenarios=(0.0, 1.5))


def test_seeded_runs_are_reproducible_and_independent():
    costs = [12.0, 40.0, 75.5, 220.0]
    first = MonteCarloSimulator(simulations=200, seed=99).run(costs)
    second = MonteCarloSimulator(simulations=200, seed=99).run(costs)
    assert [r.mean_cost for r in first] == [r.mean_cost for r in second]
    assert first is not second
    assert first[0].total_costs is not second[0].total_costs


def test_result_to_dict_omits_baseline_savings():
    results = run_monte_carlo([100, 200, 300, 400], simulations=100, seed=4)
    baseline = results[0].to_dict()
    assert "expectedSavings" not in baseline
    assert set(baseline) == {"scenario", "meanCost", "stdDevCost", "percentiles"}
    assert set(baseline["percentiles"]) == {"p5", "p50", "p95"}
    assert "expectedSavings" in results[3].to_dict()
