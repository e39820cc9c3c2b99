"""Tests for cell bucketing and seeded resampling."""

from __future__ import annotations

from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salmonvuln.axes import AxisVocabulary
from salmonvuln.datahub import PopulationTable
from salmonvuln.pipelines import build_cell_plan
from salmonvuln.resampling import DrawIndex, NoData, Resampler, seeded_plan


def _table() -> PopulationTable:
    vocab = AxisVocabulary.from_lists(
        species=["Chinook", "Coho"],
        faz=["LFR", "MFR", "UFR"],
        habitat=["agriculture"],
        spawn_ecotype=["stream"],
        rear_ecotype=["river"],
        maz=["Coast"],
    )
    frame = pd.DataFrame(
        {
            "SPECIES": ["Coho", "Chinook", "Coho", "Chinook", "Coho"],
            "spawnEco": ["stream"] * 5,
            "rearEco": ["river"] * 5,
            "MAZ": ["Coast"] * 5,
            "FAZ": ["UFR", "LFR", "UFR", "LFR", "LFR"],
            "StreamOrder": [4, 4, 4, 4, 4],
            "agriculture": [1.0, 2.0, 3.0, 4.0, 5.0],
        }
    )
    return PopulationTable.from_frame(frame, vocabulary=vocab)


# ---------------------------------------------------------------------------
# Bucketing


def test_cell_plan_groups_rows_in_vocabulary_order() -> None:
    plan = build_cell_plan(_table())

    assert list(plan.cells()) == [
        ("Chinook", "LFR"),
        ("Chinook", "MFR"),
        ("Chinook", "UFR"),
        ("Coho", "LFR"),
        ("Coho", "MFR"),
        ("Coho", "UFR"),
    ]
    np.testing.assert_array_equal(plan.rows(("Chinook", "LFR")), [1, 3])
    np.testing.assert_array_equal(plan.rows(("Coho", "UFR")), [0, 2])
    assert plan.rows(("Chinook", "MFR")).size == 0
    assert plan.occupied() == [("Chinook", "LFR"), ("Coho", "LFR"), ("Coho", "UFR")]
    assert plan.sizes()[("Coho", "LFR")] == 1


# ---------------------------------------------------------------------------
# Resampler


def test_empty_cells_yield_no_data_without_consuming_randomness() -> None:
    resampler = Resampler(5, seed=1)
    marker = resampler.draw_rows(np.empty(0, dtype=np.intp), ("Chinook", "MFR"))

    assert isinstance(marker, NoData)
    assert marker.cell == ("Chinook", "MFR")
    untouched = np.random.default_rng(1).integers(0, 10, size=5)
    np.testing.assert_array_equal(resampler.generator.integers(0, 10, size=5), untouched)


def test_plan_follows_frozen_consumption_order() -> None:
    n_draws, seed = 7, 4569
    cells = build_cell_plan(_table())

    _, plan = seeded_plan(cells, n_chains=3, n_iterations=11, n_draws=n_draws, seed=seed)

    rng = np.random.default_rng(seed)
    chains = rng.integers(0, 3, size=n_draws)
    iterations = rng.integers(0, 11, size=n_draws)
    np.testing.assert_array_equal(plan.posterior.chains, chains)
    np.testing.assert_array_equal(plan.posterior.iterations, iterations)
    for key in cells.occupied():
        candidates = cells.rows(key)
        expected_rows = candidates[rng.integers(0, candidates.size, size=n_draws)]
        draws = plan.get(key)
        assert isinstance(draws, DrawIndex)
        np.testing.assert_array_equal(draws.rows, expected_rows)
        np.testing.assert_array_equal(draws.chains, chains)
        np.testing.assert_array_equal(draws.iterations, iterations)

    assert plan.empty_cells() == [("Chinook", "MFR"), ("Chinook", "UFR"), ("Coho", "MFR")]


def test_same_seed_gives_identical_plans() -> None:
    cells = build_cell_plan(_table())

    _, first = seeded_plan(cells, 2, 4, n_draws=50, seed=99)
    _, second = seeded_plan(cells, 2, 4, n_draws=50, seed=99)
    _, other = seeded_plan(cells, 2, 4, n_draws=50, seed=100)

    for key in cells.occupied():
        a, b = first.get(key), second.get(key)
        assert isinstance(a, DrawIndex) and isinstance(b, DrawIndex)
        np.testing.assert_array_equal(a.rows, b.rows)
        np.testing.assert_array_equal(a.chains, b.chains)
    assert not np.array_equal(first.posterior.chains, other.posterior.chains) or not np.array_equal(
        first.posterior.iterations, other.posterior.iterations
    )


def test_rows_come_from_the_cell_only() -> None:
    cells = build_cell_plan(_table())

    _, plan = seeded_plan(cells, 1, 1, n_draws=200, seed=3)

    for draws in plan.occupied():
        assert set(draws.rows.tolist()) <= set(cells.rows(draws.cell).tolist())


def test_injected_generator_is_used() -> None:
    generator = np.random.default_rng(12)
    resampler = Resampler(4, generator=generator)

    draw = resampler.draw_posterior(5, 6)

    expected = np.random.default_rng(12)
    np.testing.assert_array_equal(draw.chains, expected.integers(0, 5, size=4))
    np.testing.assert_array_equal(draw.iterations, expected.integers(0, 6, size=4))


def test_resampler_validates_arguments() -> None:
    with pytest.raises(ValueError):
        Resampler(0, seed=1)
    with pytest.raises(ValueError):
        Resampler(3, seed=1, generator=np.random.default_rng(1))
    with pytest.raises(ValueError):
        Resampler(3, seed=1).draw_posterior(0, 4)
    with pytest.raises(ValueError):
        DrawIndex(cell=("a", "b"), chains=np.zeros(3), iterations=np.zeros(2), rows=np.zeros(3))
