"""End-to-end tests for the Typer commands on a tiny synthetic dataset."""

from __future__ import annotations

from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest
from typer.testing import CliRunner

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from experiments.vulnerability import load_run
from main import app
from salmonvuln.datahub import save_posterior_npz
from salmonvuln.metrics import EvidenceCategory, EvidenceClassifier, SummaryCell

runner = CliRunner()


def _write_inputs(data_root: Path) -> None:
    columns = ["beta0", "beta1[1,1]", "beta1[2,1]", "phi[1]"]
    columns += ["thetaFAZ[1,1]", "thetaFAZ[2,1]", "thetaMAZ[1,1]", "thetaMAZ[2,1]"]
    rng = np.random.default_rng(0)
    values = rng.normal(loc=0.3, scale=0.1, size=(2, 50, len(columns)))
    save_posterior_npz(data_root / "posterior.npz", values, columns)

    pd.DataFrame(
        {
            "SPECIES": ["Coho", "Coho", "Sockeye"],
            "spawnEco": ["ocean", "stream", "stream"],
            "rearEco": ["river", "river", "river"],
            "MAZ": ["Coast", "Interior", "Coast"],
            "FAZ": ["LFR", "UFR", "LFR"],
            "StreamOrder": [3, 5, 4],
            "agriculture": [0.5, 1.0, 2.0],
        }
    ).to_csv(data_root / "population_data.csv", index=False)
    pd.DataFrame({"WTRSHD_FID": [1, 2, 3, 4], "agriculture": [0.0, 1.0, 2.0, 3.0]}).to_csv(
        data_root / "habitat_pressure_by_watershed.csv", index=False
    )


def test_inspect_posterior_lists_shapes(tmp_path: Path) -> None:
    _write_inputs(tmp_path)

    result = runner.invoke(app, ["inspect-posterior", str(tmp_path / "posterior.npz")])

    assert result.exit_code == 0, result.output
    assert "beta0: scalar" in result.output
    assert "beta1: 2 × 1" in result.output


def test_run_then_plot(tmp_path: Path) -> None:
    data_root = tmp_path / "data"
    data_root.mkdir()
    _write_inputs(data_root)
    output_root = tmp_path / "output"

    result = runner.invoke(
        app,
        [
            "run",
            "--data-root", str(data_root),
            "--output-root", str(output_root),
            "--run-tag", "smoke",
            "--habitat", "agriculture",
            "--draws", "40",
        ],
    )
    assert result.exit_code == 0, result.output

    run = load_run(output_root / "smoke")
    assert run.cells.is_present("Coho", "LFR")
    assert not run.cells.is_present("Sockeye", "UFR")
    assert run.cells.n_draws == 40
    assert run.summaries.get("vulnerability", "Sockeye", "UFR") is None
    assert run.cutoffs.exposure["agriculture"].edges == pytest.approx((1.5, 2.0, 2.5))
    assert int(run.coverage["cell_populations"].sum()) == 3

    result = runner.invoke(app, ["plot", str(output_root / "smoke"), "--plots-tag", "figs"])
    assert result.exit_code == 0, result.output
    figures = output_root / "smoke" / "figures" / "figs"
    assert (figures / "vulnerability.html").exists()
    assert (figures / "sens_exp_threat-sockeye.html").exists()
    assert (figures / "stream_order_slopes.html").exists()


def test_run_rejects_bad_draw_count(tmp_path: Path) -> None:
    _write_inputs(tmp_path)

    result = runner.invoke(app, ["run", "--data-root", str(tmp_path), "--habitat", "agriculture", "--draws", "0"])

    assert result.exit_code != 0


def test_run_aborts_on_inconsistent_evidence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    data_root = tmp_path / "data"
    data_root.mkdir()
    _write_inputs(data_root)

    def zero_mean_strong(self: EvidenceClassifier, draws: np.ndarray) -> SummaryCell:
        return SummaryCell(mean=0.0, category=EvidenceCategory.STRONG, lower=-1.0, upper=1.0)

    monkeypatch.setattr(EvidenceClassifier, "classify", zero_mean_strong)

    result = runner.invoke(
        app,
        [
            "run",
            "--data-root", str(data_root),
            "--output-root", str(tmp_path / "output"),
            "--run-tag", "aborted",
            "--habitat", "agriculture",
            "--draws", "10",
        ],
    )

    assert result.exit_code == 2
    assert "Aborting" in result.output
    assert "('Coho', 'LFR', 'agriculture')" in result.output
    assert not (tmp_path / "output" / "aborted").exists()
