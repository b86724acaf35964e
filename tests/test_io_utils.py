"""Tests for the io_utils module."""
import json

import pandas as pd
import pytest


def test_atomic_write_json_creates_file(tmp_path):
    from drr_complexity.io_utils import atomic_write_json

    output_path = tmp_path / "summary.json"
    data = {"n_cases": 12, "excluded_outliers": ["C07"]}

    result = atomic_write_json(output_path, data)

    assert result == output_path
    with open(output_path) as f:
        assert json.load(f) == data
    assert list(tmp_path.glob("*.tmp")) == []


def test_atomic_write_csv_roundtrip(tmp_path):
    from drr_complexity.io_utils import atomic_write_csv

    df = pd.DataFrame({"dim_a": ["uncertainty"], "dim_b": ["overlaps"], "coefficient": [0.5]})
    path = atomic_write_csv(tmp_path / "tables" / "spearman.csv", df)

    assert path.exists()
    pd.testing.assert_frame_equal(pd.read_csv(path), df)


def test_failed_write_leaves_target_untouched(tmp_path):
    from drr_complexity.io_utils import atomic_write

    target = tmp_path / "out.csv"
    target.write_text("previous")

    def _boom(temp_path):
        temp_path.write_text("partial")
        raise RuntimeError("disk full")

    with pytest.raises(RuntimeError):
        atomic_write(target, _boom)

    assert target.read_text() == "previous"
    assert list(tmp_path.glob("*.tmp")) == []


def test_atomic_write_figure_uses_target_format(tmp_path):
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    from drr_complexity.io_utils import atomic_write_figure

    fig, ax = plt.subplots()
    ax.plot([1, 2, 3], [3, 1, 2])
    path = atomic_write_figure(tmp_path / "figure.svg", fig)
    plt.close(fig)

    assert path.read_text().lstrip().startswith("<?xml")
    assert "<svg" in path.read_text()


def test_write_metadata_sidecar(tmp_path):
    from drr_complexity.io_utils import write_metadata_sidecar

    data_path = tmp_path / "spearman_high.csv"
    data_path.touch()
    table = pd.DataFrame(
        {
            "dim_a": ["uncertainty", "uncertainty"],
            "dim_b": ["uncertainty", "volatility"],
            "coefficient": [1.0, None],
            "p_value": [0.0, None],
        }
    )

    meta_path = write_metadata_sidecar(
        data_path=data_path,
        script_name="03_statistical_analysis.py",
        run_id="20261018_120000_abc12345",
        description="Pairwise Spearman correlations",
        inputs=["data/processed/cases_clean.csv"],
        table=table,
        parameters={"high_threshold": 4, "alpha": 0.05, "exact_max_n": 8},
        view="high",
    )

    assert meta_path == tmp_path / "spearman_high_metadata.json"
    with open(meta_path) as f:
        metadata = json.load(f)

    assert metadata["_script"] == "03_statistical_analysis.py"
    assert metadata["_run_id"] == "20261018_120000_abc12345"
    assert metadata["row_count"] == 2
    assert metadata["columns"] == ["dim_a", "dim_b", "coefficient", "p_value"]
    assert metadata["null_counts"] == {"coefficient": 1, "p_value": 1}
    assert metadata["parameters"] == {"high_threshold": 4, "alpha": 0.05, "exact_max_n": 8}
    assert metadata["view"] == "high"
    assert "_generated" in metadata


def test_write_metadata_sidecar_without_table(tmp_path):
    from drr_complexity.io_utils import write_metadata_sidecar

    meta_path = write_metadata_sidecar(
        data_path=tmp_path / "fig4_spearman_high.svg",
        script_name="03_statistical_analysis.py",
        run_id="run",
        description="Heatmap",
        inputs=[],
    )
    with open(meta_path) as f:
        metadata = json.load(f)

    assert metadata["parameters"] == {}
    assert "row_count" not in metadata


def test_sidecar_version_comes_from_installed_distribution(tmp_path, monkeypatch):
    from drr_complexity import io_utils

    monkeypatch.setattr(io_utils.importlib_metadata, "version", lambda dist: f"{dist}-9.9.9")
    meta_path = io_utils.write_metadata_sidecar(
        data_path=tmp_path / "descriptives.csv",
        script_name="03_statistical_analysis.py",
        run_id="run",
        description="Descriptives",
        inputs=[],
    )
    with open(meta_path) as f:
        assert json.load(f)["_version"] == "drr-complexity-9.9.9"


def test_package_version_without_installed_distribution(monkeypatch):
    from drr_complexity import io_utils

    def not_installed(dist):
        raise io_utils.importlib_metadata.PackageNotFoundError(dist)

    monkeypatch.setattr(io_utils.importlib_metadata, "version", not_installed)
    assert io_utils.package_version() == "unknown"
