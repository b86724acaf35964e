"""
Atomic writes for tables, figures and metadata.

Every output goes to a temp file in the target directory first and is then
renamed into place. A leftover .tmp file means a write failed.
"""
import json
import os
import tempfile
from datetime import datetime, timezone
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any, Callable

from drr_complexity.paths import ensure_dir

DISTRIBUTION = "drr-complexity"


def atomic_write(target_path: Path, write_func: Callable, *args: Any, **kwargs: Any) -> Path:
    """
    Write to a file atomically using temp file + rename.

    If write fails, target file is unchanged.
    """
    target_path = Path(target_path)
    ensure_dir(target_path.parent)

    # Same directory as the target so the rename stays on one filesystem
    temp_fd, temp_path = tempfile.mkstemp(
        suffix=".tmp", prefix=f"{target_path.stem}_", dir=target_path.parent
    )
    temp_path = Path(temp_path)

    try:
        os.close(temp_fd)
        write_func(temp_path, *args, **kwargs)
        temp_path.replace(target_path)
        return target_path
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def atomic_write_json(path: Path, data: Any, indent: int = 2) -> Path:
    """Write JSON atomically."""

    def _write(temp_path: Path, data: Any, indent: int) -> None:
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, default=str)

    return atomic_write(path, _write, data, indent)


def atomic_write_csv(path: Path, df: Any, **kwargs: Any) -> Path:
    """Write DataFrame to CSV atomically."""

    def _write(temp_path: Path, df: Any, **kwargs: Any) -> None:
        df.to_csv(temp_path, index=False, **kwargs)

    return atomic_write(path, _write, df, **kwargs)


def atomic_write_geojson(path: Path, gdf: Any) -> Path:
    """Write GeoDataFrame to GeoJSON atomically."""

    def _write(temp_path: Path, gdf: Any) -> None:
        gdf.to_file(temp_path, driver="GeoJSON")

    return atomic_write(path, _write, gdf)


def atomic_write_figure(path: Path, fig: Any, dpi: int = 300) -> Path:
    """
    Save a matplotlib figure atomically.

    The format comes from the target suffix (.svg, .pdf, .png), since the
    temp file itself ends in .tmp.
    """
    fmt = Path(path).suffix.lstrip(".").lower() or "svg"

    def _write(temp_path: Path, fig: Any) -> None:
        fig.savefig(temp_path, format=fmt, dpi=dpi, bbox_inches="tight")

    return atomic_write(path, _write, fig)


def package_version() -> str:
    """Installed version of the drr-complexity distribution."""
    try:
        return importlib_metadata.version(DISTRIBUTION)
    except importlib_metadata.PackageNotFoundError:
        # running from a source checkout without `pip install -e .`
        return "unknown"


def write_metadata_sidecar(
    data_path: Path,
    script_name: str,
    run_id: str,
    description: str,
    inputs: list[str],
    table: Any = None,
    parameters: dict | None = None,
    **extra: Any,
) -> Path:
    """
    Write <stem>_metadata.json next to an output file.

    ``table`` is the DataFrame that was written: its row count, columns and
    per-column null counts are recorded. ``parameters`` holds the analysis
    settings the output depends on (thresholds, test choices, ...), so a
    table can be reproduced from its sidecar alone.
    """
    data_path = Path(data_path)
    meta_path = data_path.parent / f"{data_path.stem}_metadata.json"

    metadata: dict[str, Any] = {
        "_generated": datetime.now(timezone.utc).isoformat(),
        "_script": script_name,
        "_run_id": run_id,
        "_version": package_version(),
        "output": data_path.name,
        "description": description,
        "inputs": [str(p) for p in inputs],
    }

    if table is not None:
        metadata["row_count"] = int(len(table))
        metadata["columns"] = [str(c) for c in table.columns]
        nulls = table.isna().sum()
        metadata["null_counts"] = {str(c): int(n) for c, n in nulls.items() if n}

    metadata["parameters"] = dict(parameters or {})
    metadata.update(extra)

    return atomic_write_json(meta_path, metadata)
