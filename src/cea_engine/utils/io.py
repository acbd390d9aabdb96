"""Serialization helpers for cohort model run artifacts."""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any

import pandas as pd
import yaml

RUN_SUMMARY_FILES: tuple[str, ...] = (
    "config_resolved.yaml",
    "summary.csv",
    "icers.csv",
    "incremental.csv",
    "quality_report.json",
)

PSA_FILES: tuple[str, ...] = (
    "psa_samples.csv",
    "ceac.csv",
    "evpi.csv",
    "psa_summary.json",
)


def ensure_run_dir(run_dir: Path) -> None:
    """Create run directory and parent paths."""
    run_dir.mkdir(parents=True, exist_ok=True)


def default_run_dir(tag: str, root: Path = Path("runs") / "cea") -> Path:
    """Timestamped run directory under ``root`` with a filesystem-safe tag."""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return root / f"{timestamp}_{safe_filename(tag)}"


def safe_filename(name: str) -> str:
    """Replace characters other than alphanumerics, ``-`` and ``_`` with ``_``."""
    return "".join(ch if ch.isalnum() or ch in {"-", "_"} else "_" for ch in name)


def write_json(path: Path, payload: Any) -> None:
    """Write JSON with stable formatting."""
    path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def write_yaml(path: Path, payload: Any) -> None:
    """Write YAML with stable formatting."""
    path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")


def write_table(path: Path, frame: pd.DataFrame, index: bool = False) -> None:
    """Write a DataFrame as CSV."""
    frame.to_csv(path, index=index)


def load_yaml_mapping(path: Path) -> dict[str, Any]:
    """Load an optional YAML mapping; a missing or empty file yields ``{}``."""
    if not path.exists():
        return {}
    raw = yaml.safe_load(path.read_text())
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"Expected mapping in YAML config: {path}")
    return raw
