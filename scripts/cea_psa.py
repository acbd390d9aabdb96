"""Run probabilistic sensitivity analysis for a cohort model and persist artifacts."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path

from cea_engine.cea.psa import (
    acceptability_curve,
    expected_value_of_perfect_information,
    run_psa,
)
from cea_engine.core.params import PSAParams, load_cohort_params
from cea_engine.utils.io import (
    default_run_dir,
    ensure_run_dir,
    load_yaml_mapping,
    write_json,
    write_table,
)

DEFAULT_WTP_GRID: tuple[float, ...] = (0.0, 25000.0, 50000.0, 100000.0, 150000.0)


def main() -> int:
    parser = argparse.ArgumentParser(description="Run PSA for a cohort Markov CEA.")
    parser.add_argument(
        "--params-path",
        type=Path,
        default=Path("configs/cohort/sick_sicker.yaml"),
        help="Path to cohort model params YAML.",
    )
    parser.add_argument(
        "--psa-config",
        type=Path,
        default=Path("configs/cohort/psa.yaml"),
        help="Path to PSA config YAML.",
    )
    parser.add_argument("--n-samples", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument(
        "--run-dir",
        type=Path,
        default=None,
        help="Optional explicit output run directory.",
    )
    parser.add_argument("--tag", default="psa", help="Tag used in default run directory.")
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable tqdm progress bar over PSA samples.",
    )
    args = parser.parse_args()

    params = load_cohort_params(args.params_path)
    psa_cfg = load_yaml_mapping(args.psa_config)
    wtp_grid = _resolve_wtp_grid(psa_cfg.get("wtp_grid"))
    psa = PSAParams.from_dict(psa_cfg)
    if args.n_samples is not None:
        psa = replace(psa, n_samples=args.n_samples)
    if args.seed is not None:
        psa = replace(psa, seed=args.seed)

    samples = run_psa(params=params, psa=psa, show_progress=not args.no_progress)
    ceac = acceptability_curve(samples, wtp_grid=wtp_grid)
    evpi = expected_value_of_perfect_information(samples, wtp_grid=wtp_grid)

    means = samples.groupby("strategy", sort=False)[["costs", "qalys"]].mean()
    summary_payload = {
        "params_path": str(args.params_path),
        "psa": psa.to_dict(),
        "wtp_grid": list(wtp_grid),
        "mean_outcomes": {
            strategy: {"costs": float(row.costs), "qalys": float(row.qalys)}
            for strategy, row in means.iterrows()
        },
    }

    run_dir = args.run_dir or default_run_dir(tag=args.tag)
    ensure_run_dir(run_dir)
    write_table(run_dir / "psa_samples.csv", samples)
    write_table(run_dir / "ceac.csv", ceac)
    write_table(run_dir / "evpi.csv", evpi)
    write_json(run_dir / "psa_summary.json", summary_payload)

    print(f"Run directory: {run_dir}")
    print(f"PSA: n_samples={psa.n_samples}, strategies={len(params.strategies)}")
    for strategy, row in means.iterrows():
        print(f"{strategy}: mean costs={row.costs:,.2f}, mean qalys={row.qalys:.4f}")
    return 0


def _resolve_wtp_grid(raw_grid: object) -> tuple[float, ...]:
    if raw_grid is None:
        return DEFAULT_WTP_GRID
    if not isinstance(raw_grid, (list, tuple)) or not raw_grid:
        raise ValueError("wtp_grid must be a non-empty list in PSA config.")
    try:
        return tuple(float(value) for value in raw_grid)
    except (TypeError, ValueError) as exc:
        raise ValueError("wtp_grid must contain numeric values in PSA config.") from exc


if __name__ == "__main__":
    raise SystemExit(main())
