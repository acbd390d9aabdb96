"""Run a deterministic cohort cost-effectiveness analysis and persist artifacts."""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path

from cea_engine.cea.cohort import cycle_frame, run_cohort_model, trace_frame
from cea_engine.cea.icer import (
    compute_icers,
    incremental_vs_reference,
    net_monetary_benefit,
    summarize_outcomes,
)
from cea_engine.cea.quality_checks import run_quality_checks
from cea_engine.core.params import load_cohort_params
from cea_engine.utils.io import (
    default_run_dir,
    ensure_run_dir,
    safe_filename,
    write_json,
    write_table,
    write_yaml,
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a cohort Markov CEA.")
    parser.add_argument(
        "--params-path",
        type=Path,
        default=Path("configs/cohort/sick_sicker.yaml"),
        help="Path to cohort model params YAML.",
    )
    parser.add_argument(
        "--run-dir",
        type=Path,
        default=None,
        help="Optional explicit output run directory.",
    )
    parser.add_argument("--tag", default="manual", help="Tag used in default run directory.")
    parser.add_argument(
        "--reference",
        default=None,
        help="Reference strategy for incremental results (default: first strategy).",
    )
    parser.add_argument(
        "--wtp",
        type=float,
        default=50000.0,
        help="Willingness to pay per QALY for net monetary benefit.",
    )
    args = parser.parse_args()

    params = load_cohort_params(args.params_path)
    file_stems = [safe_filename(name) for name in params.strategy_names]
    if len(set(file_stems)) != len(file_stems):
        raise ValueError(
            f"Strategy names {list(params.strategy_names)} collide as file names "
            f"{file_stems}."
        )
    reference = args.reference or params.strategy_names[0]

    outcomes = run_cohort_model(params)
    quality = run_quality_checks(params=params, outcomes=outcomes)
    summary = summarize_outcomes(outcomes)
    summary["nmb"] = net_monetary_benefit(summary["costs"], summary["qalys"], args.wtp)
    icers = compute_icers(summary)
    incremental = incremental_vs_reference(summary, reference=reference)

    run_dir = args.run_dir or default_run_dir(tag=args.tag)
    ensure_run_dir(run_dir)

    config_payload = {
        "created_at_utc": datetime.now(timezone.utc).isoformat(),
        "params_path": str(args.params_path),
        "reference": reference,
        "wtp": args.wtp,
        "params": params.to_dict(),
    }
    write_yaml(run_dir / "config_resolved.yaml", config_payload)
    write_table(run_dir / "summary.csv", summary)
    write_table(run_dir / "icers.csv", icers)
    write_table(run_dir / "incremental.csv", incremental)
    for outcome in outcomes:
        file_stem = safe_filename(outcome.strategy)
        write_table(
            run_dir / f"trace_{file_stem}.csv",
            trace_frame(outcome, states=params.states),
            index=True,
        )
        write_table(run_dir / f"cycles_{file_stem}.csv", cycle_frame(outcome))
    write_json(run_dir / "quality_report.json", quality.to_dict())

    print(f"Run directory: {run_dir}")
    for row in icers.itertuples(index=False):
        print(
            f"{row.strategy}: costs={row.costs:,.2f}, qalys={row.qalys:.4f}, "
            f"status={row.status}, icer={row.icer:,.2f}"
        )

    if quality.hard_failures:
        print(
            "Hard quality checks failed: "
            + ", ".join(check.name for check in quality.hard_failures)
        )
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
