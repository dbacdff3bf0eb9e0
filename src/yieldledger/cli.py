"""Command-line entry point: run simulations and inspect the multiplier curve."""

import argparse
import logging
import sys
from typing import List, Optional

from .config.loader import load_config
from .reporting.export import export_csv, export_json, multiplier_curve_frame
from .simulation.runner import LedgerSimulation
from .validation.sanity_checks import InvariantChecker


def _simulate(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    for warning in InvariantChecker(config).check_config_inputs():
        logging.getLogger(__name__).warning("%s (%s)", warning.message, warning.details)

    result = LedgerSimulation(config).run(random_seed=args.seed)
    if args.csv:
        export_csv(result, args.csv)
    if args.json:
        export_json(result, args.json)

    for key, value in result.final_metrics.items():
        print(f"{key}: {value}")
    if result.invariant_errors:
        print(f"invariant errors: {len(result.invariant_errors)}", file=sys.stderr)
        return 1
    return 0


def _curve(args: argparse.Namespace) -> int:
    frame = multiplier_curve_frame(args.multiplier_max, args.threshold, points=args.points)
    print(frame.to_string(index=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="yield-ledger", description=__doc__)
    parser.add_argument("--log-level", default="INFO")
    sub = parser.add_subparsers(dest="command", required=True)

    simulate = sub.add_parser("simulate", help="run a randomized ledger simulation")
    simulate.add_argument("--config", default=None, help="YAML overrides merged onto the bundled defaults")
    simulate.add_argument("--seed", type=int, default=None)
    simulate.add_argument("--csv", default=None, help="write per-step metrics to CSV")
    simulate.add_argument("--json", default=None, help="write full results to JSON")
    simulate.set_defaults(func=_simulate)

    curve = sub.add_parser("curve", help="print the staking multiplier curve")
    curve.add_argument("--multiplier-max", type=int, default=2_000_000)
    curve.add_argument("--threshold", type=int, default=365 * 86_400)
    curve.add_argument("--points", type=int, default=13)
    curve.set_defaults(func=_curve)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
