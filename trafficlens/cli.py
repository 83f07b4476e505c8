# ==============================================
# CLI: Command Line Entry Point
# ==============================================
#
# PURPOSE:
#   Run the engine over a dataset file or URL from the shell.
#
# COMMANDS:
# ---------
# 1. Show the inferred role (and a few sample values) of every column:
#    python -m trafficlens.cli infer data/traffic.csv
#
# 2. Full analysis (summary, predictions, recommendations):
#    python -m trafficlens.cli analyze data/traffic.csv --top 5
#    python -m trafficlens.cli analyze https://example.org/t.json --value-col speed
#    python -m trafficlens.cli analyze data/traffic.csv --lat-col none --export out.json
#
#    Column options override the inferred mapping; "none" deselects.
#
# EXIT CODES:
# -----------
#   0 success, 1 ingestion failed, 2 invalid column selection
#
# ==============================================

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional

from trafficlens.config import TIME_BUCKETS, AppConfig, get_config
from trafficlens.errors import IngestionError
from trafficlens.pipeline import TrafficPipeline


COLUMN_OPTIONS = (
    ("--route-col", "route_col"),
    ("--time-col", "time_col"),
    ("--value-col", "value_col"),
    ("--lat-col", "lat_col"),
    ("--lng-col", "lng_col"),
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trafficlens",
        description="Infer, aggregate and classify tabular traffic datasets.",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="suppress progress output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    infer = subparsers.add_parser("infer", help="print the inferred role of every column")
    infer.add_argument("source", help="dataset file path or http(s) URL")

    analyze = subparsers.add_parser("analyze", help="aggregate, classify and recommend routes")
    analyze.add_argument("source", help="dataset file path or http(s) URL")
    for flag, dest in COLUMN_OPTIONS:
        analyze.add_argument(flag, dest=dest, default=None, metavar="COLUMN",
                             help='column to use ("none" to deselect)')
    analyze.add_argument("--top", type=int, default=None, metavar="N",
                         help="number of recommended routes")
    analyze.add_argument("--time-bucket", choices=TIME_BUCKETS, default=None,
                         help="time-series resolution")
    analyze.add_argument("--export", default=None, metavar="PATH",
                         help="write the JSON export (with raw records) to PATH")

    return parser


def mapping_from_args(args: argparse.Namespace) -> Dict[str, Optional[str]]:
    """Column overrides actually given on the command line."""
    mapping = {}
    for _, dest in COLUMN_OPTIONS:
        column = getattr(args, dest, None)
        if column is None:
            continue
        mapping[dest] = None if column.strip().lower() == "none" else column
    return mapping


def config_from_args(args: argparse.Namespace, config: AppConfig) -> AppConfig:
    if args.quiet:
        config = replace(config, verbose=False)
    time_bucket = getattr(args, "time_bucket", None)
    if time_bucket:
        config = replace(config, analytics=replace(config.analytics, time_bucket=time_bucket))
    return config


def cmd_infer(args: argparse.Namespace, config: AppConfig) -> int:
    pipeline = TrafficPipeline(config)
    report = pipeline.load(args.source)
    stats = pipeline.session.column_stats()

    print(f"\nColumns of {report.source} ({report.total_records} records):")
    for profile in report.profiles:
        print(f"   → {profile.name}: {profile.role.value} "
              f"(confidence {profile.confidence:.2f}, by {profile.matched_on})")
        evidence = stats.get(profile.name)
        if evidence is not None and evidence.sample_values:
            samples = ", ".join(str(value) for value in evidence.sample_values[:3])
            print(f"       e.g. {samples}")

    print("\nSuggested mapping:")
    for key, column in report.mapping.to_dict().items():
        print(f"   → {key}: {column if column is not None else '-- none --'}")
    return 0


def cmd_analyze(args: argparse.Namespace, config: AppConfig) -> int:
    pipeline = TrafficPipeline(config)
    pipeline.load(args.source, mapping=mapping_from_args(args))
    pipeline.print_summary(args.top)

    print("\nPredictions:")
    for result in pipeline.session.predictions():
        avg = f"{result.avg:.2f}" if result.avg is not None else "n/a"
        print(f"   → {result.route}: {result.label.value} (avg {avg})")

    if args.export:
        path = pipeline.export(Path(args.export).resolve())
        print(f"\n✓ Export written to {path}")
    return 0


COMMANDS = {
    "infer": cmd_infer,
    "analyze": cmd_analyze,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    config = config_from_args(args, get_config())

    try:
        return COMMANDS[args.command](args, config)
    except IngestionError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
