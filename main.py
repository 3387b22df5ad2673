import argparse
import logging
import sys
from pathlib import Path

from supply_kpis import settings
from supply_kpis.exceptions import KpiEngineError
from supply_kpis.logger import setup_logger
from supply_kpis.pipelines import RecomputePipeline, ReportPipeline
from supply_kpis.storage import InventoryStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute supply-chain KPIs for the inventory dataset."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    recompute = commands.add_parser(
        "recompute", help="Recompute all derived KPI columns and persist them."
    )
    recompute.add_argument("--database-url", help="SQLAlchemy URL (default: DATABASE_URL)")
    recompute.add_argument("--table", help="Dataset table name (default: INVENTORY_TABLE)")

    report = commands.add_parser("report", help="Write the KPI reports to CSV/JSON.")
    source = report.add_mutually_exclusive_group()
    source.add_argument("--database-url", help="SQLAlchemy URL (default: DATABASE_URL)")
    source.add_argument("--csv", type=Path, help="Read the dataset from a CSV extract instead")
    report.add_argument("--table", help="Dataset table name (default: INVENTORY_TABLE)")
    report.add_argument("--top-n", type=int, default=settings.TOP_N)
    report.add_argument("--output-dir", type=Path, help="Default: OUTPUT_DIR")
    return parser


def run(args: argparse.Namespace) -> None:
    if args.command == "recompute":
        store = InventoryStore(args.database_url, table_name=args.table)
        RecomputePipeline(store).run()
    elif args.command == "report":
        store = None
        if args.csv is None:
            store = InventoryStore(args.database_url, table_name=args.table)
        ReportPipeline(
            store=store,
            csv_path=args.csv,
            top_n=args.top_n,
            output_dir=args.output_dir,
        ).run()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger()
    try:
        run(args)
    except KpiEngineError as e:
        logger.error(f"❌ {args.command} failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
