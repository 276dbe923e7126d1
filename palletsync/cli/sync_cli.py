"""
Command-line interface for the pallet automation.

Usage:
    palletsync run [options]
    palletsync materialize --pallet-id <pallet_id> [options]
    palletsync rebuild [options]
    palletsync propagate --pallet-id <pallet_id> [options]
    palletsync init [options]
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv
from psycopg import OperationalError
from pydantic import ValidationError as ConfigValidationError

from palletsync.core.config import PipelineConfig, load_config
from palletsync.core.errors import PalletSyncError
from palletsync.observability.logger import configure_logging, get_logger
from palletsync.observability.metrics import start_metrics_server
from palletsync.reconcile import (
    PalletAutomation,
    StatusMaterializer,
    UpstreamStatusPropagator,
)
from palletsync.utils.validation import ValidationError, validate_file_path, validate_pallet_id
from palletsync.warehouse.workbook import Workbook, create_tables, open_workbook

logger = get_logger(__name__)


def run_command(workbook: Workbook, config: PipelineConfig, args) -> int:
    """Run the full pipeline for the newest build row."""
    result = PalletAutomation(workbook, config).run()

    logger.info("=" * 60)
    if result.skipped:
        logger.info(
            f"SKIPPED: pallet {result.ledger.pallet_id} / GRN {result.ledger.grn_id} "
            "already recorded"
        )
    else:
        logger.info(f"Ledger fact written at row {result.ledger.position}")
        if result.materialize is not None:
            logger.info(f"Status: {result.materialize.status}")
        if result.propagation is not None:
            logger.info(f"GRN propagation: {result.propagation.status}")
        for error in result.errors:
            logger.warning(f"Component error: {error}")
    logger.info("=" * 60)
    return 0


def materialize_command(workbook: Workbook, config: PipelineConfig, args) -> int:
    """Materialize one pallet's status row."""
    materializer = StatusMaterializer(
        workbook,
        labels=config.labels,
        apply_expiry_to_empty_pallets=config.apply_expiry_to_empty_pallets,
    )
    result = materializer.materialize_one(args.pallet_id)
    logger.info(
        f"Pallet {result.pallet_id}: {result.status}",
        extra={"pallet_id": result.pallet_id, "changed_fields": result.changed_fields},
    )
    return 0


def rebuild_command(workbook: Workbook, config: PipelineConfig, args) -> int:
    """Rebuild the whole status view."""
    materializer = StatusMaterializer(
        workbook,
        labels=config.labels,
        apply_expiry_to_empty_pallets=config.apply_expiry_to_empty_pallets,
    )
    result = materializer.materialize_all()

    logger.info("=" * 60)
    logger.info("REBUILD COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Status rows: {result.status_rows}")
    logger.info(f"Ledger updates applied: {result.ledger_updates}")
    logger.info(f"Expiry updates applied: {result.expiry_updates}")
    logger.info(f"Rows written: {result.rows_written}")
    if result.missing_pallets:
        logger.info(f"Pallets without a status row: {', '.join(result.missing_pallets)}")
    if result.skipped_pallets:
        logger.warning(f"Pallets skipped (unparseable rows): {', '.join(result.skipped_pallets)}")
    logger.info("=" * 60)
    return 0


def propagate_command(workbook: Workbook, config: PipelineConfig, args) -> int:
    """Propagate the unloading status to one pallet's GRN."""
    result = UpstreamStatusPropagator(workbook, labels=config.labels).propagate_incomplete_status(
        args.pallet_id
    )
    logger.info(
        f"Pallet {result.pallet_id}: {result.status}",
        extra={"pallet_id": result.pallet_id, "grn_id": result.grn_id, "written": result.written},
    )
    return 0


def init_command(workbook: Workbook, config: PipelineConfig, args) -> int:
    """Create any missing table with its canonical header."""
    created = create_tables(workbook)
    if created:
        logger.info(f"Created tables: {', '.join(created)}")
    else:
        logger.info("All tables already exist")
    return 0


COMMANDS = {
    "run": run_command,
    "materialize": materialize_command,
    "rebuild": rebuild_command,
    "propagate": propagate_command,
    "init": init_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="palletsync",
        description="Pallet ledger, status view and GRN status automation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Record the newest build row and sync its pallet
  palletsync run --config config/pipeline.yaml

  # Re-sync one pallet's status row
  palletsync materialize --pallet-id PLT-0042

  # Rebuild the whole status view from the ledger and build source
  palletsync rebuild --csv-dir data/

  # Create empty tables in a postgres backend
  palletsync init --backend postgres --env-file .env
        """
    )

    parser.add_argument("--config", help="Path to pipeline YAML configuration")
    parser.add_argument("--env-file", help="Path to a .env file to load before reading configuration")
    parser.add_argument(
        "--backend",
        choices=["memory", "csv", "postgres"],
        help="Table store backend (overrides config)"
    )
    parser.add_argument("--csv-dir", help="Directory of CSV tables (overrides config)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config)"
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "text"],
        help="Log format (overrides config)"
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        help="Expose Prometheus metrics on this port while running"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("run", help="Record the newest build row and sync its pallet")

    materialize_parser = subparsers.add_parser("materialize", help="Materialize one pallet's status row")
    materialize_parser.add_argument("--pallet-id", required=True, help="Pallet ID")

    subparsers.add_parser("rebuild", help="Rebuild every status row")

    propagate_parser = subparsers.add_parser("propagate", help="Propagate unloading status to a GRN")
    propagate_parser.add_argument("--pallet-id", required=True, help="Pallet ID")

    subparsers.add_parser("init", help="Create missing tables with canonical headers")

    return parser


def load_cli_config(args) -> PipelineConfig:
    """
    Load configuration and apply command-line overrides.

    Raises:
        ValidationError: If a path or pallet id argument is invalid
    """
    if args.env_file:
        load_dotenv(validate_file_path(args.env_file, "env_file"), override=True)

    config = load_config(validate_file_path(args.config, "config") if args.config else None)

    overrides = {}
    if args.backend:
        overrides["backend"] = args.backend
    if args.csv_dir:
        overrides["csv_dir"] = Path(validate_file_path(args.csv_dir, "csv_dir"))
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_format:
        overrides["log_format"] = args.log_format
    if overrides:
        config = config.model_copy(update=overrides)

    if getattr(args, "pallet_id", None) is not None:
        args.pallet_id = validate_pallet_id(args.pallet_id)

    return config


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_cli_config(args)
    except (ValidationError, ValueError, FileNotFoundError, ConfigValidationError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    configure_logging(level=config.log_level, format_type=config.log_format)

    if args.metrics_port:
        start_metrics_server(args.metrics_port)
        logger.info(f"Metrics server listening on port {args.metrics_port}")

    try:
        workbook = open_workbook(config)
    except (ValueError, OperationalError) as e:
        logger.error(f"Could not open {config.backend} backend: {e}")
        return 1

    try:
        return COMMANDS[args.command](workbook, config, args)
    except PalletSyncError as e:
        logger.error(f"{args.command} failed: {e}", extra={"error_type": type(e).__name__})
        return 1
    finally:
        workbook.close()


if __name__ == "__main__":
    sys.exit(main())
