#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Main entry point for the attribute operations toolbox.

This script exposes subsetting, aggregation, attribute joins, derived
columns and raster summaries as subcommands that read their inputs from
files and write the results to CSV or vector files.
"""
import sys
import time
import json
import argparse
from pathlib import Path
from typing import List, Optional, Union

from geo_attributes import __version__
from geo_attributes.core.config import (
    DEFAULT_OUTPUT_DIR, AGGREGATE_CONFIG, JOIN_CONFIG, load_config
)
from geo_attributes.core.logging_config import setup_logging, get_module_logger

# Initialize logger
logger = get_module_logger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _split(value: Optional[str]) -> Optional[List[str]]:
    """Split a comma-separated option into a list of names."""
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_rows(value: str) -> Union[slice, List[int]]:
    """
    Parse a row selector: ``"start:stop"`` or ``"1,3,5"``.

    Raises
    ------
    argparse.ArgumentTypeError
        If the selector is malformed.
    """
    try:
        if ":" in value:
            start, _, stop = value.partition(":")
            return slice(int(start) if start else None, int(stop) if stop else None)
        return [int(item) for item in value.split(",") if item.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid row selector: {value}")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns
    -------
    argparse.Namespace
        Parsed command line arguments.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config", "-c",
        help="Path to a YAML configuration file"
    )
    common.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        help="Logging level (default: the configured level, INFO)"
    )
    common.add_argument(
        "--save-metadata", "-m",
        action="store_true",
        help="Save a JSON description of the result next to the output"
    )

    parser = argparse.ArgumentParser(
        description="Subset, aggregate and join attribute data of vector and raster files."
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Geo Attributes v{__version__}"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")
    subparsers.required = True

    # Subset command
    subset_parser = subparsers.add_parser("subset", parents=[common], help="Select rows and columns")
    subset_parser.add_argument("--input", "-i", required=True, help="Input vector or CSV file")
    subset_parser.add_argument("--output", "-o", help="Output file (.csv, .gpkg, .geojson, .shp)")
    subset_parser.add_argument("--columns", help="Comma-separated columns to keep")
    subset_parser.add_argument("--query", "-q", help="Row condition, e.g. \"area_km2 < 10000\"")
    subset_parser.add_argument("--rows", type=parse_rows, help="Row positions: 'start:stop' or '0,2,5'")
    subset_parser.add_argument("--drop-geometry", action="store_true", help="Drop the geometry column")

    # Aggregate command
    aggregate_parser = subparsers.add_parser("aggregate", parents=[common], help="Aggregate by group")
    aggregate_parser.add_argument("--input", "-i", required=True, help="Input vector or CSV file")
    aggregate_parser.add_argument("--output", "-o", help="Output file")
    aggregate_parser.add_argument("--by", "-b", required=True, help="Comma-separated group key columns")
    aggregate_parser.add_argument("--columns", help="Comma-separated value columns (default: numeric)")
    aggregate_parser.add_argument(
        "--func", "-f",
        choices=AGGREGATE_CONFIG["allowed_funcs"],
        help=f"Aggregation function (default: {AGGREGATE_CONFIG['default_func']})"
    )
    aggregate_parser.add_argument("--dissolve", action="store_true", help="Also union geometries per group")
    aggregate_parser.add_argument("--top", type=int, help="Keep only the N groups with the largest first value column")

    # Join command
    join_parser = subparsers.add_parser("join", parents=[common], help="Join two tables on key columns")
    join_parser.add_argument("--left", required=True, help="Left (vector or CSV) file")
    join_parser.add_argument("--right", required=True, help="Right (vector or CSV) file")
    join_parser.add_argument("--output", "-o", help="Output file")
    join_parser.add_argument("--on", help="Comma-separated key columns present in both tables")
    join_parser.add_argument("--left-on", help="Comma-separated key columns of the left table")
    join_parser.add_argument("--right-on", help="Comma-separated key columns of the right table")
    join_parser.add_argument(
        "--how",
        choices=["left", "inner", "right", "outer"],
        help=f"Join type (default: {JOIN_CONFIG['how']})"
    )
    join_parser.add_argument("--validate", help="Merge validation, e.g. one_to_one or many_to_one")
    join_parser.add_argument("--coerce-keys", action="store_true", help="Convert keys of different types to text")
    join_parser.add_argument(
        "--report-unmatched",
        action="store_true",
        help="Print the right-hand keys that have no match in the left table"
    )

    # Derive command
    derive_parser = subparsers.add_parser("derive", parents=[common], help="Add a computed column")
    derive_parser.add_argument("--input", "-i", required=True, help="Input vector or CSV file")
    derive_parser.add_argument("--output", "-o", help="Output file")
    derive_parser.add_argument("--name", "-n", required=True, help="Name of the new column")
    derive_parser.add_argument("--expr", "-e", help="Expression, e.g. \"pop / area_km2\"")
    derive_parser.add_argument(
        "--area",
        action="store_true",
        help="Compute geometry area in km2 instead of an expression"
    )

    # Raster summary command
    raster_parser = subparsers.add_parser("raster-summary", parents=[common], help="Summarize raster values")
    raster_parser.add_argument("--input", "-i", required=True, help="Input raster file")
    raster_parser.add_argument("--band", type=int, default=1, help="Band number (default: 1)")
    raster_parser.add_argument("--frequency", action="store_true", help="Print a frequency table of cell values")
    raster_parser.add_argument("--output", "-o", help="Write the summary to a JSON or YAML file")

    return parser.parse_args(argv)


def _default_output(input_path: str, command: str, spatial: bool) -> str:
    suffix = ".gpkg" if spatial else ".csv"
    return str(DEFAULT_OUTPUT_DIR / f"{Path(input_path).stem}_{command}{suffix}")


def _write_result(result, args, source: str) -> None:
    """Export a command result and optionally its metadata."""
    from geo_attributes.core.io import export_table, save_metadata
    from geo_attributes.utils.utils import is_spatial

    output = args.output or _default_output(source, args.command, is_spatial(result))
    export_table(result, output)

    if args.save_metadata:
        metadata_path = Path(output).with_name(f"{Path(output).stem}_metadata.json")
        save_metadata(result, metadata_path, extra={"command": args.command, "source": source})


def run_subset(args: argparse.Namespace) -> int:
    from geo_attributes.core.io import load_data
    from geo_attributes.vector.subset import subset

    frame = load_data(args.input)
    result = subset(
        frame,
        rows=args.rows,
        columns=_split(args.columns),
        condition=args.query,
        keep_geometry=False if args.drop_geometry else None,
    )
    _write_result(result, args, args.input)
    return 0


def run_aggregate(args: argparse.Namespace) -> int:
    from geo_attributes.core.io import load_data
    from geo_attributes.utils.utils import geometry_column
    from geo_attributes.vector.aggregate import aggregate_attributes, dissolve_by, top_n

    frame = load_data(args.input)
    by = _split(args.by)
    columns = _split(args.columns)

    if args.dissolve:
        result = dissolve_by(frame, by, aggfunc=args.func, columns=columns)
    else:
        result = aggregate_attributes(frame, by, columns=columns, func=args.func)

    if args.top:
        value_columns = [col for col in result.columns if col not in by and col != geometry_column(result)]
        if not value_columns:
            raise ValueError("--top needs at least one value column")
        result = top_n(result, value_columns[0], n=args.top)

    _write_result(result, args, args.input)
    return 0


def run_join(args: argparse.Namespace) -> int:
    from geo_attributes.core.io import load_data
    from geo_attributes.vector.join import attribute_join, unmatched_keys

    left = load_data(args.left)
    right = load_data(args.right)
    keys = dict(on=_split(args.on), left_on=_split(args.left_on), right_on=_split(args.right_on))

    if args.report_unmatched:
        missing = unmatched_keys(left, right, **keys)
        print(f"{len(missing)} unmatched key(s) in {args.right}")
        for key in missing:
            print(f"  {key}")

    result = attribute_join(
        left, right,
        how=args.how,
        validate=args.validate,
        coerce_keys=True if args.coerce_keys else None,
        **keys,
    )
    _write_result(result, args, args.left)
    return 0


def run_derive(args: argparse.Namespace) -> int:
    from geo_attributes.core.io import load_data
    from geo_attributes.vector.create import add_area_column, derive_column

    if bool(args.expr) == bool(args.area):
        raise ValueError("Give exactly one of --expr or --area")

    frame = load_data(args.input)
    if args.area:
        result = add_area_column(frame, name=args.name)
    else:
        result = derive_column(frame, args.name, args.expr)
    _write_result(result, args, args.input)
    return 0


def run_raster_summary(args: argparse.Namespace) -> int:
    from geo_attributes.core.io import load_raster
    from geo_attributes.raster.summary import frequency_table, log_raster_stats, summarize_raster
    from geo_attributes.utils.metadata import describe_raster, save_description

    raster = load_raster(args.input, band=args.band)
    log_raster_stats(raster)

    summary = summarize_raster(raster)
    print(json.dumps(summary, indent=2))

    freq = None
    if args.frequency:
        freq = frequency_table(raster)
        print(freq.to_string(index=False))

    if args.output:
        extra = {"source": args.input, "band": args.band}
        if freq is not None:
            extra["frequency"] = freq.to_dict(orient="records")
        save_description(describe_raster(raster), args.output, extra=extra)
    return 0


COMMANDS = {
    "subset": run_subset,
    "aggregate": run_aggregate,
    "join": run_join,
    "derive": run_derive,
    "raster-summary": run_raster_summary,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function to run a command.

    Returns
    -------
    int
        Exit code.
    """
    args = parse_arguments(argv)

    # Configuration may carry a logging section, so load it first
    updated, config_error = {}, None
    if args.config:
        try:
            updated = load_config(args.config)
        except Exception as e:
            config_error = e

    setup_logging(log_level=args.log_level)
    if config_error is not None:
        logger.error(f"Invalid configuration {args.config}: {config_error}")
        return 1
    if updated:
        logger.info(f"Loaded configuration sections {list(updated)} from {args.config}")

    start_time = time.time()
    try:
        exit_code = COMMANDS[args.command](args)

        elapsed_time = time.time() - start_time
        logger.info(f"Command '{args.command}' completed in {elapsed_time:.2f} seconds")
        return exit_code

    except Exception as e:
        logger.exception(f"Error during '{args.command}': {str(e)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
