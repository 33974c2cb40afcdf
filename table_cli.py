"""
Spreadsheet tables - CLI entry point.

Usage:
    python table_cli.py read <excel_file> --sheet <name> [--labels A,B,...]
                        [--start-row N] [--start-column N] [--rows N]
                        [--columns N] [--transposed] [--empty-string] [--format json|html]
                        [--output <file>]
    python table_cli.py copy <source> <destination> --sheet <name>
                        [--dest-sheet <name>] [--template <file>]
                        [--numeric-text] [--recalculate] ...

``read`` prints (or writes) one table as JSON or as an HTML <table>.
``copy`` streams a table from one workbook into another, keeping the
source cells' styles.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import dotenv

# detection.constants reads the environment on import.
dotenv.load_dotenv()

from dto.geometry import TableGeometry  # noqa: E402
from dto.header import FreeFormHeader, HeaderSpec, OneLineHeader  # noqa: E402
from dto.policy import NoDataPolicy  # noqa: E402
from errors import TableError  # noqa: E402
from extractors.table import TableReader  # noqa: E402
from grid.formula_values import FormulaInputs  # noqa: E402
from utils.html import render_table_html  # noqa: E402
from writers.table import TableWriter  # noqa: E402

logger = logging.getLogger(__name__)


def _header_from_args(labels: Optional[str], ignores_additional_columns: bool = False) -> HeaderSpec:
    if not labels:
        return FreeFormHeader()
    return OneLineHeader(
        labels=[label.strip() for label in labels.split(",")],
        ignores_additional_columns=ignores_additional_columns,
    )


# -------------------------------------------------------------------
# Commands
# -------------------------------------------------------------------


def _run_read(args: argparse.Namespace) -> int:
    geometry = TableGeometry(
        sheet_name=args.sheet,
        start_row=args.start_row,
        start_column=args.start_column,
        row_count=args.rows,
        column_count=args.columns,
        transposed=args.transposed,
    )
    reader = TableReader(
        geometry,
        _header_from_args(args.labels),
        policy=NoDataPolicy.AS_EMPTY_STRING if args.empty_string else NoDataPolicy.AS_ABSENT,
        evaluate_formulas=args.evaluate_formulas,
    )
    table = reader.read(args.excel_file)

    if args.format == "html":
        text = render_table_html(table)
    else:
        text = table.model_dump_json(indent=2)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        logger.info("Output written to %s", args.output)
    else:
        print(text)
    return 0


def _run_copy(args: argparse.Namespace) -> int:
    header = _header_from_args(args.labels)
    source_geometry = TableGeometry(
        sheet_name=args.sheet,
        start_row=args.start_row,
        start_column=args.start_column,
        row_count=args.rows,
        column_count=args.columns,
        transposed=args.transposed,
    )
    dest_start_row = args.dest_start_row
    if dest_start_row is None and isinstance(header, FreeFormHeader):
        dest_start_row = 1
    dest_geometry = TableGeometry(
        sheet_name=args.dest_sheet or args.sheet,
        start_row=dest_start_row,
        start_column=args.dest_start_column,
        transposed=args.transposed,
    )

    reader = TableReader(source_geometry, header, values="cell")
    writer = TableWriter(
        dest_geometry,
        _header_from_args(args.labels, ignores_additional_columns=True),
        copies_data_format_only=args.data_format_only,
        formula_inputs=FormulaInputs() if args.numeric_text else None,
        recalculates_formulas=args.recalculate,
    )
    with reader.iterate(args.source) as rows:
        count = writer.write(args.template, args.destination, rows)

    logger.info("Copied %d row(s) to %s", count, args.destination)
    return 0


# -------------------------------------------------------------------
# CLI
# -------------------------------------------------------------------


def _add_geometry_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-s", "--sheet", required=True, help="Worksheet holding the table")
    parser.add_argument(
        "--labels",
        default=None,
        help="Comma-separated header labels (default: free-form table, no header)",
    )
    parser.add_argument("--start-row", type=int, default=None, help="1-based first table row")
    parser.add_argument("--start-column", type=int, default=1, help="1-based first table column")
    parser.add_argument("--rows", type=int, default=None, help="Number of body rows")
    parser.add_argument("--columns", type=int, default=None, help="Number of table columns")
    parser.add_argument(
        "--transposed",
        action="store_true",
        help="Table rows run along sheet columns (geometry given in table terms)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Read tables from Excel worksheets and write them back.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    read = subparsers.add_parser("read", help="Read one table as JSON or HTML")
    read.add_argument("excel_file", help="Path to the .xlsx file to read")
    _add_geometry_arguments(read)
    read.add_argument(
        "--empty-string",
        action="store_true",
        help="Read blank cells as \"\" instead of null",
    )
    read.add_argument(
        "--evaluate-formulas",
        action="store_true",
        help="Compute formulas without a cached result",
    )
    read.add_argument("--format", choices=("json", "html"), default="json")
    read.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")

    copy = subparsers.add_parser("copy", help="Copy a table into another workbook")
    copy.add_argument("source", help="Workbook to read the table from")
    copy.add_argument("destination", help="Workbook file to write")
    _add_geometry_arguments(copy)
    copy.add_argument("--dest-sheet", default=None, help="Destination worksheet (default: --sheet)")
    copy.add_argument("--dest-start-row", type=int, default=None)
    copy.add_argument("--dest-start-column", type=int, default=1)
    copy.add_argument("--template", default=None, help="Template workbook to write into")
    copy.add_argument(
        "--data-format-only",
        action="store_true",
        help="Copy only number formats, not fonts / fills / borders",
    )
    copy.add_argument(
        "--numeric-text",
        action="store_true",
        help="Store text that spells a number as a number",
    )
    copy.add_argument(
        "--recalculate",
        action="store_true",
        help="Mark the destination for recalculation and check its formulas evaluate",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    args = build_parser().parse_args(argv)

    input_path = args.excel_file if args.command == "read" else args.source
    if not os.path.isfile(input_path):
        logger.error("File not found: %s", input_path)
        return 1
    if args.command == "copy" and args.template and not Path(args.template).is_file():
        logger.error("Template not found: %s", args.template)
        return 1

    try:
        if args.command == "read":
            return _run_read(args)
        return _run_copy(args)
    except TableError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
