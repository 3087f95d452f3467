"""Command-line interface for the prefix catalog search."""
from __future__ import annotations

import argparse
import csv
import logging
from pathlib import Path
from typing import Iterable, TextIO

from .logging_utils import logging_session
from .models import CatalogSnapshot, IPv4Address, MatchRecord, ScanResult
from .parsers.excel import parse_excel_catalog
from .parsers.json_catalog import parse_json_catalog
from .scanner import find_matches_parallel, resolve_worker_count
from .utils import ParseError, QueryOptions, expand_query, parse_queries_file


OUTPUT_FIELDS = [
    "query_address",
    "entry_name",
    "community_name",
    "region",
    "community_value",
    "matched_prefix",
]

TABLE_HEADERS = ("Query", "Entry", "Community", "Region", "Value", "Prefix")


def _select_catalog_source(catalog: str | None, excel: str | None) -> None:
    """Ensure exactly one catalog source is selected."""
    provided = [value for value in (catalog, excel) if value]
    if len(provided) != 1:
        raise ParseError("Specify exactly one of --catalog or --excel")


def _load_catalog(catalog: str | None, excel: str | None) -> CatalogSnapshot:
    if catalog:
        return parse_json_catalog(catalog)
    return parse_excel_catalog(str(excel))


def _collect_queries(
    addresses: Iterable[str],
    queries_file: str | None,
    options: QueryOptions,
) -> list[IPv4Address]:
    """Expand positional query tokens and the optional queries file."""
    queries: list[IPv4Address] = []
    for token in addresses:
        queries.extend(expand_query(token, options))
    if queries_file:
        try:
            with Path(queries_file).open(encoding="utf-8") as handle:
                lines = handle.readlines()
        except OSError as exc:
            raise ParseError(f"Unable to read queries file {queries_file}: {exc}") from exc
        queries.extend(parse_queries_file(lines, options))
    if not queries:
        raise ParseError("No query addresses given")
    return queries


def _write_output(output_path: Path, records: Iterable[MatchRecord]) -> None:
    """Write match records to CSV file."""
    with output_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=OUTPUT_FIELDS)
        writer.writeheader()
        for record in records:
            writer.writerow(record.as_row())


def format_table(records: Iterable[MatchRecord]) -> list[str]:
    """Render match records as fixed-width table lines."""
    rows = [
        (
            str(record.query_address),
            record.entry_name,
            record.community_name,
            record.region,
            record.community_value,
            str(record.matched_prefix),
        )
        for record in records
    ]
    widths = [max(len(value) for value in column) for column in zip(TABLE_HEADERS, *rows)]
    lines = []
    for row in (TABLE_HEADERS, tuple("-" * width for width in widths), *rows):
        lines.append("  ".join(value.ljust(width) for value, width in zip(row, widths)).rstrip())
    return lines


def print_report(result: ScanResult, stream: TextIO | None = None) -> None:
    """Print the match table, or a notice when nothing matched, then unmatched addresses."""
    if result.matches:
        for line in format_table(result.matches):
            print(line, file=stream)
    else:
        print("No entries found.", file=stream)
    for address in sorted(result.unmatched):
        print(f"No match: {address}", file=stream)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find catalog prefixes that contain IPv4 addresses")
    parser.add_argument(
        "addresses",
        nargs="*",
        help="Addresses to look up (a.b.c.d, a.b.c.d-w.x.y.z or a.b.c.d/n)",
    )
    parser.add_argument("--queries-file", help="File with one address, range or CIDR per line")
    parser.add_argument("--catalog", help="JSON catalog file")
    parser.add_argument("--excel", help="Excel catalog workbook")
    parser.add_argument("--out", help="Optional CSV output path for match records")
    parser.add_argument(
        "--max-hosts",
        type=int,
        default=QueryOptions().max_hosts,
        help="Max addresses a single range or CIDR query may expand to",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker process count (0=auto, 1=disable multiprocessing)",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error", "fatal"],
        help="Logging verbosity (debug, info, warning, error, fatal)",
    )
    parser.add_argument(
        "--log-file",
        help="Optional log file path (defaults to console output)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint."""
    args = build_parser().parse_args(argv)

    with logging_session(args.log_level, args.log_file, use_queue=args.workers != 1) as log_context:
        logger = logging.getLogger(__name__)
        try:
            _select_catalog_source(args.catalog, args.excel)
            if args.max_hosts < 1:
                raise ParseError("--max-hosts must be a positive integer")
            options = QueryOptions(max_hosts=args.max_hosts)

            snapshot = _load_catalog(args.catalog, args.excel)
            if snapshot.failures:
                logger.warning("Skipped %s malformed catalog prefixes", len(snapshot.failures))

            queries = _collect_queries(args.addresses, args.queries_file, options)
            worker_count = resolve_worker_count(args.workers, len(queries))
            logger.info(
                "Searching %s addresses across %s entries (%s prefixes) with %s workers",
                len(queries),
                len(snapshot.entries),
                snapshot.prefix_count,
                worker_count,
            )
            result = find_matches_parallel(
                snapshot,
                queries,
                worker_count,
                log_queue=log_context.queue,
                log_level=args.log_level,
            )

            print_report(result)
            if args.out:
                _write_output(Path(args.out), result.matches)
                logger.info("Wrote %s rows to %s", len(result.matches), args.out)
        except ParseError as exc:
            logger.warning("Parsing failed: %s", exc)
            raise SystemExit(str(exc)) from exc
        except Exception:
            logger.fatal("Fatal error during processing", exc_info=True)
            raise


if __name__ == "__main__":
    main()
