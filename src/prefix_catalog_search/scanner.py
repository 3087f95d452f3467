"""Exhaustive scan of a prefix catalog for addresses contained by its prefixes."""
from __future__ import annotations

import logging
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from multiprocessing import Queue
from typing import Iterable, Sequence

from .evaluator import is_within
from .logging_utils import configure_worker_logging
from .models import CatalogEntry, CatalogSnapshot, IPv4Address, MatchRecord, ScanResult
from .utils import ParseError


def _scan_address(query: IPv4Address, catalog: Sequence[CatalogEntry]) -> list[MatchRecord]:
    """Return every match for a single address, in catalog order."""
    matches: list[MatchRecord] = []
    for entry in catalog:
        for community in entry.communities:
            for prefix in community.prefixes:
                if is_within(query, prefix):
                    matches.append(
                        MatchRecord(
                            query_address=query,
                            entry_name=entry.name,
                            community_name=community.community_name,
                            region=community.region,
                            community_value=community.community_value,
                            matched_prefix=prefix,
                        )
                    )
    return matches


def _catalog_entries(catalog: CatalogSnapshot | Iterable[CatalogEntry]) -> tuple[CatalogEntry, ...]:
    if isinstance(catalog, CatalogSnapshot):
        return catalog.entries
    return tuple(catalog)


def find_matches(
    catalog: CatalogSnapshot | Iterable[CatalogEntry],
    queries: Iterable[IPv4Address],
) -> ScanResult:
    """Find all catalog prefixes containing each query address.

    Every (query, prefix) pair is tested; overlapping prefixes all produce
    records, ordered by query and then by catalog position. Queries with no
    record are returned in ``unmatched``.
    """
    logger = logging.getLogger(__name__)
    entries = _catalog_entries(catalog)
    matches: list[MatchRecord] = []
    unmatched: set[IPv4Address] = set()
    query_count = 0
    for query in queries:
        query_count += 1
        found = _scan_address(query, entries)
        if found:
            logger.debug("Address %s matched %s prefixes", query, len(found))
            matches.extend(found)
        else:
            unmatched.add(query)
    logger.debug(
        "Scanned %s addresses against %s entries: %s matches, %s unmatched",
        query_count,
        len(entries),
        len(matches),
        len(unmatched),
    )
    return ScanResult(matches=tuple(matches), unmatched=frozenset(unmatched))


def merge_results(results: Iterable[ScanResult]) -> ScanResult:
    """Concatenate partial scan results, preserving their order."""
    matches: list[MatchRecord] = []
    unmatched: set[IPv4Address] = set()
    for result in results:
        matches.extend(result.matches)
        unmatched.update(result.unmatched)
    return ScanResult(matches=tuple(matches), unmatched=frozenset(unmatched))


@dataclass(frozen=True)
class ScanContext:
    """Immutable container for data shared with worker processes."""

    entries: tuple[CatalogEntry, ...]
    log_queue: Queue | None
    log_level: str


_WORKER_CONTEXT: ScanContext | None = None


def _init_worker(context: ScanContext) -> None:
    """Initialize worker process state for multiprocessing."""
    global _WORKER_CONTEXT
    configure_worker_logging(context.log_queue, context.log_level)
    _WORKER_CONTEXT = context


def _scan_chunk(queries: tuple[IPv4Address, ...]) -> ScanResult:
    """Scan one chunk of queries using the shared worker context."""
    if _WORKER_CONTEXT is None:
        raise RuntimeError("Worker context was not initialized")
    return find_matches(_WORKER_CONTEXT.entries, queries)


def chunk_queries(queries: Sequence[IPv4Address], chunk_count: int) -> list[tuple[IPv4Address, ...]]:
    """Split queries into at most chunk_count contiguous chunks."""
    size = max(1, -(-len(queries) // max(1, chunk_count)))
    return [tuple(queries[start:start + size]) for start in range(0, len(queries), size)]


def resolve_worker_count(requested: int, query_count: int) -> int:
    """Determine the number of worker processes to use."""
    if requested < 0:
        raise ParseError("--workers must be zero or a positive integer")
    if query_count < 1:
        return 1
    if requested == 0:
        return min(os.cpu_count() or 1, query_count)
    return min(requested, query_count)


def find_matches_parallel(
    catalog: CatalogSnapshot | Iterable[CatalogEntry],
    queries: Iterable[IPv4Address],
    workers: int,
    log_queue: Queue | None = None,
    log_level: str = "info",
) -> ScanResult:
    """Run find_matches over contiguous query chunks in worker processes.

    Chunks are merged in submission order, so the result is identical to a
    single-process scan.
    """
    logger = logging.getLogger(__name__)
    entries = _catalog_entries(catalog)
    query_list = list(queries)
    if workers <= 1 or len(query_list) <= 1:
        return find_matches(entries, query_list)

    chunks = chunk_queries(query_list, workers * 4)
    logger.info("Scanning %s addresses in %s chunks on %s workers", len(query_list), len(chunks), workers)
    context = ScanContext(entries=entries, log_queue=log_queue, log_level=log_level)
    with ProcessPoolExecutor(
        max_workers=workers,
        initializer=_init_worker,
        initargs=(context,),
    ) as executor:
        return merge_results(executor.map(_scan_chunk, chunks))
