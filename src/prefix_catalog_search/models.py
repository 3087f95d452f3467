"""Core data structures for the prefix catalog search."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


MAX_PREFIX_LENGTH = 32
ALL_ONES = 0xFFFFFFFF


def compute_mask(prefix_length: int) -> int:
    """Return a 32-bit value with the top prefix_length bits set."""
    if not 0 <= prefix_length <= MAX_PREFIX_LENGTH:
        raise ValueError(f"Prefix length out of range: {prefix_length}")
    return (ALL_ONES << (MAX_PREFIX_LENGTH - prefix_length)) & ALL_ONES


@dataclass(frozen=True, order=True)
class IPv4Address:
    """A 32-bit unsigned IPv4 address value."""

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= ALL_ONES:
            raise ValueError(f"IPv4 address value out of range: {self.value}")

    def octets(self) -> tuple[int, int, int, int]:
        """Return the four octets, most significant first."""
        return (
            (self.value >> 24) & 0xFF,
            (self.value >> 16) & 0xFF,
            (self.value >> 8) & 0xFF,
            self.value & 0xFF,
        )

    def __str__(self) -> str:
        return ".".join(str(octet) for octet in self.octets())


@dataclass(frozen=True)
class PrefixSpec:
    """A CIDR network specification; prefix length 32 denotes a single host."""

    base_address: IPv4Address
    prefix_length: int

    def __post_init__(self) -> None:
        if not 0 <= self.prefix_length <= MAX_PREFIX_LENGTH:
            raise ValueError(f"Prefix length out of range: {self.prefix_length}")

    @property
    def is_host(self) -> bool:
        return self.prefix_length == MAX_PREFIX_LENGTH

    @property
    def mask(self) -> int:
        return compute_mask(self.prefix_length)

    @property
    def wildcard_mask(self) -> int:
        return ~self.mask & ALL_ONES

    @property
    def network_address(self) -> IPv4Address:
        return IPv4Address(self.base_address.value & self.mask)

    @property
    def broadcast_address(self) -> IPv4Address:
        return IPv4Address(self.network_address.value | self.wildcard_mask)

    def to_cidr(self) -> str:
        """Render the canonical network form, e.g. 10.1.2.0/24."""
        return f"{self.network_address}/{self.prefix_length}"

    def __str__(self) -> str:
        return f"{self.base_address}/{self.prefix_length}"


@dataclass(frozen=True)
class NetworkInfo:
    """Derived properties of a PrefixSpec."""

    network: IPv4Address
    broadcast: IPv4Address
    netmask: IPv4Address
    wildcard: IPv4Address
    host_min: IPv4Address
    host_max: IPv4Address
    host_count: int


class Direction(str, Enum):
    """How the first network of a comparison relates to the second."""

    CONTAINS = "contains"
    CONTAINED_BY = "contained_by"
    EQUIVALENT = "equivalent"


@dataclass(frozen=True)
class Comparison:
    """Outcome of comparing two network specifications."""

    related: bool
    direction: Optional[Direction] = None


@dataclass(frozen=True)
class CommunityEntry:
    """A community (tag/region/value) with its ordered prefix list."""

    community_name: str
    region: str
    community_value: str
    prefixes: tuple[PrefixSpec, ...] = ()


@dataclass(frozen=True)
class CatalogEntry:
    """A named group of communities, e.g. one tagged service."""

    name: str
    communities: tuple[CommunityEntry, ...] = ()

    @property
    def prefix_count(self) -> int:
        return sum(len(community.prefixes) for community in self.communities)


@dataclass(frozen=True)
class CatalogEntryParseFailure:
    """Records a catalog prefix that could not be parsed and was skipped."""

    entry_name: str
    community_name: str
    prefix: str
    reason: str


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable catalog produced by ingestion, plus its skipped prefixes."""

    entries: tuple[CatalogEntry, ...] = ()
    failures: tuple[CatalogEntryParseFailure, ...] = ()

    @property
    def prefix_count(self) -> int:
        return sum(entry.prefix_count for entry in self.entries)


@dataclass(frozen=True)
class MatchRecord:
    """One (query address, containing prefix) pairing found by a scan."""

    query_address: IPv4Address
    entry_name: str
    community_name: str
    region: str
    community_value: str
    matched_prefix: PrefixSpec

    def as_row(self) -> dict[str, str]:
        """Return the record as a flat row of strings for reporting."""
        return {
            "query_address": str(self.query_address),
            "entry_name": self.entry_name,
            "community_name": self.community_name,
            "region": self.region,
            "community_value": self.community_value,
            "matched_prefix": str(self.matched_prefix),
        }


@dataclass(frozen=True)
class ScanResult:
    """Match records in traversal order plus the addresses with no match."""

    matches: tuple[MatchRecord, ...] = ()
    unmatched: frozenset[IPv4Address] = frozenset()
