"""Utility helpers for address parsing, arithmetic and query expansion."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from .models import ALL_ONES, MAX_PREFIX_LENGTH, IPv4Address, NetworkInfo, PrefixSpec, compute_mask


OCTET_PATTERN = re.compile(r"\d{1,3}", re.ASCII)
PREFIX_LENGTH_PATTERN = re.compile(r"\d{1,2}", re.ASCII)
RANGE_PATTERN = re.compile(r"(?P<start>[^-]+)-(?P<end>[^-]+)")


@dataclass(frozen=True)
class QueryOptions:
    """Limits applied when expanding query tokens into addresses."""

    max_hosts: int = 65536


class ParseError(ValueError):
    """Raised when parsing input data fails."""


class InvalidAddressFormat(ParseError):
    """Raised when text is not four dot-separated decimal octets in 0-255."""


class InvalidPrefixLength(ParseError):
    """Raised when a CIDR suffix is not an integer in 0-32."""


def parse_ipv4_address(value: str) -> IPv4Address:
    """Parse a dotted-quad IPv4 address, raising InvalidAddressFormat on failure."""
    if not isinstance(value, str):
        raise InvalidAddressFormat(f"Invalid IPv4 address: {value!r}")
    parts = value.strip().split(".")
    if len(parts) != 4:
        raise InvalidAddressFormat(f"Invalid IPv4 address: {value}")
    number = 0
    for part in parts:
        if not OCTET_PATTERN.fullmatch(part):
            raise InvalidAddressFormat(f"Invalid IPv4 address: {value}")
        octet = int(part)
        if octet > 255:
            raise InvalidAddressFormat(f"Octet out of range in IPv4 address: {value}")
        number = (number << 8) | octet
    return IPv4Address(number)


def parse_prefix_length(value: str) -> int:
    """Parse a CIDR suffix, raising InvalidPrefixLength on failure."""
    text = value.strip()
    if not PREFIX_LENGTH_PATTERN.fullmatch(text):
        raise InvalidPrefixLength(f"Invalid prefix length: {value}")
    length = int(text)
    if length > MAX_PREFIX_LENGTH:
        raise InvalidPrefixLength(f"Prefix length out of range: {value}")
    return length


def parse_cidr(value: str) -> PrefixSpec:
    """Parse a.b.c.d/n into a PrefixSpec; a bare address is treated as /32."""
    if not isinstance(value, str):
        raise InvalidAddressFormat(f"Invalid IPv4 CIDR: {value!r}")
    address_text, separator, length_text = value.strip().partition("/")
    address = parse_ipv4_address(address_text)
    if not separator:
        return PrefixSpec(base_address=address, prefix_length=MAX_PREFIX_LENGTH)
    return PrefixSpec(base_address=address, prefix_length=parse_prefix_length(length_text))


def network_info(spec: PrefixSpec) -> NetworkInfo:
    """Compute network, broadcast, wildcard and usable host range for a spec.

    When fewer than two usable hosts remain (/31 and /32) the range collapses
    to the input address itself, not the computed network address.
    """
    mask = compute_mask(spec.prefix_length)
    wildcard = ~mask & ALL_ONES
    network = spec.base_address.value & mask
    broadcast = network | wildcard
    usable = broadcast - network - 1
    if usable <= 1:
        host_min = host_max = spec.base_address
        host_count = 1
    else:
        host_min = IPv4Address(network + 1)
        host_max = IPv4Address(broadcast - 1)
        host_count = usable
    return NetworkInfo(
        network=IPv4Address(network),
        broadcast=IPv4Address(broadcast),
        netmask=IPv4Address(mask),
        wildcard=IPv4Address(wildcard),
        host_min=host_min,
        host_max=host_max,
        host_count=host_count,
    )


def host_spec(address: IPv4Address) -> PrefixSpec:
    """Wrap a single address as a /32 PrefixSpec."""
    return PrefixSpec(base_address=address, prefix_length=MAX_PREFIX_LENGTH)


def expand_query(value: str, options: QueryOptions = QueryOptions()) -> list[IPv4Address]:
    """Expand a query token (address, start-end range or CIDR) into addresses."""
    text = value.strip()
    range_match = RANGE_PATTERN.fullmatch(text)
    if "/" in text:
        spec = parse_cidr(text)
        start = spec.network_address
        end = spec.broadcast_address
    elif range_match:
        start = parse_ipv4_address(range_match.group("start"))
        end = parse_ipv4_address(range_match.group("end"))
        if start > end:
            raise ParseError(f"Invalid address range: {value}")
    elif "-" in text:
        raise ParseError(f"Invalid address range: {value}")
    else:
        return [parse_ipv4_address(text)]
    count = end.value - start.value + 1
    if count > options.max_hosts:
        raise ParseError(f"Query {value} expands to {count} addresses (max {options.max_hosts})")
    return [IPv4Address(number) for number in range(start.value, end.value + 1)]


def parse_queries_file(lines: Iterable[str], options: QueryOptions = QueryOptions()) -> list[IPv4Address]:
    """Parse a queries file with one address, range or CIDR per line."""
    addresses: list[IPv4Address] = []
    for raw_line in lines:
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue
        addresses.extend(expand_query(line, options))
    return addresses


def split_members(raw_value: object) -> list[str]:
    """Split member lists on newlines and commas."""
    if not raw_value:
        return []
    members = []
    for line in str(raw_value).splitlines():
        for part in line.split(","):
            member = part.strip()
            if member:
                members.append(member)
    return members
