"""Tests for containment comparison."""
from __future__ import annotations

import ipaddress
import random

import pytest

from prefix_catalog_search.evaluator import compare, is_within
from prefix_catalog_search.models import Comparison, Direction, IPv4Address, PrefixSpec
from prefix_catalog_search.utils import parse_cidr, parse_ipv4_address


@pytest.mark.parametrize(
    "address, cidr, expected",
    [
        ("10.1.2.3", "10.1.2.0/24", True),
        ("10.1.3.1", "10.1.2.0/24", False),
        ("10.1.2.0", "10.1.2.0/24", True),
        ("10.1.2.255", "10.1.2.0/24", True),
        ("8.8.8.8", "0.0.0.0/0", True),
        ("192.168.1.5", "192.168.1.5/32", True),
        ("192.168.1.6", "192.168.1.5/32", False),
        ("10.1.2.3", "10.1.2.77/24", True),
    ],
)
def test_is_within(address: str, cidr: str, expected: bool):
    """An address is within a prefix when its masked bits equal the network."""
    assert is_within(parse_ipv4_address(address), parse_cidr(cidr)) is expected


def test_compare_two_identical_hosts_is_equivalent():
    """Identical hosts are equivalent; different hosts are unrelated."""
    host = parse_cidr("10.1.2.3/32")
    assert compare(host, parse_cidr("10.1.2.3/32")) == Comparison(True, Direction.EQUIVALENT)
    assert compare(host, parse_cidr("10.1.2.4/32")) == Comparison(False)


def test_compare_blocks_reports_direction_of_first_argument():
    """The broad block contains the narrow one, whichever side it is on."""
    broad = parse_cidr("10.0.0.0/8")
    narrow = parse_cidr("10.20.0.0/16")
    assert compare(broad, narrow) == Comparison(True, Direction.CONTAINS)
    assert compare(narrow, broad) == Comparison(True, Direction.CONTAINED_BY)
    assert compare(broad, parse_cidr("11.0.0.0/16")).related is False


def test_compare_host_and_block():
    """A host is always the narrow side against a block."""
    host = parse_cidr("172.16.5.4")
    block = parse_cidr("172.16.0.0/12")
    assert compare(host, block) == Comparison(True, Direction.CONTAINED_BY)
    assert compare(block, host) == Comparison(True, Direction.CONTAINS)
    assert compare(parse_cidr("172.32.0.1"), block).related is False


def test_compare_equal_length_blocks():
    """Same-length blocks are equivalent only when they share a network."""
    assert compare(parse_cidr("10.1.2.9/24"), parse_cidr("10.1.2.0/24")) == Comparison(True, Direction.EQUIVALENT)
    assert compare(parse_cidr("10.1.3.0/24"), parse_cidr("10.1.2.0/24")).related is False


def test_compare_is_reflexive():
    """Every prefix is equivalent to itself."""
    rng = random.Random(11)
    for _ in range(200):
        spec = PrefixSpec(IPv4Address(rng.getrandbits(32)), rng.randint(0, 32))
        assert compare(spec, spec) == Comparison(True, Direction.EQUIVALENT)


def test_is_within_agrees_with_ipaddress_oracle():
    """Containment matches a standard-library reference for random pairs."""
    rng = random.Random(2024)
    for _ in range(2000):
        length = rng.randint(0, 32)
        base = rng.getrandbits(32)
        # Half the hosts are drawn from inside the block to exercise both outcomes.
        if rng.random() < 0.5:
            host = (base & ~((1 << (32 - length)) - 1)) | rng.getrandbits(32 - length) if length < 32 else base
        else:
            host = rng.getrandbits(32)
        oracle = ipaddress.ip_address(host) in ipaddress.ip_network((base, length), strict=False)
        assert is_within(IPv4Address(host & 0xFFFFFFFF), PrefixSpec(IPv4Address(base), length)) is oracle


def test_nesting_is_transitive():
    """A block containing a block that contains a host also contains the host."""
    rng = random.Random(99)
    for _ in range(300):
        outer_length = rng.randint(0, 29)
        inner_length = rng.randint(outer_length + 1, 30)
        outer = PrefixSpec(IPv4Address(rng.getrandbits(32)), outer_length)
        inner_base = (outer.network_address.value | (rng.getrandbits(32) & outer.wildcard_mask))
        inner = PrefixSpec(IPv4Address(inner_base), inner_length)
        host = IPv4Address(inner.network_address.value | (rng.getrandbits(32) & inner.wildcard_mask))
        assert compare(outer, inner).direction is Direction.CONTAINS
        assert is_within(host, inner)
        assert is_within(host, outer)
