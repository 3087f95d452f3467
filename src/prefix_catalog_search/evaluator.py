"""Containment evaluation between network specifications."""
from __future__ import annotations

import logging

from .models import Comparison, Direction, IPv4Address, PrefixSpec
from .utils import host_spec


_UNRELATED = Comparison(related=False)


def _contains(broad: PrefixSpec, narrow: PrefixSpec) -> bool:
    """Return True if narrow's base address falls inside broad's network."""
    return (narrow.base_address.value & broad.mask) == broad.network_address.value


def compare(a: PrefixSpec, b: PrefixSpec) -> Comparison:
    """Compare two network specifications and report how a relates to b.

    Blocks are ordered by prefix length: the one with the longer prefix is the
    narrow side and is tested against the broad side's mask. A bare host is
    always the narrow side. Two hosts are related only when identical, and two
    blocks of the same length only when they share a network.
    """
    if a.is_host and b.is_host:
        if a.base_address == b.base_address:
            return Comparison(related=True, direction=Direction.EQUIVALENT)
        return _UNRELATED

    if a.prefix_length == b.prefix_length:
        if _contains(b, a):
            return Comparison(related=True, direction=Direction.EQUIVALENT)
        return _UNRELATED

    if a.prefix_length < b.prefix_length:
        broad, narrow, direction = a, b, Direction.CONTAINS
    else:
        broad, narrow, direction = b, a, Direction.CONTAINED_BY
    if _contains(broad, narrow):
        return Comparison(related=True, direction=direction)
    return _UNRELATED


def is_within(host: IPv4Address, candidate: PrefixSpec) -> bool:
    """Return True if the host address lies inside the candidate prefix."""
    result = compare(host_spec(host), candidate)
    if result.related and result.direction in (Direction.CONTAINED_BY, Direction.EQUIVALENT):
        logging.getLogger(__name__).debug("Address %s is within %s", host, candidate)
        return True
    return False
