"""
Chronological merging of log entry chains.

This module interleaves the snapshots of several stores into a single
oldest-to-newest timeline.

Purpose:
    Every severity level is appended to its own store, independently of the
    others. One store may hold entries newer than another at any moment, so
    the merge is the only place where the levels are reconciled into one
    timeline for display.

Design Decisions:
    - Uses a min-heap holding one cursor per chain, O(n log k)
    - Ties on equal timestamps go to the chain passed first
    - Works on copied snapshots, never on live store state
"""

import heapq
from typing import List, Sequence

from .model import LogEntry


def merge_chains(chains: Sequence[Sequence[LogEntry]]) -> List[LogEntry]:
    """
    Merge several oldest-first entry chains into one oldest-first list.

    Each chain is consumed in its own order; across chains the entry with
    the smallest timestamp is emitted next. Equal timestamps resolve to the
    chain with the lowest index, which keeps the output deterministic.

    Args:
        chains: Entry sequences, each ordered oldest to newest.

    Returns:
        List[LogEntry]: All entries of all chains in chronological order.

    Example:
        >>> merged = merge_chains([debug.entries(), info.entries()])
    """
    # Heap items are (timestamp, chain index, position). The chain index
    # is the tie-breaker, so LogEntry objects are never compared directly.
    heap = [
        (chain[0].timestamp, index, 0)
        for index, chain in enumerate(chains)
        if chain
    ]
    heapq.heapify(heap)

    out = []
    while heap:
        _ts, index, pos = heapq.heappop(heap)
        chain = chains[index]
        out.append(chain[pos])

        # Advance this chain's cursor
        pos += 1
        if pos < len(chain):
            heapq.heappush(heap, (chain[pos].timestamp, index, pos))

    return out
