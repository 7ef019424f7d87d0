"""
Queue ordering policy for a customer's session blocks.

Pure functions: they read ``id``, ``queue_position``, ``status`` and
``remaining_sessions`` from whatever block objects they are given and never
touch the database. The ledger service applies the returned assignment.
"""

from typing import Dict, Iterable, List, Optional

from app.models.session_block import BlockStatus


def queue_key(block):
    return (block.queue_position, block.id)


def sort_queue(blocks: Iterable) -> List:
    """Blocks in consumption order: queue position, then id."""
    return sorted(blocks, key=queue_key)


def assign_block_statuses(blocks: Iterable) -> Dict[int, BlockStatus]:
    """
    Map every block id to the status it should hold.

    - completed blocks stay completed and are left out of the ranking;
    - any other block with no remaining sessions becomes completed;
    - an active block that still has capacity keeps its status, so a
      refunded block never overtakes the block currently drawn down;
    - otherwise the first block in queue order becomes active;
    - everything else is pending.

    Deterministic for a given input and idempotent: feeding the result back
    in produces the same assignment.
    """
    assignment: Dict[int, BlockStatus] = {}
    candidates = []

    for block in blocks:
        if block.status == BlockStatus.COMPLETED or block.remaining_sessions <= 0:
            assignment[block.id] = BlockStatus.COMPLETED
        else:
            candidates.append(block)

    candidates = sort_queue(candidates)

    incumbent = next((b for b in candidates if b.status == BlockStatus.ACTIVE), None)
    active = incumbent if incumbent is not None else next_in_queue(candidates)

    for block in candidates:
        assignment[block.id] = BlockStatus.ACTIVE if block is active else BlockStatus.PENDING

    return assignment


def find_active(blocks: Iterable) -> Optional[object]:
    """The block currently marked active, if any."""
    for block in blocks:
        if block.status == BlockStatus.ACTIVE:
            return block
    return None


def next_in_queue(blocks: Iterable) -> Optional[object]:
    """The block the policy would activate if nothing were active."""
    candidates = [b for b in blocks if b.status != BlockStatus.COMPLETED and b.remaining_sessions > 0]
    return sort_queue(candidates)[0] if candidates else None


def total_capacity(blocks: Iterable) -> int:
    """Sessions still available across all non-completed blocks."""
    return sum(b.remaining_sessions for b in blocks if b.status != BlockStatus.COMPLETED)
