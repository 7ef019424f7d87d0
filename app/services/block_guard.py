import logging
from typing import Dict

from app.errors.session_block_errors import InvalidState, LedgerInvariantError
from app.models.session_block import BlockStatus

logger = logging.getLogger(__name__)


def check_can_create(total_sessions: int) -> None:
    if total_sessions is None or total_sessions <= 0:
        raise InvalidState("Total sessions must be a positive number", {"total_sessions": total_sessions})


def check_can_delete(block) -> None:
    if block.used_sessions > 0:
        raise InvalidState(
            "Cannot delete block with used sessions. Sessions have already been consumed.",
            {"block_id": block.id, "used_sessions": block.used_sessions},
        )


def check_can_edit(block, total_sessions: int) -> None:
    """Only untouched pending blocks can be changed, and only upwards."""
    if block.status != BlockStatus.PENDING or block.used_sessions > 0:
        raise InvalidState(
            f"Can only edit unused pending session blocks. This block is {block.status}",
            {"block_id": block.id, "status": block.status},
        )
    if total_sessions < block.total_sessions:
        raise InvalidState(
            f"Cannot downgrade from {block.total_sessions} to {total_sessions} sessions",
            {"block_id": block.id, "total_sessions": block.total_sessions},
        )


def check_can_refund(block, sessions_to_refund: int) -> None:
    if sessions_to_refund < 1:
        raise InvalidState("Sessions to refund must be at least 1")
    if block.used_sessions < sessions_to_refund:
        raise InvalidState(
            f"Cannot refund {sessions_to_refund} session(s), only {block.used_sessions} used from block {block.id}",
            {"block_id": block.id, "used_sessions": block.used_sessions, "requested": sessions_to_refund},
        )


def check_single_active(customer_id: int, assignment: Dict[int, BlockStatus]) -> None:
    active_ids = sorted(block_id for block_id, status in assignment.items() if status == BlockStatus.ACTIVE)
    if len(active_ids) > 1:
        logger.error(f"Customer {customer_id} would end up with {len(active_ids)} active blocks: {active_ids}")
        raise LedgerInvariantError(
            "More than one active session block",
            {"customer_id": customer_id, "active_block_ids": active_ids},
        )
