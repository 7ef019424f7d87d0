import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy.orm import Session

from app.crud import customer as customer_crud
from app.crud import session_block as crud
from app.crud import session_transaction as transaction_crud
from app.database import transactional
from app.errors.session_block_errors import (
    InvalidState,
    InsufficientSessions,
    LedgerInvariantError,
    NoActiveBlock,
    NotFound,
)
from app.models import BlockStatus, Customer, SessionBlock, SessionTransaction, TransactionType
from app.schemas.session_block import (
    BlockAllocation,
    ConsumptionResult,
    DeletedBlockResponse,
    RefundResult,
    SessionBlockCreate,
    SessionBlockUpdate,
    SessionSummary,
)
from app.services import block_guard
from app.services.customer_lock import CustomerLockRegistry, customer_locks
from app.services.queue_policy import assign_block_statuses, find_active, total_capacity

logger = logging.getLogger(__name__)


class SessionLedgerService:
    """
    Purchases, consumption, refunds and removal of a customer's session blocks.

    Every mutating call holds the customer's lock and runs in one database
    transaction; the queue ordering policy is re-applied before commit.
    """

    def __init__(self, db: Session, locks: Optional[CustomerLockRegistry] = None):
        self.db = db
        self.locks = locks or customer_locks

    # --- Public Methods (Transactional) ---

    def create_session_block(
        self,
        customer_id: int,
        block_data: SessionBlockCreate,
        created_by_id: Optional[int] = None,
    ) -> SessionBlock:
        """Opens a new block at the back of the customer's queue."""
        with self._customer_unit_of_work(customer_id) as (session, customer):
            return self._create_block_logic(session, customer, block_data, created_by_id)

    def consume_sessions(
        self,
        customer_id: int,
        studio_id: int,
        sessions_to_consume: int,
        reason: Optional[str] = None,
        created_by_id: Optional[int] = None,
    ) -> ConsumptionResult:
        """Draws sessions from the active block, rolling over to queued blocks as they run out."""
        with self._customer_unit_of_work(customer_id) as (session, customer):
            if customer.studio_id != studio_id:
                raise NotFound(f"Customer {customer_id} not found in studio {studio_id}")
            return self._consume_logic(session, customer, sessions_to_consume, reason, created_by_id)

    def refund_sessions(
        self,
        customer_id: int,
        block_id: int,
        sessions_to_refund: int,
        reason: Optional[str] = None,
        created_by_id: Optional[int] = None,
    ) -> RefundResult:
        """Returns consumed sessions to one specific block."""
        with self._customer_unit_of_work(customer_id) as (session, customer):
            return self._refund_logic(session, customer, block_id, sessions_to_refund, reason, created_by_id)

    def delete_session_block(self, customer_id: int, block_id: int) -> DeletedBlockResponse:
        """Removes an untouched block and promotes the next one if it was active."""
        with self._customer_unit_of_work(customer_id) as (session, customer):
            return self._delete_logic(session, customer, block_id)

    def update_pending_block(
        self,
        customer_id: int,
        block_id: int,
        update_data: SessionBlockUpdate,
        created_by_id: Optional[int] = None,
    ) -> SessionBlock:
        """Upgrades an untouched pending block."""
        with self._customer_unit_of_work(customer_id) as (session, customer):
            return self._update_pending_logic(session, customer, block_id, update_data, created_by_id)

    # --- Reads ---

    def list_session_blocks(self, customer_id: int) -> List[SessionBlock]:
        self._get_customer_or_raise(self.db, customer_id)
        return crud.get_customer_session_blocks(self.db, customer_id)

    def get_session_block(self, customer_id: int, block_id: int) -> SessionBlock:
        self._get_customer_or_raise(self.db, customer_id)
        block = crud.get_session_block(self.db, block_id)
        if not block or block.customer_id != customer_id:
            raise NotFound(
                f"Session block {block_id} not found for customer {customer_id}",
                {"customer_id": customer_id, "block_id": block_id},
            )
        return block

    def get_session_summary(self, customer_id: int) -> SessionSummary:
        self._get_customer_or_raise(self.db, customer_id)
        blocks = crud.get_customer_session_blocks(self.db, customer_id)
        active = find_active(blocks)
        pending = [b for b in blocks if b.status == BlockStatus.PENDING]
        return SessionSummary(
            customer_id=customer_id,
            active_block_id=active.id if active else None,
            active_remaining=active.remaining_sessions if active else 0,
            pending_remaining=sum(b.remaining_sessions for b in pending),
            total_remaining=total_capacity(blocks),
            total_purchased=sum(b.total_sessions for b in blocks),
            total_used=sum(b.used_sessions for b in blocks),
            pending_blocks=len(pending),
            completed_blocks=sum(1 for b in blocks if b.status == BlockStatus.COMPLETED),
        )

    def get_transactions(
        self,
        customer_id: int,
        block_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[SessionTransaction]:
        self._get_customer_or_raise(self.db, customer_id)
        return transaction_crud.get_customer_transactions(self.db, customer_id, block_id=block_id, limit=limit)

    # --- Private Logic Methods (Non-Transactional) ---

    @contextmanager
    def _customer_unit_of_work(self, customer_id: int):
        with self.locks.hold(customer_id):
            with transactional(self.db) as session:
                customer = customer_crud.lock_customer(session, customer_id)
                if not customer:
                    raise NotFound(f"Customer {customer_id} not found", {"customer_id": customer_id})
                yield session, customer

    def _get_customer_or_raise(self, session: Session, customer_id: int) -> Customer:
        customer = customer_crud.get_customer(session, customer_id)
        if not customer:
            raise NotFound(f"Customer {customer_id} not found", {"customer_id": customer_id})
        return customer

    def _rebalance(self, session: Session, customer_id: int, blocks: List[SessionBlock]) -> List[SessionBlock]:
        assignment = assign_block_statuses(blocks)
        block_guard.check_single_active(customer_id, assignment)
        promoted = crud.apply_status_assignment(session, blocks, assignment)
        for block in promoted:
            logger.info(f"Activated session block {block.id} for customer {customer_id}")
        return promoted

    def _find_block(self, blocks: List[SessionBlock], customer_id: int, block_id: int) -> SessionBlock:
        for block in blocks:
            if block.id == block_id:
                return block
        raise NotFound(
            f"Session block {block_id} not found for customer {customer_id}",
            {"customer_id": customer_id, "block_id": block_id},
        )

    def _create_block_logic(
        self,
        session: Session,
        customer: Customer,
        block_data: SessionBlockCreate,
        created_by_id: Optional[int],
    ) -> SessionBlock:
        block_guard.check_can_create(block_data.total_sessions)

        block = crud.create_session_block(
            session,
            customer_id=customer.id,
            studio_id=customer.studio_id,
            total_sessions=block_data.total_sessions,
            payment_method=block_data.payment_method,
            notes=block_data.notes,
            purchase_date=block_data.purchase_date,
        )
        transaction_crud.create_transaction(
            session,
            block,
            TransactionType.PURCHASE,
            block.total_sessions,
            reason=block_data.notes or f"Purchased {block.total_sessions} session block",
            created_by_id=created_by_id,
        )

        blocks = crud.get_blocks_for_update(session, customer.id, customer.studio_id)
        self._rebalance(session, customer.id, blocks)

        logger.info(
            f"Created session block {block.id} ({block.total_sessions} sessions, {block.status}) "
            f"for customer {customer.id} at queue position {block.queue_position}"
        )
        return block

    def _consume_logic(
        self,
        session: Session,
        customer: Customer,
        sessions_to_consume: int,
        reason: Optional[str],
        created_by_id: Optional[int],
    ) -> ConsumptionResult:
        if sessions_to_consume < 1:
            raise InvalidState("Sessions to consume must be at least 1")

        blocks = crud.get_blocks_for_update(session, customer.id, customer.studio_id)
        self._rebalance(session, customer.id, blocks)

        active = find_active(blocks)
        if active is None:
            logger.warning(f"Customer {customer.id} has no active session block, requested {sessions_to_consume}")
            raise NoActiveBlock(sessions_to_consume)

        available = total_capacity(blocks)
        if sessions_to_consume > available:
            logger.warning(
                f"Customer {customer.id} requested {sessions_to_consume} session(s), only {available} available"
            )
            raise InsufficientSessions(sessions_to_consume, available)

        consumed_from = active.id
        touched = []
        left = sessions_to_consume
        while left > 0:
            active = find_active(blocks)
            if active is None:
                raise LedgerInvariantError(
                    "Ran out of active blocks while capacity remained",
                    {"customer_id": customer.id, "left": left},
                )
            take = min(left, active.remaining_sessions)
            active.used_sessions = active.used_sessions + take
            left -= take
            transaction_crud.create_transaction(
                session,
                active,
                TransactionType.DEDUCTION,
                -take,
                reason=reason,
                created_by_id=created_by_id,
            )
            touched.append((active, take))
            if active.remaining_sessions == 0:
                self._rebalance(session, customer.id, blocks)

        last_block = touched[-1][0]
        now_active = find_active(blocks)
        rolled_over_to = now_active.id if now_active is not None and now_active.id != consumed_from else None
        if rolled_over_to:
            logger.info(f"Customer {customer.id} rolled over from block {consumed_from} to block {rolled_over_to}")

        logger.info(
            f"Customer {customer.id} consumed {sessions_to_consume} session(s) across {len(touched)} block(s)"
            + (f". Reason: {reason}" if reason else "")
        )

        return ConsumptionResult(
            consumed_from=consumed_from,
            new_remaining=last_block.remaining_sessions,
            rolled_over_to=rolled_over_to,
            consumed=sessions_to_consume,
            allocations=[
                BlockAllocation(
                    block_id=block.id,
                    consumed=take,
                    remaining=block.remaining_sessions,
                    status=block.status,
                )
                for block, take in touched
            ],
            total_remaining=total_capacity(blocks),
        )

    def _refund_logic(
        self,
        session: Session,
        customer: Customer,
        block_id: int,
        sessions_to_refund: int,
        reason: Optional[str],
        created_by_id: Optional[int],
    ) -> RefundResult:
        blocks = crud.get_blocks_for_update(session, customer.id, customer.studio_id)
        block = self._find_block(blocks, customer.id, block_id)
        block_guard.check_can_refund(block, sessions_to_refund)

        block.used_sessions = block.used_sessions - sessions_to_refund
        if block.status == BlockStatus.COMPLETED:
            # Reopened blocks rejoin the queue, the policy decides if they become active
            block.status = BlockStatus.PENDING
        transaction_crud.create_transaction(
            session,
            block,
            TransactionType.REFUND,
            sessions_to_refund,
            reason=reason,
            created_by_id=created_by_id,
        )
        self._rebalance(session, customer.id, blocks)

        logger.info(
            f"Refunded {sessions_to_refund} session(s) to block {block.id} of customer {customer.id}, "
            f"{block.remaining_sessions} remaining, status {block.status}"
        )
        return RefundResult(
            block_id=block.id,
            refunded=sessions_to_refund,
            new_remaining=block.remaining_sessions,
            status=block.status,
        )

    def _delete_logic(self, session: Session, customer: Customer, block_id: int) -> DeletedBlockResponse:
        blocks = crud.get_blocks_for_update(session, customer.id, customer.studio_id)
        block = self._find_block(blocks, customer.id, block_id)
        block_guard.check_can_delete(block)

        deleted = DeletedBlockResponse(
            id=block.id,
            total_sessions=block.total_sessions,
            status=block.status,
            purchase_date=block.purchase_date,
        )
        crud.delete_session_block(session, block)

        promoted = self._rebalance(session, customer.id, [b for b in blocks if b.id != block_id])
        if promoted:
            deleted.promoted_block_id = promoted[0].id

        logger.info(
            f"Deleted session block {block_id} ({deleted.total_sessions} sessions, {deleted.status}) "
            f"of customer {customer.id}"
        )
        return deleted

    def _update_pending_logic(
        self,
        session: Session,
        customer: Customer,
        block_id: int,
        update_data: SessionBlockUpdate,
        created_by_id: Optional[int],
    ) -> SessionBlock:
        blocks = crud.get_blocks_for_update(session, customer.id, customer.studio_id)
        block = self._find_block(blocks, customer.id, block_id)
        block_guard.check_can_edit(block, update_data.total_sessions)

        delta = update_data.total_sessions - block.total_sessions
        crud.update_session_block(session, block, **update_data.model_dump(exclude_unset=True, exclude_none=True))
        if delta > 0:
            transaction_crud.create_transaction(
                session,
                block,
                TransactionType.ADJUSTMENT,
                delta,
                reason=f"Pending block upgraded to {block.total_sessions} sessions",
                created_by_id=created_by_id,
            )

        logger.info(f"Updated pending session block {block.id} of customer {customer.id} (+{delta} sessions)")
        return block
