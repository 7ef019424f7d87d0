from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.models import BlockStatus, SessionBlock


# =============================================================================
# READS
# =============================================================================

def get_session_block(db: Session, block_id: int) -> Optional[SessionBlock]:
    """
    Session block by id
    """
    return db.query(SessionBlock).filter(SessionBlock.id == block_id).first()


def get_customer_session_blocks(db: Session, customer_id: int) -> List[SessionBlock]:
    """
    All blocks of a customer in display order:
    active first, then pending by queue position, then completed newest purchase first
    """
    status_rank = case(
        (SessionBlock.status == BlockStatus.ACTIVE.value, 0),
        (SessionBlock.status == BlockStatus.PENDING.value, 1),
        else_=2,
    )
    pending_position = case(
        (SessionBlock.status == BlockStatus.PENDING.value, SessionBlock.queue_position),
        else_=0,
    )
    completed_age = case(
        (SessionBlock.status == BlockStatus.COMPLETED.value, SessionBlock.purchase_date),
        else_=None,
    )
    return (
        db.query(SessionBlock)
        .filter(SessionBlock.customer_id == customer_id)
        .order_by(status_rank, pending_position, completed_age.desc(), SessionBlock.id)
        .all()
    )


def get_blocks_for_update(db: Session, customer_id: int, studio_id: int) -> List[SessionBlock]:
    """
    Block set of one customer in a studio, queue ordered and row locked
    """
    return (
        db.query(SessionBlock)
        .filter(
            SessionBlock.customer_id == customer_id,
            SessionBlock.studio_id == studio_id,
        )
        .order_by(SessionBlock.queue_position, SessionBlock.id)
        .with_for_update()
        .populate_existing()
        .all()
    )


def get_studio_open_blocks(db: Session, studio_id: int) -> List[SessionBlock]:
    """
    Blocks of a studio that still take part in the queue (active or pending)
    """
    return (
        db.query(SessionBlock)
        .filter(
            SessionBlock.studio_id == studio_id,
            SessionBlock.status != BlockStatus.COMPLETED.value,
        )
        .all()
    )


def next_queue_position(db: Session, customer_id: int, studio_id: int) -> int:
    current = db.query(func.max(SessionBlock.queue_position)).filter(
        SessionBlock.customer_id == customer_id,
        SessionBlock.studio_id == studio_id,
    ).scalar()
    return (current or 0) + 1


# =============================================================================
# WRITES (no commit here, the service owns the transaction)
# =============================================================================

def create_session_block(
    db: Session,
    customer_id: int,
    studio_id: int,
    total_sessions: int,
    payment_method: str,
    notes: Optional[str] = None,
    purchase_date: Optional[date] = None,
) -> SessionBlock:
    """
    Insert a pending block at the back of the customer's queue
    """
    block = SessionBlock(
        customer_id=customer_id,
        studio_id=studio_id,
        total_sessions=total_sessions,
        used_sessions=0,
        status=BlockStatus.PENDING,
        queue_position=next_queue_position(db, customer_id, studio_id),
        purchase_date=purchase_date or date.today(),
        payment_method=payment_method,
        notes=notes,
    )
    db.add(block)
    db.flush()
    return block


def update_session_block(db: Session, block: SessionBlock, **fields) -> SessionBlock:
    for key, value in fields.items():
        setattr(block, key, value)
    db.flush()
    return block


def delete_session_block(db: Session, block: SessionBlock) -> None:
    db.delete(block)
    db.flush()


def apply_status_assignment(
    db: Session,
    blocks: List[SessionBlock],
    assignment: Dict[int, BlockStatus],
) -> List[SessionBlock]:
    """
    Write a status assignment. Demotions are flushed before promotions so
    the single-active index never sees two active rows.
    Returns the blocks that were promoted to active.
    """
    demoted, promoted = [], []
    for block in blocks:
        target = assignment.get(block.id)
        if target is None or block.status == target:
            continue
        if target == BlockStatus.ACTIVE:
            promoted.append(block)
        else:
            demoted.append(block)

    for block in demoted:
        block.status = assignment[block.id]
    if demoted:
        db.flush()

    now = datetime.now(timezone.utc)
    for block in promoted:
        block.status = BlockStatus.ACTIVE
        block.activation_date = now
    if promoted:
        db.flush()

    return promoted
