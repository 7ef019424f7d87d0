from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.models import SessionTransaction, TransactionType


def create_transaction(
    db: Session,
    block,
    transaction_type: TransactionType,
    amount: int,
    reason: Optional[str] = None,
    created_by_id: Optional[int] = None,
) -> SessionTransaction:
    """
    Append a ledger entry for one block
    """
    entry = SessionTransaction(
        session_block_id=block.id,
        customer_id=block.customer_id,
        studio_id=block.studio_id,
        transaction_type=transaction_type.value,
        amount=amount,
        reason=reason,
        created_by_id=created_by_id,
    )
    db.add(entry)
    db.flush()
    return entry


def get_customer_transactions(
    db: Session,
    customer_id: int,
    *,
    block_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[SessionTransaction]:
    """
    Ledger entries of a customer, newest first
    """
    query = db.query(SessionTransaction).filter(SessionTransaction.customer_id == customer_id)
    if block_id is not None:
        query = query.filter(SessionTransaction.session_block_id == block_id)
    query = query.order_by(SessionTransaction.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def get_block_transactions(db: Session, block_id: int) -> List[SessionTransaction]:
    return (
        db.query(SessionTransaction)
        .filter(SessionTransaction.session_block_id == block_id)
        .order_by(SessionTransaction.id)
        .all()
    )


def get_studio_transaction_stats(db: Session, studio_id: int, start: datetime, end: datetime) -> Dict[str, int]:
    """
    Ledger totals of a studio for entries created in [start, end)
    """
    tx = SessionTransaction
    row = (
        db.query(
            func.count(tx.id).label("total_transactions"),
            func.count(case((tx.transaction_type == TransactionType.PURCHASE.value, 1))).label("purchases"),
            func.count(case((tx.transaction_type == TransactionType.ADJUSTMENT.value, 1))).label("adjustments"),
            func.count(case((tx.transaction_type == TransactionType.DEDUCTION.value, 1))).label("deductions"),
            func.count(case((tx.transaction_type == TransactionType.REFUND.value, 1))).label("refunds"),
            func.coalesce(func.sum(case(
                (tx.transaction_type.in_([TransactionType.PURCHASE.value, TransactionType.ADJUSTMENT.value]), tx.amount),
                else_=0,
            )), 0).label("sessions_added"),
            func.coalesce(func.sum(case(
                (tx.transaction_type == TransactionType.DEDUCTION.value, -tx.amount),
                else_=0,
            )), 0).label("sessions_deducted"),
            func.coalesce(func.sum(case(
                (tx.transaction_type == TransactionType.REFUND.value, tx.amount),
                else_=0,
            )), 0).label("sessions_refunded"),
        )
        .filter(
            tx.studio_id == studio_id,
            tx.created_at >= start,
            tx.created_at < end,
        )
        .one()
    )
    return dict(row._mapping)
