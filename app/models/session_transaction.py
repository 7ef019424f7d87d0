from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base


class TransactionType(str, Enum):
    """Kinds of ledger entries written against a session block"""
    PURCHASE = "purchase"  # block created, +total
    DEDUCTION = "deduction"  # sessions consumed, -n
    REFUND = "refund"  # consumption reversed, +n
    ADJUSTMENT = "adjustment"  # pending block upgraded, +delta


class SessionTransaction(Base):
    """Append-only ledger of session movements per block"""
    __tablename__ = "session_transactions"
    __table_args__ = (
        Index("ix_session_transactions_studio_created", "studio_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    session_block_id = Column(Integer, ForeignKey("session_blocks.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    studio_id = Column(Integer, ForeignKey("studios.id"), nullable=False)
    transaction_type = Column(String(16), nullable=False)
    amount = Column(Integer, nullable=False)  # signed delta
    reason = Column(String, nullable=True)
    created_by_id = Column(Integer, nullable=True)  # id from the caller's token
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    session_block = relationship("SessionBlock", back_populates="transactions")

    def __repr__(self):
        return f"<SessionTransaction(id={self.id}, block={self.session_block_id}, type={self.transaction_type}, amount={self.amount})>"
