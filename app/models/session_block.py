from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship, validates

from app.database import Base


class BlockStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"


def _utcnow():
    return datetime.now(timezone.utc)


class SessionBlock(Base):
    """A purchased package of sessions, drawn down in queue order."""
    __tablename__ = "session_blocks"
    __table_args__ = (
        CheckConstraint("total_sessions > 0", name="ck_session_blocks_total_positive"),
        CheckConstraint("used_sessions >= 0 AND used_sessions <= total_sessions", name="ck_session_blocks_used_range"),
        CheckConstraint("status IN ('pending', 'active', 'completed')", name="ck_session_blocks_status"),
        Index("ix_session_blocks_queue", "customer_id", "studio_id", "queue_position"),
        # At most one active block per customer and studio
        Index(
            "uq_session_blocks_single_active",
            "customer_id",
            "studio_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    studio_id = Column(Integer, ForeignKey("studios.id"), nullable=False)

    total_sessions = Column(Integer, nullable=False)
    used_sessions = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default=BlockStatus.PENDING.value)
    queue_position = Column(Integer, nullable=False)

    purchase_date = Column(Date, nullable=False, default=date.today)
    payment_method = Column(String(16), nullable=False, default=PaymentMethod.CASH.value)
    notes = Column(Text, nullable=True)
    activation_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # Relationships
    customer = relationship("Customer", back_populates="session_blocks")
    studio = relationship("Studio")
    transactions = relationship(
        "SessionTransaction",
        back_populates="session_block",
        cascade="all, delete-orphan",
        order_by="SessionTransaction.id",
    )

    @hybrid_property
    def remaining_sessions(self):
        return self.total_sessions - (self.used_sessions or 0)

    @remaining_sessions.expression
    def remaining_sessions(cls):
        return cls.total_sessions - cls.used_sessions

    @validates("total_sessions")
    def validate_total_sessions(self, key, value):
        if value is None or value <= 0:
            raise ValueError("Total sessions must be a positive number")
        if self.used_sessions is not None and self.used_sessions > value:
            raise ValueError("Total sessions cannot be lower than used sessions")
        return value

    @validates("used_sessions")
    def validate_used_sessions(self, key, value):
        if value is None or value < 0:
            raise ValueError("Used sessions cannot be negative")
        if self.total_sessions is not None and value > self.total_sessions:
            raise ValueError("Used sessions cannot exceed total sessions")
        return value

    @validates("status")
    def validate_status(self, key, value):
        return BlockStatus(value).value

    @validates("payment_method")
    def validate_payment_method(self, key, value):
        return PaymentMethod(value).value

    def __repr__(self):
        return (
            f"<SessionBlock(id={self.id}, customer_id={self.customer_id}, status={self.status}, "
            f"used={self.used_sessions}/{self.total_sessions}, queue_position={self.queue_position})>"
        )
