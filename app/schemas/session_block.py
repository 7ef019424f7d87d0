from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.session_block import BlockStatus, PaymentMethod
from app.models.session_transaction import TransactionType


class SessionBlockCreate(BaseModel):
    """Purchase of a new session block"""
    total_sessions: int = Field(..., gt=0, description="Sessions purchased")
    payment_method: PaymentMethod = Field(PaymentMethod.CASH, description="How the block was paid")
    notes: Optional[str] = Field(None, max_length=500)
    purchase_date: Optional[date] = Field(None, description="Defaults to today")


class SessionBlockUpdate(BaseModel):
    """Upgrade of a still pending block"""
    total_sessions: int = Field(..., gt=0)
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = Field(None, max_length=500)


class SessionBlockResponse(BaseModel):
    id: int
    customer_id: int
    studio_id: int
    total_sessions: int
    used_sessions: int
    remaining_sessions: int
    status: BlockStatus
    queue_position: int
    purchase_date: date
    payment_method: PaymentMethod
    notes: Optional[str] = None
    activation_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SessionBlockList(BaseModel):
    """All blocks of a customer plus the active / pending / history split"""
    blocks: List[SessionBlockResponse]
    active: Optional[SessionBlockResponse] = None
    pending: List[SessionBlockResponse]
    history: List[SessionBlockResponse]


class ConsumeSessionsRequest(BaseModel):
    sessions_to_consume: int = Field(..., ge=1, description="Sessions to draw from the queue")
    reason: Optional[str] = Field(None, max_length=200)


class RefundSessionsRequest(BaseModel):
    sessions_to_refund: int = Field(..., ge=1)
    block_id: int = Field(..., description="Block the sessions are returned to")
    reason: Optional[str] = Field(None, max_length=200)


class BlockAllocation(BaseModel):
    block_id: int
    consumed: int
    remaining: int
    status: BlockStatus


class ConsumptionResult(BaseModel):
    consumed_from: int
    new_remaining: int
    rolled_over_to: Optional[int] = None
    consumed: int
    allocations: List[BlockAllocation]
    total_remaining: int


class RefundResult(BaseModel):
    block_id: int
    refunded: int
    new_remaining: int
    status: BlockStatus


class DeletedBlockResponse(BaseModel):
    id: int
    total_sessions: int
    status: BlockStatus
    purchase_date: date
    promoted_block_id: Optional[int] = None


class SessionSummary(BaseModel):
    customer_id: int
    active_block_id: Optional[int] = None
    active_remaining: int
    pending_remaining: int
    total_remaining: int
    total_purchased: int
    total_used: int
    pending_blocks: int
    completed_blocks: int


class SessionTransactionResponse(BaseModel):
    id: int
    session_block_id: int
    customer_id: int
    transaction_type: TransactionType
    amount: int
    reason: Optional[str] = None
    created_by_id: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TransactionStats(BaseModel):
    total_transactions: int
    purchases: int
    adjustments: int
    deductions: int
    refunds: int
    sessions_added: int
    sessions_deducted: int
    sessions_refunded: int


class StudioSessionStats(BaseModel):
    """Ledger activity of a studio over a date window plus its open capacity"""
    studio_id: int
    from_date: date
    to_date: date
    transaction_stats: TransactionStats
    active_blocks_count: int
    total_remaining_sessions: int


class CustomerSessionOverview(BaseModel):
    customer_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    active_block_id: Optional[int] = None
    total_sessions: Optional[int] = None
    remaining_sessions: Optional[int] = None
    purchase_date: Optional[date] = None
    has_active_sessions: bool


class StudioCustomersSessions(BaseModel):
    studio_id: int
    customers: List[CustomerSessionOverview]
