import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth.permissions import STUDIO_STAFF, ensure_studio_access, get_current_user
from app.dependencies import get_db
from app.errors.http import to_http_exception
from app.errors.session_block_errors import SessionBlockError
from app.models import BlockStatus, Customer
from app.schemas.session_block import (
    ConsumeSessionsRequest,
    ConsumptionResult,
    DeletedBlockResponse,
    RefundResult,
    RefundSessionsRequest,
    SessionBlockCreate,
    SessionBlockList,
    SessionBlockResponse,
    SessionBlockUpdate,
    SessionSummary,
    SessionTransactionResponse,
)
from app.services.customer_service import CustomerService
from app.services.session_ledger import SessionLedgerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["Session Blocks"])


def _authorized_customer(db: Session, customer_id: int, current_user: dict, allow_self: bool = False) -> Customer:
    try:
        customer = CustomerService(db).get_customer(customer_id)
    except SessionBlockError as e:
        raise to_http_exception(e)
    ensure_studio_access(current_user, customer.studio_id, customer_id if allow_self else None)
    return customer


# Purchase a new session block
@router.post("/{customer_id}/sessions", response_model=SessionBlockResponse, status_code=status.HTTP_201_CREATED)
def create_session_block_endpoint(
        customer_id: int,
        block_data: SessionBlockCreate,
        current_user=Depends(get_current_user(STUDIO_STAFF)),
        db: Session = Depends(get_db),
):
    _authorized_customer(db, customer_id, current_user)
    service = SessionLedgerService(db)
    try:
        return service.create_session_block(customer_id, block_data, created_by_id=current_user["id"])
    except SessionBlockError as e:
        raise to_http_exception(e)


# Consume sessions from the active block (with rollover)
@router.post("/{customer_id}/consume-sessions", response_model=ConsumptionResult)
def consume_sessions_endpoint(
        customer_id: int,
        request: ConsumeSessionsRequest,
        current_user=Depends(get_current_user(STUDIO_STAFF)),
        db: Session = Depends(get_db),
):
    customer = _authorized_customer(db, customer_id, current_user)
    service = SessionLedgerService(db)
    try:
        return service.consume_sessions(
            customer_id,
            customer.studio_id,
            request.sessions_to_consume,
            reason=request.reason,
            created_by_id=current_user["id"],
        )
    except SessionBlockError as e:
        raise to_http_exception(e)


# Refund sessions to a specific block
@router.post("/{customer_id}/refund-sessions", response_model=RefundResult)
def refund_sessions_endpoint(
        customer_id: int,
        request: RefundSessionsRequest,
        current_user=Depends(get_current_user(STUDIO_STAFF)),
        db: Session = Depends(get_db),
):
    _authorized_customer(db, customer_id, current_user)
    service = SessionLedgerService(db)
    try:
        return service.refund_sessions(
            customer_id,
            request.block_id,
            request.sessions_to_refund,
            reason=request.reason,
            created_by_id=current_user["id"],
        )
    except SessionBlockError as e:
        raise to_http_exception(e)


@router.get("/{customer_id}/session-blocks", response_model=SessionBlockList)
def get_session_blocks_endpoint(
        customer_id: int,
        current_user=Depends(get_current_user()),
        db: Session = Depends(get_db),
):
    """
    All session blocks of a customer, split into active / pending / history.
    """
    _authorized_customer(db, customer_id, current_user, allow_self=True)
    service = SessionLedgerService(db)
    try:
        blocks = service.list_session_blocks(customer_id)
    except SessionBlockError as e:
        raise to_http_exception(e)

    items = [SessionBlockResponse.model_validate(block) for block in blocks]
    return SessionBlockList(
        blocks=items,
        active=next((b for b in items if b.status == BlockStatus.ACTIVE), None),
        pending=[b for b in items if b.status == BlockStatus.PENDING],
        history=[b for b in items if b.status == BlockStatus.COMPLETED],
    )


@router.get("/{customer_id}/session-blocks/{block_id}", response_model=SessionBlockResponse)
def get_session_block_endpoint(
        customer_id: int,
        block_id: int,
        current_user=Depends(get_current_user()),
        db: Session = Depends(get_db),
):
    _authorized_customer(db, customer_id, current_user, allow_self=True)
    try:
        return SessionLedgerService(db).get_session_block(customer_id, block_id)
    except SessionBlockError as e:
        raise to_http_exception(e)


# Upgrade a pending block
@router.put("/{customer_id}/session-blocks/{block_id}", response_model=SessionBlockResponse)
def update_pending_block_endpoint(
        customer_id: int,
        block_id: int,
        update_data: SessionBlockUpdate,
        current_user=Depends(get_current_user(STUDIO_STAFF)),
        db: Session = Depends(get_db),
):
    _authorized_customer(db, customer_id, current_user)
    service = SessionLedgerService(db)
    try:
        return service.update_pending_block(customer_id, block_id, update_data, created_by_id=current_user["id"])
    except SessionBlockError as e:
        raise to_http_exception(e)


# Delete an untouched block
@router.delete("/{customer_id}/session-blocks/{block_id}", response_model=DeletedBlockResponse)
def delete_session_block_endpoint(
        customer_id: int,
        block_id: int,
        current_user=Depends(get_current_user(STUDIO_STAFF)),
        db: Session = Depends(get_db),
):
    _authorized_customer(db, customer_id, current_user)
    service = SessionLedgerService(db)
    try:
        deleted = service.delete_session_block(customer_id, block_id)
    except SessionBlockError as e:
        raise to_http_exception(e)
    logger.info(f"Session block {block_id} of customer {customer_id} deleted by user {current_user['id']}")
    return deleted


@router.get("/{customer_id}/session-summary", response_model=SessionSummary)
def get_session_summary_endpoint(
        customer_id: int,
        current_user=Depends(get_current_user()),
        db: Session = Depends(get_db),
):
    _authorized_customer(db, customer_id, current_user, allow_self=True)
    try:
        return SessionLedgerService(db).get_session_summary(customer_id)
    except SessionBlockError as e:
        raise to_http_exception(e)


@router.get("/{customer_id}/session-transactions", response_model=List[SessionTransactionResponse])
def get_session_transactions_endpoint(
        customer_id: int,
        block_id: Optional[int] = None,
        limit: Optional[int] = Query(None, ge=1, le=500),
        current_user=Depends(get_current_user()),
        db: Session = Depends(get_db),
):
    """
    Ledger of session movements, newest first.

    Args:
        block_id: only entries of this block
        limit: max number of entries
    """
    _authorized_customer(db, customer_id, current_user, allow_self=True)
    try:
        return SessionLedgerService(db).get_transactions(customer_id, block_id=block_id, limit=limit)
    except SessionBlockError as e:
        raise to_http_exception(e)
