import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.crud import customer as customer_crud
from app.crud import session_block as block_crud
from app.crud import session_transaction as transaction_crud
from app.errors.session_block_errors import InvalidState, NotFound
from app.models import BlockStatus
from app.schemas.session_block import (
    CustomerSessionOverview,
    StudioCustomersSessions,
    StudioSessionStats,
    TransactionStats,
)

logger = logging.getLogger(__name__)

DEFAULT_STATS_WINDOW_DAYS = 30


class StudioReportService:
    """Read-only session reporting across all customers of a studio."""

    def __init__(self, db: Session):
        self.db = db

    def get_session_stats(
        self,
        studio_id: int,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> StudioSessionStats:
        """
        Ledger totals for entries created between from_date and to_date (both
        inclusive, UTC days). The window defaults to the last 30 days.
        """
        self._get_studio_or_raise(studio_id)

        to_date = to_date or datetime.now(timezone.utc).date()
        from_date = from_date or to_date - timedelta(days=DEFAULT_STATS_WINDOW_DAYS)
        if from_date > to_date:
            raise InvalidState(
                f"from_date {from_date} is after to_date {to_date}",
                {"from_date": from_date.isoformat(), "to_date": to_date.isoformat()},
            )

        start = datetime.combine(from_date, time.min, tzinfo=timezone.utc)
        end = datetime.combine(to_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
        totals = transaction_crud.get_studio_transaction_stats(self.db, studio_id, start, end)

        open_blocks = block_crud.get_studio_open_blocks(self.db, studio_id)

        return StudioSessionStats(
            studio_id=studio_id,
            from_date=from_date,
            to_date=to_date,
            transaction_stats=TransactionStats(**totals),
            active_blocks_count=sum(1 for b in open_blocks if b.status == BlockStatus.ACTIVE),
            total_remaining_sessions=sum(b.remaining_sessions for b in open_blocks),
        )

    def list_customers_with_sessions(self, studio_id: int) -> StudioCustomersSessions:
        self._get_studio_or_raise(studio_id)

        rows = customer_crud.get_studio_customers_with_active_block(self.db, studio_id)
        customers = []
        for customer, block in rows:
            customers.append(CustomerSessionOverview(
                customer_id=customer.id,
                first_name=customer.first_name,
                last_name=customer.last_name,
                email=customer.email,
                active_block_id=block.id if block else None,
                total_sessions=block.total_sessions if block else None,
                remaining_sessions=block.remaining_sessions if block else None,
                purchase_date=block.purchase_date if block else None,
                has_active_sessions=bool(block and block.remaining_sessions > 0),
            ))
        return StudioCustomersSessions(studio_id=studio_id, customers=customers)

    def _get_studio_or_raise(self, studio_id: int):
        studio = customer_crud.get_studio(self.db, studio_id)
        if not studio:
            raise NotFound(f"Studio {studio_id} not found", {"studio_id": studio_id})
        return studio
