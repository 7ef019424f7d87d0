from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.permissions import STUDIO_STAFF, ensure_studio_access, get_current_user
from app.dependencies import get_db
from app.errors.http import to_http_exception
from app.errors.session_block_errors import SessionBlockError
from app.schemas.session_block import StudioCustomersSessions, StudioSessionStats
from app.services.studio_report import StudioReportService

router = APIRouter(prefix="/studios", tags=["Studio Reports"])


@router.get("/{studio_id}/session-stats", response_model=StudioSessionStats)
def get_studio_session_stats_endpoint(
        studio_id: int,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        current_user=Depends(get_current_user(STUDIO_STAFF)),
        db: Session = Depends(get_db),
):
    """
    Session ledger activity of a studio.

    Args:
        from_date: first day of the window, defaults to 30 days before to_date
        to_date: last day of the window, defaults to today (UTC)
    """
    ensure_studio_access(current_user, studio_id)
    try:
        return StudioReportService(db).get_session_stats(studio_id, from_date=from_date, to_date=to_date)
    except SessionBlockError as e:
        raise to_http_exception(e)


# Customers of a studio with their active block
@router.get("/{studio_id}/customers/sessions", response_model=StudioCustomersSessions)
def get_studio_customers_with_sessions_endpoint(
        studio_id: int,
        current_user=Depends(get_current_user(STUDIO_STAFF)),
        db: Session = Depends(get_db),
):
    ensure_studio_access(current_user, studio_id)
    try:
        return StudioReportService(db).list_customers_with_sessions(studio_id)
    except SessionBlockError as e:
        raise to_http_exception(e)
