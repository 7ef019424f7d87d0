import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.auth.permissions import STUDIO_STAFF, ensure_studio_access, get_current_user
from app.dependencies import get_db
from app.errors.http import to_http_exception
from app.errors.session_block_errors import SessionBlockError
from app.schemas.customer import CustomerCreate, CustomerResponse
from app.services.customer_service import CustomerService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Customers"])


# Register a customer, optionally with the first session package
@router.post("/studios/{studio_id}/customers", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def register_customer_endpoint(
        studio_id: int,
        customer_data: CustomerCreate,
        current_user=Depends(get_current_user(STUDIO_STAFF)),
        db: Session = Depends(get_db),
):
    ensure_studio_access(current_user, studio_id)
    service = CustomerService(db)
    try:
        return service.register_customer(studio_id, customer_data, created_by_id=current_user["id"])
    except SessionBlockError as e:
        raise to_http_exception(e)


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
def get_customer_endpoint(
        customer_id: int,
        current_user=Depends(get_current_user()),
        db: Session = Depends(get_db),
):
    try:
        customer = CustomerService(db).get_customer(customer_id)
    except SessionBlockError as e:
        raise to_http_exception(e)
    ensure_studio_access(current_user, customer.studio_id, customer_id)
    return customer
