import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.crud import customer as crud
from app.database import transactional
from app.errors.session_block_errors import NotFound
from app.models import Customer
from app.schemas.customer import CustomerCreate
from app.services.session_ledger import SessionLedgerService

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, db: Session):
        self.db = db
        self.ledger = SessionLedgerService(db)

    def register_customer(
        self,
        studio_id: int,
        customer_data: CustomerCreate,
        created_by_id: Optional[int] = None,
    ) -> Customer:
        """Creates a customer and, when given, opens their first session block in the same transaction."""
        with transactional(self.db) as session:
            studio = crud.get_studio(session, studio_id)
            if not studio:
                raise NotFound(f"Studio {studio_id} not found", {"studio_id": studio_id})

            customer = crud.create_customer(session, studio_id, customer_data)
            if customer_data.initial_block is not None:
                self.ledger._create_block_logic(session, customer, customer_data.initial_block, created_by_id)

            logger.info(f"Registered customer {customer.id} in studio {studio_id}")
            return customer

    def get_customer(self, customer_id: int) -> Customer:
        customer = crud.get_customer(self.db, customer_id)
        if not customer:
            raise NotFound(f"Customer {customer_id} not found", {"customer_id": customer_id})
        return customer
