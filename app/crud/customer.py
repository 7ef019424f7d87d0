from typing import List, Optional, Tuple

from sqlalchemy import and_
from sqlalchemy.orm import Session

from app.models import BlockStatus, Customer, SessionBlock, Studio
from app.schemas.customer import CustomerCreate


def get_studio(db: Session, studio_id: int) -> Optional[Studio]:
    return db.query(Studio).filter(Studio.id == studio_id).first()


def create_studio(db: Session, name: str) -> Studio:
    studio = Studio(name=name)
    db.add(studio)
    db.flush()
    return studio


def get_customer(db: Session, customer_id: int) -> Optional[Customer]:
    return db.query(Customer).filter(Customer.id == customer_id).first()


def lock_customer(db: Session, customer_id: int) -> Optional[Customer]:
    """
    Customer row with a row lock held until the transaction ends
    """
    return (
        db.query(Customer)
        .filter(Customer.id == customer_id)
        .with_for_update()
        .first()
    )


def create_customer(db: Session, studio_id: int, data: CustomerCreate) -> Customer:
    customer = Customer(
        studio_id=studio_id,
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        phone=data.phone,
    )
    db.add(customer)
    db.flush()
    return customer


def get_studio_customers_with_active_block(db: Session, studio_id: int) -> List[Tuple[Customer, Optional[SessionBlock]]]:
    """
    Customers of a studio by name, each paired with their active block (or None)
    """
    return (
        db.query(Customer, SessionBlock)
        .outerjoin(
            SessionBlock,
            and_(
                SessionBlock.customer_id == Customer.id,
                SessionBlock.studio_id == Customer.studio_id,
                SessionBlock.status == BlockStatus.ACTIVE.value,
            ),
        )
        .filter(Customer.studio_id == studio_id)
        .order_by(Customer.last_name, Customer.first_name, Customer.id)
        .all()
    )
