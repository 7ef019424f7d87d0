#!/usr/bin/env python3
"""
Script to create a studio and print an access token for its owner.
Run after the migrations have been applied.
"""

from datetime import timedelta

from sqlalchemy.orm import Session

from app.auth.jwt_handler import create_access_token
from app.auth.permissions import UserRole
from app.crud import customer as customer_crud
from app.database import SessionLocal
from app.models import Studio


def create_studio():
    """Create a studio and issue a STUDIO_OWNER token for it"""
    db: Session = SessionLocal()

    try:
        name = input("Enter studio name: ").strip()
        owner_email = input("Enter owner email: ").strip()
        owner_id = input("Enter owner user id: ").strip()

        if not all([name, owner_email, owner_id]):
            print("All fields are required!")
            return

        existing = db.query(Studio).filter(Studio.name == name).first()
        if existing:
            print(f"Studio '{name}' already exists with id {existing.id}")
            return

        studio = customer_crud.create_studio(db, name)
        db.commit()
        db.refresh(studio)

        token = create_access_token(
            {"sub": owner_email, "id": int(owner_id), "role": UserRole.STUDIO_OWNER.value, "studio_id": studio.id},
            expires_delta=timedelta(days=30),
        )

        print("Studio created successfully!")
        print(f"ID: {studio.id}")
        print(f"Name: {studio.name}")
        print(f"Owner token (30 days): {token}")

    except Exception as e:
        print(f"Error creating studio: {str(e)}")
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    create_studio()
