from app.database import SessionLocal


# Yields a database session scoped to one request
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
