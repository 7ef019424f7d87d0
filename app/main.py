import logging

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.config import config
from app.dependencies import get_db
from app.endpoints import customers, session_blocks, studio_reports

logging.basicConfig(level=config.LOG_LEVEL)

# Create a logger for the application
logger = logging.getLogger(__name__)
logger.setLevel(config.LOG_LEVEL)

# Create a console handler and a formatter for it
ch = logging.StreamHandler()
ch.setLevel(config.LOG_LEVEL)
formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
ch.setFormatter(formatter)
logger.addHandler(ch)

logger.info("Application started and logger configured.")


app = FastAPI(
    title="Studio Session Ledger API",
    description="Session block purchases, consumption and refunds for studio customers",
    version="1.0.0"
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(customers.router)
app.include_router(session_blocks.router)
app.include_router(studio_reports.router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        if 'ctx' in error and 'error' in error['ctx']:
            # Surface the ValueError message instead of the raw context
            if isinstance(error['ctx']['error'], ValueError):
                error['msg'] = str(error['ctx']['error'])
                del error['ctx']
        errors.append(error)

    return JSONResponse(
        status_code=422,
        content={"detail": errors},
    )


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return {"status": "unhealthy", "database": "disconnected"}
