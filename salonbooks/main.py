from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.orm import Session
import logging

from salonbooks.api import accounts, bank, catalog, inventory, journal, reports, transactions
from salonbooks.config import settings
from salonbooks.database import engine, get_db
from salonbooks.exceptions import LedgerError
from salonbooks.models import Base
from salonbooks.utils.rate_limiter import limiter, rate_limit_exceeded_handler

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="SalonBooks Ledger API", version="1.0.0")

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    logger.warning(f"{request.method} {request.url.path} rejected: {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"{request.method} {request.url.path} rejected: invalid request body")
    return JSONResponse(
        status_code=400,
        content={"error": "ValidationError", "detail": jsonable_encoder(exc.errors())},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include routers
app.include_router(accounts.router, prefix="/api", tags=["Chart of Accounts"])
app.include_router(catalog.router, prefix="/api", tags=["Catalog"])
app.include_router(journal.router, prefix="/api", tags=["Journal"])
app.include_router(transactions.router, prefix="/api", tags=["Transactions"])
app.include_router(bank.router, prefix="/api", tags=["Bank"])
app.include_router(reports.router, prefix="/api", tags=["Reports"])
app.include_router(inventory.router, prefix="/api", tags=["Inventory"])


@app.get("/api/health")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        database = "unavailable"
    return {
        "status": "healthy" if database == "ok" else "degraded",
        "database": database,
    }
