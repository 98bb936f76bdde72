from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
import logging

# Import database components
from app.database.database import engine, Base

# Import middleware
from app.common.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from app.common.exceptions import AppError

# Import routers
from app.modules.auth.router import auth_router
from app.modules.categories.router import categories_router
from app.modules.contacts.router import contacts_router
from app.modules.investors.router import investors_router
from app.modules.finance.router import finance_router, payment_methods_router
from app.modules.products.router import product_router
from app.modules.inventory.router import stock_router, product_stock_router
from app.modules.purchases.router import purchases_router
from app.modules.sales.router import sales_router

# Import models for table creation
import app.modules.auth.models
import app.modules.categories.models
import app.modules.contacts.models
import app.modules.investors.models
import app.modules.finance.models
import app.modules.products.models
import app.modules.purchases.models
import app.modules.sales.models

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Ledger ERP API",
    description="Purchasing, stock, accounts payable/receivable and cash journal API built with FastAPI and PostgreSQL",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Add your frontend URLs
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or None
    body = {
        "detail": first.get("msg", "Invalid request"),
        "code": "VALIDATION_ERROR",
        "errors": jsonable_encoder(errors),
    }
    if field:
        body["field"] = field
    return JSONResponse(status_code=422, content=body)


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(categories_router, prefix="/categories", tags=["Categories"])
app.include_router(payment_methods_router, prefix="/payment-methods")
app.include_router(contacts_router, prefix="/contacts")
app.include_router(investors_router, prefix="/investors")
app.include_router(finance_router, prefix="/finance")
app.include_router(product_router)
app.include_router(product_stock_router)
app.include_router(stock_router)
app.include_router(purchases_router, prefix="/purchases")
app.include_router(sales_router, prefix="/sales")

# Create database tables (no migration tool; development and tests only)
if settings.ENVIRONMENT in ("development", "test"):
    Base.metadata.create_all(bind=engine)

@app.get("/")
async def read_root():
    return {
        "message": "Ledger ERP API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}

@app.on_event("startup")
async def startup_event():
    logger.info("Ledger ERP API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Ledger ERP API shutting down...")
