from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from erp.routers import quotations, sales_orders, invoices, inventory, pricing
from erp.config import settings
from erp.errors import ERPError
import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

logger.info("=" * 60)
logger.info("Starting Furniture ERP API")
logger.info("=" * 60)
logger.info(f"Currency: {settings.currency}")
logger.info(f"Document prefixes: {settings.quotation_prefix}/{settings.order_prefix}/{settings.invoice_prefix}")
logger.info(f"Block conversion on insufficient stock: {settings.block_conversion_on_insufficient_stock}")
logger.info("=" * 60)

# Tables are created by Alembic migrations

app = FastAPI(
    title="Furniture ERP API",
    description="Quotations, sales orders, invoices and inventory",
    version="1.0.0"
)


def parse_cors_origins(origins_str: str) -> list:
    """Parse CORS origins string into a list."""
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=parse_cors_origins(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include routers
app.include_router(quotations.router)
app.include_router(sales_orders.router)
app.include_router(invoices.router)
app.include_router(inventory.router)
app.include_router(pricing.router)


@app.get("/")
def root():
    return {"message": "Furniture ERP API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.exception_handler(ERPError)
async def erp_exception_handler(request: Request, exc: ERPError):
    """Business rule violations: 404 / 409 / 422 with the service message"""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
