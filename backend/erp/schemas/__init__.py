from erp.schemas.pricing import PricingPreviewRequest, PricingPreviewResponse, CustomPriceRequest, CustomPriceResponse
from erp.schemas.quotation import QuotationCreate, QuotationUpdate, QuotationResponse, QuotationListResponse
from erp.schemas.sales_order import SalesOrderCreate, SalesOrderResponse, ConversionResponse, SalesOrderListResponse
from erp.schemas.invoice import InvoiceCreate, InvoiceResponse, InvoiceListResponse, PaymentRecord
from erp.schemas.stock import StockAdjustmentRequest, StockMovementResponse

__all__ = [
    "PricingPreviewRequest",
    "PricingPreviewResponse",
    "CustomPriceRequest",
    "CustomPriceResponse",
    "QuotationCreate",
    "QuotationUpdate",
    "QuotationResponse",
    "QuotationListResponse",
    "SalesOrderCreate",
    "SalesOrderResponse",
    "ConversionResponse",
    "SalesOrderListResponse",
    "InvoiceCreate",
    "InvoiceResponse",
    "InvoiceListResponse",
    "PaymentRecord",
    "StockAdjustmentRequest",
    "StockMovementResponse",
]
