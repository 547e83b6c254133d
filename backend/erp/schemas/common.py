from pydantic import BaseModel
from typing import Literal


QuotationStatus = Literal["draft", "sent", "accepted", "rejected", "expired"]
SalesOrderStatus = Literal["in_progress", "in_preparation", "shipped", "delivered", "completed", "cancelled"]
InvoiceStatus = Literal["draft", "sent", "paid", "overdue", "cancelled"]
DiscountType = Literal["percent", "amount"]
PaymentMethod = Literal["cash", "card", "transfer", "check"]


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
