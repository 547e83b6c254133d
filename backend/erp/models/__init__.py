from erp.models.contact import Contact
from erp.models.product import Product
from erp.models.material import Material
from erp.models.finish import Finish
from erp.models.quotation import Quotation
from erp.models.quotation_line import QuotationLine
from erp.models.quotation_line_component import QuotationLineComponent
from erp.models.sales_order import SalesOrder
from erp.models.sales_order_item import SalesOrderItem
from erp.models.invoice import Invoice
from erp.models.invoice_item import InvoiceItem
from erp.models.stock_movement import StockMovement
from erp.models.notification import Notification
from erp.models.document_sequence import DocumentSequence

__all__ = ["Contact", "Product", "Material", "Finish", "Quotation", "QuotationLine", "QuotationLineComponent", "SalesOrder", "SalesOrderItem", "Invoice", "InvoiceItem", "StockMovement", "Notification", "DocumentSequence"]
