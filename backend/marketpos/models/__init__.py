from .auth import User, SessionToken
from .catalog import Category, Supplier, Product
from .inventory import InventoryLog
from .sales import Sale, SaleItem
from .purchasing import PurchaseOrder, PurchaseOrderItem
from .promotions import Discount
from .documents import DocumentSequence
from .security import SecurityEvent

__all__ = [
    'User', 'SessionToken',
    'Category', 'Supplier', 'Product',
    'InventoryLog',
    'Sale', 'SaleItem',
    'PurchaseOrder', 'PurchaseOrderItem',
    'Discount',
    'DocumentSequence',
    'SecurityEvent',
]
