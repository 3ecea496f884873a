from .catalog import Category, Product
from .inventory import InventoryRecord
from .sales import Sale, SaleItem, ReturnStatus
from .returns import Return, ReturnItem
from .auth import User, SessionToken
from .settings import Setting

__all__ = [
    'Category', 'Product',
    'InventoryRecord',
    'Sale', 'SaleItem', 'ReturnStatus',
    'Return', 'ReturnItem',
    'User', 'SessionToken',
    'Setting',
]
