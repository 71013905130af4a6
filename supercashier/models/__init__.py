from .auth import Role, User, SessionToken
from .catalog import Category, Product
from .inventory import StockAddition
from .sales import Payment, Sale, SaleItem

__all__ = [
    'Role', 'User', 'SessionToken',
    'Category', 'Product',
    'StockAddition',
    'Payment', 'Sale', 'SaleItem',
]
