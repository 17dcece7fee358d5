from .auth import User, PasswordResetToken
from .customers import Customer
from .employees import Employee
from .catalog import Category, Product
from .cart import CartItem
from .orders import Order, OrderItem, ORDER_STATUSES
from .notifications import Notification

__all__ = [
    'User', 'PasswordResetToken',
    'Customer',
    'Employee',
    'Category', 'Product',
    'CartItem',
    'Order', 'OrderItem', 'ORDER_STATUSES',
    'Notification',
]
