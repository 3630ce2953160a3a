from .catalog import UnitCategory, UOM, Item, ItemBase, Service, NonStockService, Pricing
from .parties import Customer, SalesPartner
from .orders import (
    Order, OrderItem, OrderItemNote,
    PaymentTerm, PaymentTransaction,
    Commission, CommissionTransaction,
)
from .inventory import OperatorStock, Bincard
from .costs import FixedCost, LabTool

__all__ = [
    'UnitCategory', 'UOM', 'Item', 'ItemBase', 'Service', 'NonStockService', 'Pricing',
    'Customer', 'SalesPartner',
    'Order', 'OrderItem', 'OrderItemNote',
    'PaymentTerm', 'PaymentTransaction',
    'Commission', 'CommissionTransaction',
    'OperatorStock', 'Bincard',
    'FixedCost', 'LabTool',
]
