from models.users import User
from models.categories import Category
from models.products import Product
from models.product_images import ProductImage
from models.delivery_locations import DeliveryLocation
from models.orders import Order
from models.order_items import Item
from models.mpesa_transactions import MpesaTransaction
from models.schedules import Schedule

__all__ = ["User", "Category", "Product", "ProductImage", "DeliveryLocation", "Order", "Item",
           "MpesaTransaction", "Schedule"]
