from models.product import Product, ProductType, product_id_for
from models.delivery_slot import DeliverySlot
from models.catalog import ProductCatalog

__all__ = [
    "Product",
    "ProductType",
    "product_id_for",
    "DeliverySlot",
    "ProductCatalog",
]
