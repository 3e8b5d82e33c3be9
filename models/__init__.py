# Import models so that SQLAlchemy metadata includes them on app startup
from .store import Store, StoreNotificationSettings  # noqa: F401
from .category import Category, CatalogCategorySettings  # noqa: F401
from .catalog import Catalog, ProductCatalogVisibility, CatalogProductSettings  # noqa: F401
from .product import Product, ProductCategoryAssignment  # noqa: F401
from .order import Order  # noqa: F401
from .order_item import OrderItem  # noqa: F401
