#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from storefront.data.models.user import UserModel
from storefront.data.models.address import AddressModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.order_history import OrderHistoryModel

__all__ = ["UserModel", "AddressModel", "OrderModel", "OrderItemModel", "OrderHistoryModel"]
