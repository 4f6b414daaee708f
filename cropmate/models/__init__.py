from cropmate.models.user import User, Role
from cropmate.models.crop import Crop, CROP_CATEGORIES
from cropmate.models.order import Order
from cropmate.models.delivery import Delivery
from cropmate.models.delivery_request import DeliveryRequest
from cropmate.models.status_transition import StatusTransition

__all__ = [
    "User",
    "Role",
    "Crop",
    "CROP_CATEGORIES",
    "Order",
    "Delivery",
    "DeliveryRequest",
    "StatusTransition",
]
