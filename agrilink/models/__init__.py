from agrilink.models.user_model import User, Role, Availability
from agrilink.models.product_model import Product, ProductStatus
from agrilink.models.order_model import Order, OrderStatus
from agrilink.models.delivery_model import (
    DeliveryAssignment, AssignmentType, AssignmentStatus, ACTIVE_ASSIGNMENT_STATUSES
)
from agrilink.models.setting_model import SystemSetting
