# agrilink/utils/role_utils.py
from agrilink.models.user_model import Role

# Dashboard sections and actions exposed to each role
ROLE_PERMISSIONS = {
    Role.BUYER: {
        'interface_sections': ['profile', 'products', 'orders'],
        'actions': ['view_products', 'create_order', 'view_own_orders', 'cancel_own_order']
    },
    Role.FARMER: {
        'interface_sections': ['profile', 'products', 'my_products', 'sales'],
        'actions': [
            'view_products', 'create_product', 'update_own_product', 'delete_own_product',
            'view_own_sales', 'update_own_sale_status'
        ]
    },
    Role.DELIVERY: {
        'interface_sections': ['profile', 'deliveries', 'stats'],
        'actions': [
            'view_own_deliveries', 'update_delivery_status', 'accept_assignment',
            'reject_assignment', 'update_availability'
        ]
    },
    Role.ADMIN: {
        'interface_sections': ['profile', 'users', 'products', 'orders', 'stats', 'settings'],
        'actions': [
            'view_all_users', 'approve_farmer', 'suspend_user', 'delete_user',
            'view_all_products', 'approve_product', 'reject_product', 'suspend_product',
            'delete_any_product', 'view_all_orders', 'update_any_order', 'assign_delivery',
            'configure_system'
        ]
    }
}


def get_user_permissions(user):
    """Get user permissions based on their role"""
    if not user or not user.role:
        return {
            'interface_sections': ['login', 'register', 'products'],
            'actions': ['view_products']
        }
    return ROLE_PERMISSIONS.get(user.role, ROLE_PERMISSIONS[Role.BUYER])


def get_user_data_with_permissions(user):
    """Return private user data with their permissions"""
    if not user:
        return None
    data = user.to_dict()
    data['permissions'] = get_user_permissions(user)
    return data
